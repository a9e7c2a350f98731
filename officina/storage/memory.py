"""In-process tree store used by the test-suite and ``STORE_BACKEND=memory``."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .base import DocumentTreeStore, _prune


class MemoryStore(DocumentTreeStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        super().__init__()
        self._documents: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.write(key, value)

    def _load(self, key: str) -> Any:
        return self._documents.get(key)

    def _save(self, key: str, document: Any) -> None:
        document = _prune(document)
        if document is None:
            self._documents.pop(key, None)
        else:
            self._documents[key] = document

    def _keys(self) -> List[str]:
        return list(self._documents.keys())
