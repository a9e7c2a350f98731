"""Hierarchical key-value store abstraction.

The checklist data lives in a tree addressed by slash-separated paths,
exactly like a realtime database: ``vehicles/V1/lavorazione/controls``.
Every backend offers the same five primitives:

* ``read(path)`` - the value at *path*, or ``None`` when absent;
* ``write(path, value)`` - overwrite the whole subtree at *path*;
* ``update(path, fields)`` - shallow merge of *fields* into *path*;
* ``remove(path)`` - delete the subtree at *path*;
* ``subscribe(path, callback)`` - push notification on change.

The realtime-database conventions are shared by all backends: writing
``None`` removes a node, an ``update`` field set to ``None`` removes
that child, and a mapping left empty disappears together with any
parent it was the only child of.  Reads return copies so callers never
mutate stored state in place.
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import StoreError

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


def split_path(path: str) -> List[str]:
    """Split *path* into its segments, ignoring leading/trailing/double slashes."""
    if path is None:
        return []
    return [seg for seg in str(path).strip().split('/') if seg]


def join_path(segments) -> str:
    return '/'.join(segments)


def _prune(value: Any) -> Any:
    """Drop ``None`` leaves and empty mappings recursively."""
    if isinstance(value, dict):
        pruned = {}
        for key, child in value.items():
            child = _prune(child)
            if child is None:
                continue
            pruned[str(key)] = child
        return pruned or None
    return value


def get_in(tree: Any, segments: List[str]) -> Any:
    node = tree
    for seg in segments:
        if not isinstance(node, dict) or seg not in node:
            return None
        node = node[seg]
    return node


def set_in(tree: Optional[dict], segments: List[str], value: Any) -> Optional[dict]:
    """Return *tree* with *value* stored at *segments* (``None`` removes)."""
    if not segments:
        return _prune(value)
    root = tree if isinstance(tree, dict) else {}
    head, rest = segments[0], segments[1:]
    child = set_in(root.get(head), rest, value)
    if child is None:
        root.pop(head, None)
    else:
        root[head] = child
    return root or None


def merge_in(tree: Optional[dict], segments: List[str], fields: Dict[str, Any]) -> Optional[dict]:
    """Return *tree* with *fields* shallow-merged into the node at *segments*."""
    current = get_in(tree, segments)
    merged = dict(current) if isinstance(current, dict) else {}
    for key, value in fields.items():
        key_segments = split_path(key)
        if not key_segments:
            continue
        merged = set_in(merged, key_segments, value) or {}
    return set_in(tree, segments, merged or None)


class TreeStore:
    """Common behaviour of every storage backend.

    Subclasses implement :meth:`read`, :meth:`write`, :meth:`update` and
    :meth:`remove`.  The default :meth:`subscribe` keeps an in-process
    listener registry which local backends fire through
    :meth:`_notify` after each change; backends with native change
    notification override it.
    """

    def __init__(self) -> None:
        self._listeners: List[Tuple[List[str], Listener]] = []
        self._listeners_lock = threading.Lock()

    # -- primitives -------------------------------------------------------

    def read(self, path: str) -> Any:
        raise NotImplementedError

    def write(self, path: str, value: Any) -> None:
        raise NotImplementedError

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        raise NotImplementedError

    def remove(self, path: str) -> None:
        self.write(path, None)

    def subscribe(self, path: str, callback: Listener) -> Callable[[], None]:
        """Call *callback* with the new value at *path* whenever it changes.

        Returns a callable that cancels the subscription.
        """
        entry = (split_path(path), callback)
        with self._listeners_lock:
            self._listeners.append(entry)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if entry in self._listeners:
                    self._listeners.remove(entry)

        return unsubscribe

    # -- helpers ----------------------------------------------------------

    def exists(self, path: str) -> bool:
        return self.read(path) is not None

    def describe(self, path: str) -> Dict[str, Any]:
        """Summarise the node at *path* for diagnostics.

        The result always carries ``exists``; existing nodes add
        ``type`` and, for mappings, their ``keys`` and ``count``.
        """
        try:
            data = self.read(path)
        except StoreError as exc:
            logger.error("Verifica del nodo %s fallita: %s", path, exc)
            return {'path': path, 'exists': False, 'error': str(exc)}
        if data is None:
            return {'path': path, 'exists': False}
        info: Dict[str, Any] = {'path': path, 'exists': True, 'type': type(data).__name__}
        if isinstance(data, dict):
            info['keys'] = list(data.keys())
            info['count'] = len(data)
        return info

    def _notify(self, changed: List[str]) -> None:
        """Fire listeners whose path overlaps the *changed* path."""
        with self._listeners_lock:
            listeners = list(self._listeners)
        for segments, callback in listeners:
            shorter = min(len(segments), len(changed))
            if segments[:shorter] != changed[:shorter]:
                continue
            try:
                callback(self.read(join_path(segments)))
            except Exception:
                logger.exception("Listener su %s fallito", join_path(segments))


class DocumentTreeStore(TreeStore):
    """Backend storing one document per top-level key.

    Subclasses provide :meth:`_load` / :meth:`_save` / :meth:`_keys` for
    a single top-level document; this class implements the tree
    primitives on top of them.
    """

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.RLock()

    def _load(self, key: str) -> Any:
        raise NotImplementedError

    def _save(self, key: str, document: Any) -> None:
        raise NotImplementedError

    def _keys(self) -> List[str]:
        raise NotImplementedError

    def read(self, path: str) -> Any:
        segments = split_path(path)
        with self._lock:
            if not segments:
                tree = {key: self._load(key) for key in self._keys()}
                return copy.deepcopy(_prune(tree))
            return copy.deepcopy(get_in(self._load(segments[0]), segments[1:]))

    def write(self, path: str, value: Any) -> None:
        segments = split_path(path)
        if not segments:
            raise StoreError("Scrittura sulla radice non consentita", path)
        with self._lock:
            document = self._load(segments[0])
            document = set_in({'_': document}, ['_'] + segments[1:], copy.deepcopy(value))
            self._save(segments[0], document.get('_') if document else None)
        self._notify(segments)

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        segments = split_path(path)
        if not segments:
            raise StoreError("Aggiornamento della radice non consentito", path)
        with self._lock:
            document = self._load(segments[0])
            document = merge_in({'_': document}, ['_'] + segments[1:], copy.deepcopy(fields))
            self._save(segments[0], document.get('_') if document else None)
        self._notify(segments)
