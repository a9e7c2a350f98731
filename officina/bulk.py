"""Multi-selection used for bulk edits.

The checklist uses one selection per active section, the catalog
editor an independent one over the whole catalog.  Applying a bulk
action calls the single-item setter once per selected id; nothing is
batched at the storage layer.  After applying, bulk mode ends but the
selection is kept until the caller clears it.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List


class BulkSelection:
    def __init__(self, candidates: Iterable[str]) -> None:
        self.candidates: List[str] = list(dict.fromkeys(candidates))
        self.selected: List[str] = []
        self.active = False

    def enter(self) -> None:
        self.active = True

    def cancel(self) -> None:
        self.active = False
        self.selected = []

    def clear(self) -> None:
        self.selected = []

    def toggle(self, item_id: str) -> bool:
        """Flip *item_id*; returns whether it is now selected."""
        if item_id in self.selected:
            self.selected.remove(item_id)
            return False
        if item_id not in self.candidates:
            return False
        self.selected.append(item_id)
        return True

    def is_all_selected(self) -> bool:
        return bool(self.candidates) and set(self.selected) == set(self.candidates)

    def toggle_select_all(self) -> List[str]:
        if self.is_all_selected():
            self.selected = []
        else:
            self.selected = list(self.candidates)
        return list(self.selected)

    def apply(self, value: Any, setter: Callable[[str, Any], Any]) -> List[str]:
        applied: List[str] = []
        for item_id in list(self.selected):
            setter(item_id, value)
            applied.append(item_id)
        self.active = False
        return applied
