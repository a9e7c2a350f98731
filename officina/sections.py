"""Section/tab presentation state of the dynamic checklist.

Parameters are shown in tabs, one per section.  Sections appear in the
order in which the catalog first mentions them and parameters keep
their catalog order inside a section.  Unknown or blank sections are
grouped under ``Altro``.

The active tab is reconciled explicitly with :meth:`SectionModel.reconcile`
after each catalog change; grouping itself never touches it.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .errors import ValidationError
from .records import ChecklistParameter

DEFAULT_FOCUS_DELAY = 0.1


@dataclass(frozen=True)
class FocusMove:
    parameter_id: str
    section: str
    section_changed: bool
    # Seconds the UI waits for the new tab to render before focusing.
    delay: float


def group_by_section(parameters: Mapping[str, ChecklistParameter]) -> 'OrderedDict[str, List[str]]':
    grouped: 'OrderedDict[str, List[str]]' = OrderedDict()
    for parameter_id, parameter in parameters.items():
        grouped.setdefault(parameter.bucket, []).append(parameter_id)
    return grouped


class SectionModel:
    def __init__(self, parameters: Optional[Mapping[str, ChecklistParameter]] = None,
                 focus_delay: float = DEFAULT_FOCUS_DELAY) -> None:
        self.focus_delay = focus_delay
        self.active_section: Optional[str] = None
        self.parameters: 'OrderedDict[str, ChecklistParameter]' = OrderedDict()
        self.sections: 'OrderedDict[str, List[str]]' = OrderedDict()
        self.set_parameters(parameters or {})

    def set_parameters(self, parameters: Mapping[str, ChecklistParameter]) -> None:
        """Replace the catalog, regroup and reconcile the active section."""
        self.parameters = OrderedDict(parameters)
        self.sections = group_by_section(self.parameters)
        self.reconcile()

    def group(self) -> 'OrderedDict[str, List[str]]':
        return OrderedDict((name, list(ids)) for name, ids in self.sections.items())

    def non_empty_sections(self) -> List[str]:
        return [name for name, ids in self.sections.items() if ids]

    def reconcile(self) -> Optional[str]:
        available = self.non_empty_sections()
        if self.active_section not in available:
            self.active_section = available[0] if available else None
        return self.active_section

    def select(self, section: str) -> str:
        if section not in self.non_empty_sections():
            raise ValidationError(f"Sezione sconosciuta: {section}")
        self.active_section = section
        return section

    def section_of(self, parameter_id: str) -> Optional[str]:
        parameter = self.parameters.get(parameter_id)
        return parameter.bucket if parameter else None

    def flattened(self) -> List[str]:
        order: List[str] = []
        for ids in self.sections.values():
            order.extend(ids)
        return order

    def move_focus(self, current_id: Optional[str], backward: bool = False) -> Optional[FocusMove]:
        """Tab / Shift+Tab from *current_id*, wrapping at both ends.

        An unknown *current_id* moves to the first (or, backwards, the
        last) parameter.  Returns ``None`` when there are no parameters.
        """
        order = self.flattened()
        if not order:
            return None
        if current_id in order:
            index = order.index(current_id)
            index = (index - 1) % len(order) if backward else (index + 1) % len(order)
        else:
            index = len(order) - 1 if backward else 0
        target = order[index]
        section = self.section_of(target)
        if section != self.active_section:
            self.active_section = section
            return FocusMove(target, section, True, self.focus_delay)
        return FocusMove(target, section, False, 0.0)

    def to_dict(self) -> Dict[str, object]:
        return {
            'activeSection': self.active_section,
            'sections': [
                {'name': name, 'parameterIds': list(ids), 'count': len(ids)}
                for name, ids in self.sections.items() if ids
            ],
        }
