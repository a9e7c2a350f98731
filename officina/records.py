"""Value objects exchanged with the tree store.

Stored shapes::

    parameters/{id}                  {"name": ..., "section": ..., "defaultState": ...}
    .../controls/{parameter_id}      {"stato": ..., "note": ...}
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from .errors import ValidationError
from .states import ControlState

OTHER_SECTION = 'Altro'

KNOWN_SECTIONS = (
    'Motore',
    'Sistema Sterzo',
    'Sistema Freni',
    'Sospensione Anteriore',
    'Pneumatici',
    OTHER_SECTION,
)


def slugify(name: str) -> str:
    return re.sub(r'[^a-z0-9]', '', re.sub(r'\s+', '', name.lower()))


def new_parameter_id(name: str, now_ms: Optional[int] = None) -> str:
    """Build ``<slug>_<epoch millis>``, unique by construction."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{slugify(name)}_{now_ms}"


def section_bucket(section: Optional[str]) -> str:
    """Section used for grouping: unknown or blank sections fall into ``Altro``."""
    if section and section in KNOWN_SECTIONS:
        return section
    return OTHER_SECTION


@dataclass(frozen=True)
class ChecklistParameter:
    id: str
    name: str
    section: str
    default_state: ControlState = ControlState.NON_CONTROLLATO

    @property
    def bucket(self) -> str:
        return section_bucket(self.section)

    @classmethod
    def from_dict(cls, parameter_id: str, data: Mapping[str, Any]) -> 'ChecklistParameter':
        raw_state = data.get('defaultState')
        try:
            state = ControlState(raw_state)
        except ValueError:
            state = ControlState.NON_CONTROLLATO
        return cls(
            id=parameter_id,
            name=str(data.get('name') or ''),
            section=str(data.get('section') or ''),
            default_state=state,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'name': self.name,
            'section': self.section,
            'defaultState': self.default_state.value,
        }


@dataclass(frozen=True)
class Control:
    state: ControlState
    note: str = field(default='')

    def with_state(self, state: ControlState) -> 'Control':
        return replace(self, state=state)

    def with_note(self, note: str) -> 'Control':
        return replace(self, note=note)

    def to_dict(self) -> Dict[str, str]:
        return {'stato': self.state.value, 'note': self.note}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Control':
        note = data.get('note')
        # An explicit empty note is a value; only a missing note becomes "".
        return cls(state=ControlState.parse(data['stato']), note='' if note is None else str(note))


def has_state(entry: Any) -> bool:
    """True for an entry whose ``stato`` is one of the three control states."""
    if not isinstance(entry, Mapping):
        return False
    try:
        ControlState.parse(entry.get('stato'))
    except ValidationError:
        return False
    return True


def is_control_map(value: Any) -> bool:
    """True for a non-empty mapping where at least one entry has a valid ``stato``."""
    return isinstance(value, Mapping) and len(value) > 0 and any(has_state(v) for v in value.values())


def controls_from_map(value: Mapping[str, Any]) -> Dict[str, Control]:
    """Copy every entry carrying a valid ``stato``; other entries are skipped."""
    return {str(key): Control.from_dict(entry) for key, entry in value.items() if has_state(entry)}
