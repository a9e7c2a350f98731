"""Closed sets of control states.

Two checklist variants exist and are kept as separate types:

* :class:`ControlState` - the three-state dynamic checklist, toggled along
  ``CONTROLLATO → NON CONTROLLATO → DA FARE → CONTROLLATO``;
* :class:`SheetState` - the two-state static inspection sheet, toggled
  ``CONTROLLATO ↔ DA FARE``.

Both derive from ``str`` so that members serialise to the exact strings
stored in the database (``"stato"`` field of a control).
"""

from __future__ import annotations

from enum import Enum

from .errors import ValidationError


class ControlState(str, Enum):
    CONTROLLATO = 'CONTROLLATO'
    NON_CONTROLLATO = 'NON CONTROLLATO'
    DA_FARE = 'DA FARE'

    def next(self) -> 'ControlState':
        return _CONTROL_CYCLE[self]

    @classmethod
    def parse(cls, value) -> 'ControlState':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Stato non valido: {value!r}") from None


_CONTROL_CYCLE = {
    ControlState.CONTROLLATO: ControlState.NON_CONTROLLATO,
    ControlState.NON_CONTROLLATO: ControlState.DA_FARE,
    ControlState.DA_FARE: ControlState.CONTROLLATO,
}


class SheetState(str, Enum):
    CONTROLLATO = 'CONTROLLATO'
    DA_FARE = 'DA FARE'

    def next(self) -> 'SheetState':
        if self is SheetState.CONTROLLATO:
            return SheetState.DA_FARE
        return SheetState.CONTROLLATO

    @classmethod
    def coerce(cls, value) -> 'SheetState':
        """Map a stored value onto the sheet; anything unknown is ``DA FARE``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DA_FARE
