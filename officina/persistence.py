"""Multi-path reads and writes of checklist controls.

Reads walk an ordered list of candidate paths and stop at the first one
whose value is accepted.  Writes fan out to an explicit list of target
paths; each target is an independent store call, so a failure on one
target neither aborts nor rolls back the others.  Failures are logged
and reported back in a :class:`WriteReport`, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .errors import StoreError
from .paths import (
    appointment_checklist_path,
    vehicle_checklist_path,
    vehicle_controls_path,
)
from .records import Control

logger = logging.getLogger(__name__)


def probe_first(store, paths: Iterable[str],
                accept: Callable[[Any], bool]) -> Tuple[Optional[str], Any]:
    """Return ``(path, value)`` for the first path whose value is accepted.

    A read failure on one candidate is logged and treated like absence.
    Returns ``(None, None)`` when nothing matches.
    """
    for path in paths:
        try:
            value = store.read(path)
        except StoreError as exc:
            logger.error("Lettura di %s fallita: %s", path, exc)
            continue
        if value is not None and accept(value):
            return path, value
    return None, None


@dataclass
class WriteReport:
    written: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def extend(self, other: 'WriteReport') -> None:
        self.written.extend(other.written)
        self.failed.extend(other.failed)


def write_each(store, targets: Iterable[Tuple[str, Any]], method: str = 'write') -> WriteReport:
    """Issue one independent ``store.<method>(path, value)`` per target."""
    report = WriteReport()
    for path, value in targets:
        try:
            getattr(store, method)(path, value)
        except StoreError as exc:
            logger.error("Salvataggio in %s fallito: %s", path, exc)
            report.failed.append(path)
        else:
            report.written.append(path)
    return report


class ControlWriter:
    """Persist one control to every location that must hold it.

    With a vehicle id the control goes to the canonical ``controls`` path
    and to the ``checklist`` path kept for older readers; with an
    appointment id it also goes to the appointment checklist.
    """

    def __init__(self, store) -> None:
        self.store = store

    def targets(self, vehicle_id: Optional[str], appointment_id: Optional[str],
                parameter_id: str) -> List[str]:
        paths: List[str] = []
        if vehicle_id:
            paths.append(f"{vehicle_controls_path(vehicle_id)}/{parameter_id}")
            paths.append(f"{vehicle_checklist_path(vehicle_id)}/{parameter_id}")
        if appointment_id:
            paths.append(f"{appointment_checklist_path(appointment_id)}/{parameter_id}")
        return paths

    def write(self, vehicle_id: Optional[str], appointment_id: Optional[str],
              parameter_id: str, control: Control) -> WriteReport:
        payload = control.to_dict()
        paths = self.targets(vehicle_id, appointment_id, parameter_id)
        report = write_each(self.store, [(path, payload) for path in paths])
        if report.ok:
            logger.debug("Controllo %s salvato in %d percorsi", parameter_id, len(report.written))
        else:
            logger.warning("Controllo %s salvato parzialmente: falliti %s", parameter_id, report.failed)
        return report
