"""Open checklists, one per subject.

A subject is a vehicle, an appointment, or both.  Each open checklist
(:class:`ChecklistSession`) combines the control state of the subject
with the tab model built from the catalog and one bulk selection per
section.  Sessions are kept in a :class:`SessionRegistry` owned by the
Flask application (``app.extensions['officina.sessions']``).
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

from .bulk import BulkSelection
from .catalog import ParameterCatalog
from .controls import ControlStore
from .errors import ValidationError
from .sections import DEFAULT_FOCUS_DELAY, SectionModel

logger = logging.getLogger(__name__)

SESSIONS_EXTENSION_KEY = 'officina.sessions'

SubjectKey = Tuple[Optional[str], Optional[str]]


def subject_key(vehicle_id: Optional[str], appointment_id: Optional[str]) -> SubjectKey:
    vehicle_id = (vehicle_id or '').strip() or None
    appointment_id = (appointment_id or '').strip() or None
    if vehicle_id is None and appointment_id is None:
        raise ValidationError("Specificare un veicolo o un appuntamento")
    return vehicle_id, appointment_id


class ChecklistSession:
    def __init__(self, store, vehicle_id: Optional[str] = None,
                 appointment_id: Optional[str] = None,
                 debounce_seconds: float = 1.0,
                 focus_delay: float = DEFAULT_FOCUS_DELAY) -> None:
        self.vehicle_id = vehicle_id
        self.appointment_id = appointment_id
        self.catalog = ParameterCatalog(store)
        self.controls = ControlStore(store, vehicle_id=vehicle_id,
                                     appointment_id=appointment_id,
                                     debounce_seconds=debounce_seconds)
        self.sections = SectionModel(focus_delay=focus_delay)
        self.selections: Dict[str, BulkSelection] = {}

    def load(self) -> None:
        self.refresh_catalog()
        self.controls.load()

    def reload(self) -> None:
        """Write pending notes, then re-read the catalog and the controls."""
        self.controls.flush_notes()
        self.load()

    def refresh_catalog(self) -> None:
        """Re-read the catalog, regroup the tabs and rebuild the selections.

        Selections of sections that still exist keep the ids that are
        still part of them.
        """
        parameters = self.catalog.load()
        self.sections.set_parameters(parameters)
        self.controls.set_defaults({pid: p.default_state for pid, p in parameters.items()})
        selections: Dict[str, BulkSelection] = {}
        for name, ids in self.sections.group().items():
            selection = BulkSelection(ids)
            previous = self.selections.get(name)
            if previous is not None:
                selection.active = previous.active
                selection.selected = [pid for pid in previous.selected if pid in ids]
            selections[name] = selection
        self.selections = selections

    def selection(self, section: Optional[str] = None) -> BulkSelection:
        section = section or self.sections.active_section
        if section is None or section not in self.selections:
            raise ValidationError("Nessuna sezione attiva")
        return self.selections[section]

    def rows(self, section: Optional[str] = None) -> List[Dict[str, Any]]:
        section = section or self.sections.active_section
        rows: List[Dict[str, Any]] = []
        for parameter_id in self.sections.sections.get(section, []):
            parameter = self.sections.parameters[parameter_id]
            control = self.controls.control_for(parameter_id)
            rows.append({
                'id': parameter_id,
                'name': parameter.name,
                'section': parameter.bucket,
                'stato': control.state.value,
                'note': control.note,
            })
        return rows

    def apply_bulk_state(self, state) -> List[str]:
        return self.selection().apply(state, self.controls.set_state)

    def close(self) -> None:
        self.controls.flush_notes()

    def to_dict(self) -> Dict[str, Any]:
        data = self.sections.to_dict()
        active = self.sections.active_section
        selection = self.selections.get(active) if active else None
        data.update({
            'vehicleId': self.vehicle_id,
            'appointmentId': self.appointment_id,
            'sourcePath': self.controls.source_path,
            'rows': self.rows() if active else [],
            'bulk': selection_to_dict(selection),
        })
        return data


def selection_to_dict(selection: Optional[BulkSelection]) -> Dict[str, Any]:
    if selection is None:
        return {'active': False, 'selected': [], 'allSelected': False}
    return {
        'active': selection.active,
        'selected': list(selection.selected),
        'allSelected': selection.is_all_selected(),
    }


class SessionRegistry:
    """Open sessions keyed by subject.

    A session left unused for longer than ``idle_seconds`` is closed the
    next time the registry is used; ``None`` keeps sessions until closed.
    """

    def __init__(self, store, debounce_seconds: float = 1.0,
                 focus_delay: float = DEFAULT_FOCUS_DELAY,
                 idle_seconds: Optional[float] = None,
                 clock=time.monotonic) -> None:
        self.store = store
        self.debounce_seconds = debounce_seconds
        self.focus_delay = focus_delay
        self.idle_seconds = idle_seconds
        self.clock = clock
        self._sessions: Dict[SubjectKey, ChecklistSession] = {}
        self._last_used: Dict[SubjectKey, float] = {}
        self._lock = threading.Lock()

    def _take_expired(self, now: float) -> List[ChecklistSession]:
        if self.idle_seconds is None:
            return []
        expired = [key for key, used in self._last_used.items() if now - used > self.idle_seconds]
        sessions = []
        for key in expired:
            del self._last_used[key]
            sessions.append(self._sessions.pop(key))
            logger.info("Checklist inattiva chiusa per veicolo=%s appuntamento=%s", key[0], key[1])
        return sessions

    def open(self, vehicle_id: Optional[str], appointment_id: Optional[str]) -> ChecklistSession:
        """Return the session of the subject, loading it on first use.

        Idle sessions are closed first, so their pending notes are written
        before a replacement session reads the store.
        """
        key = subject_key(vehicle_id, appointment_id)
        now = self.clock()
        with self._lock:
            expired = self._take_expired(now)
        for stale in expired:
            stale.close()
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = ChecklistSession(self.store, vehicle_id=key[0], appointment_id=key[1],
                                           debounce_seconds=self.debounce_seconds,
                                           focus_delay=self.focus_delay)
                session.load()
                self._sessions[key] = session
                logger.info("Checklist aperta per veicolo=%s appuntamento=%s", key[0], key[1])
            self._last_used[key] = now
            return session

    def close(self, vehicle_id: Optional[str], appointment_id: Optional[str]) -> bool:
        key = subject_key(vehicle_id, appointment_id)
        with self._lock:
            session = self._sessions.pop(key, None)
            self._last_used.pop(key, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._last_used.clear()
        for session in sessions:
            session.close()

    def __len__(self) -> int:
        return len(self._sessions)
