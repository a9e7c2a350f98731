"""Per-vehicle / per-appointment control state.

A :class:`ControlStore` holds the controls of one subject (a vehicle, an
appointment, or a vehicle together with its appointment) keyed by
parameter id.

Loading probes :func:`officina.paths.control_candidates` in order and
adopts the first well-formed map wholesale.  The appointment checklist
is probed first, so when both an appointment copy and a vehicle copy
exist the appointment copy wins and the vehicle copy is ignored.

State changes are applied in memory first and then written through the
:class:`~officina.persistence.ControlWriter`; a failed write is logged
and the in-memory value is kept.  Note edits are coalesced per
parameter: each call restarts that parameter's quiet period and only
the last value is written.  The in-memory note changes only after the
write has completed.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Mapping, Optional

from .persistence import ControlWriter, probe_first, write_each
from .paths import control_candidates, vehicle_checklist_path, vehicle_controls_path
from .records import Control, controls_from_map, is_control_map
from .states import ControlState

logger = logging.getLogger(__name__)

DEFAULT_NOTE_DEBOUNCE = 1.0


class ControlStore:
    def __init__(self, store, vehicle_id: Optional[str] = None,
                 appointment_id: Optional[str] = None,
                 defaults: Optional[Mapping[str, ControlState]] = None,
                 debounce_seconds: float = DEFAULT_NOTE_DEBOUNCE,
                 writer: Optional[ControlWriter] = None) -> None:
        self.store = store
        self.vehicle_id = vehicle_id or None
        self.appointment_id = appointment_id or None
        self.defaults: Dict[str, ControlState] = dict(defaults or {})
        self.debounce_seconds = debounce_seconds
        self.writer = writer or ControlWriter(store)
        self.controls: Dict[str, Control] = {}
        self.source_path: Optional[str] = None
        self._lock = threading.RLock()
        # parameter id -> (timer, pending note, generation)
        self._pending: Dict[str, tuple] = {}
        self._generation = 0

    # ------------------------------------------------------------------
    # Loading

    def load(self) -> Dict[str, Control]:
        """Resolve the controls from the first candidate path holding a valid map.

        With no match the map is empty and every parameter falls back to
        its default when displayed.
        """
        paths = control_candidates(self.vehicle_id, self.appointment_id)
        path, value = probe_first(self.store, paths, is_control_map)
        with self._lock:
            if path is None:
                logger.info("Nessun controllo trovato per veicolo=%s appuntamento=%s",
                            self.vehicle_id, self.appointment_id)
                self.controls = {}
            else:
                logger.info("Utilizzo controlli da %s", path)
                self.controls = controls_from_map(value)
            self.source_path = path
            return dict(self.controls)

    def set_defaults(self, defaults: Mapping[str, ControlState]) -> None:
        with self._lock:
            self.defaults = dict(defaults)

    def default_for(self, parameter_id: str) -> Control:
        state = self.defaults.get(parameter_id, ControlState.NON_CONTROLLATO)
        return Control(state=state, note='')

    def control_for(self, parameter_id: str) -> Control:
        """Return the control, materialising the parameter default on first access."""
        with self._lock:
            control = self.controls.get(parameter_id)
            if control is None:
                control = self.default_for(parameter_id)
                self.controls[parameter_id] = control
            return control

    def snapshot(self) -> Dict[str, Control]:
        with self._lock:
            return dict(self.controls)

    # ------------------------------------------------------------------
    # State

    def set_state(self, parameter_id: str, state) -> Control:
        state = ControlState.parse(state)
        with self._lock:
            current = self.controls.get(parameter_id)
            control = current.with_state(state) if current else Control(state=state, note='')
            self.controls[parameter_id] = control
        report = self.writer.write(self.vehicle_id, self.appointment_id, parameter_id, control)
        if not report.ok:
            logger.error("Errore nell'aggiornamento dello stato del controllo %s", parameter_id)
        return control

    def toggle(self, parameter_id: str) -> Control:
        return self.set_state(parameter_id, self.control_for(parameter_id).state.next())

    # ------------------------------------------------------------------
    # Notes

    def set_note(self, parameter_id: str, note: str) -> None:
        """Schedule a note write after the quiet period, replacing any pending one."""
        note = '' if note is None else str(note)
        with self._lock:
            pending = self._pending.pop(parameter_id, None)
            if pending is not None:
                pending[0].cancel()
            self._generation += 1
            timer = threading.Timer(self.debounce_seconds, self._fire_note,
                                    args=(parameter_id, self._generation))
            timer.daemon = True
            self._pending[parameter_id] = (timer, note, self._generation)
            timer.start()

    def pending_notes(self) -> Dict[str, str]:
        with self._lock:
            return {pid: pending[1] for pid, pending in self._pending.items()}

    def flush_notes(self) -> None:
        """Write every pending note now instead of waiting for the timers."""
        with self._lock:
            parameter_ids = list(self._pending.keys())
        for parameter_id in parameter_ids:
            self._fire_note(parameter_id)

    def cancel_pending(self) -> None:
        with self._lock:
            for pending in self._pending.values():
                pending[0].cancel()
            self._pending.clear()

    def _fire_note(self, parameter_id: str, generation: Optional[int] = None) -> None:
        with self._lock:
            pending = self._pending.get(parameter_id)
            # A timer replaced by a later edit must not fire.
            if pending is None or (generation is not None and pending[2] != generation):
                return
            del self._pending[parameter_id]
            timer, note, _ = pending
            timer.cancel()
            base = self.controls.get(parameter_id) or self.default_for(parameter_id)
            control = base.with_note(note)
        report = self.writer.write(self.vehicle_id, self.appointment_id, parameter_id, control)
        if not report.ok:
            logger.error("Errore nell'aggiornamento delle note del controllo %s", parameter_id)
            return
        with self._lock:
            current = self.controls.get(parameter_id)
            self.controls[parameter_id] = current.with_note(note) if current else control

    # ------------------------------------------------------------------
    # Change notification

    def watch(self, on_change: Optional[Callable[[Dict[str, Control]], None]] = None) -> Callable[[], None]:
        """Follow the canonical controls path and adopt pushed values.

        Only available for a vehicle subject.  Returns the unsubscribe
        callable of the underlying store.
        """
        if not self.vehicle_id:
            raise ValueError("watch richiede un veicolo")

        def handle(value) -> None:
            if not is_control_map(value):
                return
            with self._lock:
                self.controls = controls_from_map(value)
                current = dict(self.controls)
            if on_change is not None:
                on_change(current)

        return self.store.subscribe(vehicle_controls_path(self.vehicle_id), handle)


def migrate_controls(store, vehicle_id: str) -> Optional[str]:
    """Copy a vehicle's controls from wherever they are found into both canonical paths.

    Returns the source path, or ``None`` when the vehicle has no
    controls.  Legacy copies are left where they are.
    """
    path, value = probe_first(store, control_candidates(vehicle_id), is_control_map)
    if path is None:
        return None
    payload = {pid: control.to_dict() for pid, control in controls_from_map(value).items()}
    targets = [vehicle_controls_path(vehicle_id), vehicle_checklist_path(vehicle_id)]
    report = write_each(store, [(target, payload) for target in targets if target != path])
    logger.info("Controlli del veicolo %s migrati da %s (%d percorsi scritti, %d errori)",
                vehicle_id, path, len(report.written), len(report.failed))
    return path
