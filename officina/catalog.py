"""Checklist parameter catalog.

The catalog lives under ``parameters`` in the tree, one child per
parameter::

    {
        "livelloOlioMotore": {"name": "Livello olio motore", "section": "Motore", "defaultState": "CONTROLLATO"},
        "spazzole_1718000000000": {"name": "Spazzole", "section": "Altro", "defaultState": "DA FARE"}
    }

Seeded parameters keep their historical keys; parameters created from
the editor get ``<slug>_<epoch millis>`` ids.  Creating a parameter also
inserts its default control into every vehicle currently in the work
phase.  That propagation, like the bulk operations, is a sequence of
independent writes: a failure on one vehicle or one id is logged and
the remaining ones are still processed.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import ParameterNotFound, StoreError, ValidationError
from .paths import PARAMETERS_PATH, VEHICLES_PATH, parameter_path
from .persistence import ControlWriter
from .records import ChecklistParameter, Control, new_parameter_id
from .states import ControlState

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'section', 'defaultState')


@dataclass
class BulkResult:
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


@dataclass
class FanOutResult:
    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def _required(value: Any, label: str) -> str:
    text = str(value).strip() if value is not None else ''
    if not text:
        raise ValidationError(f"Il campo {label} è obbligatorio")
    return text


def _parameter_id(value: Any) -> str:
    """A single catalog key: never blank and never a nested path."""
    parameter_id = str(value).strip() if value is not None else ''
    if not parameter_id or '/' in parameter_id:
        raise ValidationError(f"Identificativo di parametro non valido: {value!r}")
    return parameter_id


class ParameterCatalog:
    def __init__(self, store, writer: Optional[ControlWriter] = None) -> None:
        self.store = store
        self.writer = writer or ControlWriter(store)

    # ------------------------------------------------------------------
    # Reads

    def load(self) -> 'OrderedDict[str, ChecklistParameter]':
        """Return every parameter in stored order; an absent node is an empty catalog."""
        data = self.store.read(PARAMETERS_PATH)
        catalog: 'OrderedDict[str, ChecklistParameter]' = OrderedDict()
        if not isinstance(data, Mapping):
            return catalog
        for parameter_id, raw in data.items():
            if not isinstance(raw, Mapping):
                logger.warning("Parametro %s ignorato: formato non valido", parameter_id)
                continue
            catalog[str(parameter_id)] = ChecklistParameter.from_dict(str(parameter_id), raw)
        return catalog

    def get(self, parameter_id: str) -> ChecklistParameter:
        parameter_id = _parameter_id(parameter_id)
        raw = self.store.read(parameter_path(parameter_id))
        if not isinstance(raw, Mapping):
            raise ParameterNotFound(parameter_id)
        return ChecklistParameter.from_dict(parameter_id, raw)

    def find_by_name(self, name: str, section: Optional[str] = None) -> Optional[ChecklistParameter]:
        """Case-insensitive lookup by name, optionally restricted to a section."""
        wanted = (name or '').strip().lower()
        for parameter in self.load().values():
            if parameter.name.lower() != wanted:
                continue
            if section and parameter.section != section:
                continue
            return parameter
        return None

    # ------------------------------------------------------------------
    # Writes

    def create(self, name: str, section: str,
               default_state: Any = ControlState.NON_CONTROLLATO) -> str:
        """Add a parameter and propagate it to vehicles in the work phase.

        Returns the new id.  Raises :class:`ValidationError` for a blank
        name or section; a failure writing the parameter itself raises
        :class:`StoreError`.  Propagation failures do not.
        """
        name = _required(name, 'nome')
        section = _required(section, 'sezione')
        state = ControlState.parse(default_state)
        parameter = ChecklistParameter(id=new_parameter_id(name), name=name,
                                       section=section, default_state=state)
        self.store.write(parameter_path(parameter.id), parameter.to_dict())
        logger.info("Parametro %s aggiunto alla sezione %s con id %s", name, section, parameter.id)
        self.propagate(parameter)
        return parameter.id

    def propagate(self, parameter: ChecklistParameter) -> FanOutResult:
        """Insert the parameter's default control into every in-progress vehicle.

        A vehicle is in progress when its record has a ``lavorazione``
        child.  Vehicles without it are left untouched.
        """
        result = FanOutResult()
        try:
            vehicles = self.store.read(VEHICLES_PATH)
        except StoreError as exc:
            logger.error("Impossibile leggere i veicoli per propagare %s: %s", parameter.id, exc)
            return result
        if not isinstance(vehicles, Mapping):
            return result
        control = Control(state=parameter.default_state, note='')
        for vehicle_id, record in vehicles.items():
            if not isinstance(record, Mapping) or record.get('lavorazione') is None:
                continue
            report = self.writer.write(str(vehicle_id), None, parameter.id, control)
            if report.ok:
                result.updated.append(str(vehicle_id))
            else:
                logger.error("Propagazione di %s al veicolo %s fallita", parameter.id, vehicle_id)
                result.failed.append(str(vehicle_id))
        logger.info("Parametro %s propagato a %d veicoli in lavorazione (%d errori)",
                    parameter.id, len(result.updated), len(result.failed))
        return result

    def update(self, parameter_id: str, fields: Mapping[str, Any]) -> None:
        """Overwrite the given fields of an existing parameter (last writer wins)."""
        parameter_id = _parameter_id(parameter_id)
        changes = self._clean_fields(fields)
        self.get(parameter_id)
        if changes:
            self.store.update(parameter_path(parameter_id), changes)

    def remove(self, parameter_id: str) -> None:
        """Delete the catalog entry.  Recorded controls for it are not touched."""
        parameter_id = _parameter_id(parameter_id)
        self.store.remove(parameter_path(parameter_id))

    def bulk_update(self, parameter_ids: Iterable[str], section: Optional[str] = None,
                    default_state: Any = None) -> BulkResult:
        """Apply the same section and/or default state to every id.

        Ids that are not in the catalog are reported as failed and never
        written, so no partial record is created for them.
        """
        parameter_ids = [_parameter_id(pid) for pid in parameter_ids]
        changes: Dict[str, Any] = {}
        if section is not None:
            changes['section'] = _required(section, 'sezione')
        if default_state is not None:
            changes['defaultState'] = ControlState.parse(default_state).value
        if not changes:
            raise ValidationError("Nessuna modifica da applicare")
        existing = self.load()
        result = BulkResult()
        for parameter_id in parameter_ids:
            if parameter_id not in existing:
                logger.warning("Parametro %s non trovato, non aggiornato", parameter_id)
                result.failed.append(parameter_id)
                continue
            try:
                self.store.update(parameter_path(parameter_id), changes)
            except StoreError as exc:
                logger.error("Aggiornamento del parametro %s fallito: %s", parameter_id, exc)
                result.failed.append(parameter_id)
            else:
                result.succeeded.append(parameter_id)
        return result

    def bulk_delete(self, parameter_ids: Iterable[str]) -> BulkResult:
        parameter_ids = [_parameter_id(pid) for pid in parameter_ids]
        result = BulkResult()
        for parameter_id in parameter_ids:
            try:
                self.store.remove(parameter_path(parameter_id))
            except StoreError as exc:
                logger.error("Eliminazione del parametro %s fallita: %s", parameter_id, exc)
                result.failed.append(parameter_id)
            else:
                result.succeeded.append(parameter_id)
        return result

    def seed(self, defaults: Mapping[str, Mapping[str, Any]]) -> List[str]:
        """Write stable-key parameters that are not in the catalog yet."""
        existing = self.load()
        created: List[str] = []
        for parameter_id, data in defaults.items():
            if parameter_id in existing:
                continue
            parameter = ChecklistParameter.from_dict(parameter_id, data)
            self.store.write(parameter_path(parameter_id), parameter.to_dict())
            created.append(parameter_id)
        return created

    @staticmethod
    def _clean_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = [key for key in fields if key not in EDITABLE_FIELDS]
        if unknown:
            raise ValidationError(f"Campi non modificabili: {', '.join(unknown)}")
        changes: Dict[str, Any] = {}
        if 'name' in fields:
            changes['name'] = _required(fields['name'], 'nome')
        if 'section' in fields:
            changes['section'] = _required(fields['section'], 'sezione')
        if 'defaultState' in fields:
            changes['defaultState'] = ControlState.parse(fields['defaultState']).value
        return changes
