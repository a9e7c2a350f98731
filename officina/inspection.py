"""Static vehicle inspection sheet ("scheda ispezione veicolo").

Older workshop tablets fill a fixed two-state sheet instead of the
dynamic checklist.  Its items use stable keys and it is stored as a
``checklist`` child of several vehicle and appointment nodes::

    vehicles/V1/lavorazione = {
        "checklist": {
            "livelloOlioMotore": {"stato": "CONTROLLATO", "note": ""},
            "filtroAria": {"stato": "DA FARE", "note": "sostituire"}
        },
        "commenti": "..."
    }

Edits are staged locally and written only on :meth:`InspectionSheet.save`,
which updates every known location independently.  When a stored note
is an empty string it stays empty: only missing notes are filled with
``""``.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import StoreError, ValidationError
from .paths import sheet_appointment_paths, sheet_vehicle_paths
from .persistence import WriteReport, write_each
from .states import SheetState

logger = logging.getLogger(__name__)

# Key -> (label, section, default state)
SHEET_ITEMS: 'OrderedDict[str, Tuple[str, str, SheetState]]' = OrderedDict([
    ('livelloOlioMotore', ('Livello olio motore', 'Motore', SheetState.CONTROLLATO)),
    ('livelloRefrigerante', ('Livello refrigerante', 'Motore', SheetState.CONTROLLATO)),
    ('olioMotore', ('Olio motore', 'Motore', SheetState.DA_FARE)),
    ('filtroOlio', ('Filtro olio', 'Motore', SheetState.DA_FARE)),
    ('filtroAria', ('Filtro aria', 'Motore', SheetState.DA_FARE)),
    ('filtroAbitacolo', ('Filtro abitacolo', 'Motore', SheetState.DA_FARE)),
    ('cinghiaServizi', ('Cinghia servizi', 'Motore', SheetState.CONTROLLATO)),
    ('cinghiaDistribuzione', ('Cinghia distribuzione', 'Motore', SheetState.CONTROLLATO)),
    ('tiranteDx', ('Tirante DX', 'Sistema Sterzo', SheetState.CONTROLLATO)),
    ('tiranteSx', ('Tirante SX', 'Sistema Sterzo', SheetState.CONTROLLATO)),
    ('testinaDx', ('Testina DX', 'Sistema Sterzo', SheetState.CONTROLLATO)),
    ('testinaSx', ('Testina SX', 'Sistema Sterzo', SheetState.CONTROLLATO)),
    ('cuffiaTiranteDx', ('Cuffia tirante DX', 'Sistema Sterzo', SheetState.CONTROLLATO)),
    ('cuffiaTiranteSx', ('Cuffia tirante SX', 'Sistema Sterzo', SheetState.CONTROLLATO)),
    ('livelloOlioFreni', ('Livello olio freni', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('discoAntSx', ('Disco anteriore SX', 'Sistema Freni', SheetState.DA_FARE)),
    ('discoAntDx', ('Disco anteriore DX', 'Sistema Freni', SheetState.DA_FARE)),
    ('discoPostSx', ('Disco posteriore SX', 'Sistema Freni', SheetState.DA_FARE)),
    ('discoPostDx', ('Disco posteriore DX', 'Sistema Freni', SheetState.DA_FARE)),
    ('pastiglieAntSx', ('Pastiglie anteriori SX', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('pastiglieAntDx', ('Pastiglie anteriori DX', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('pastigliePostSx', ('Pastiglie posteriori SX', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('pastigliePostDx', ('Pastiglie posteriori DX', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('tubiFrenoAnt', ('Tubi freno anteriori', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('tubiFrenoPost', ('Tubi freno posteriori', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('sistemaVacuum', ('Sistema vacuum', 'Sistema Freni', SheetState.CONTROLLATO)),
    ('ammortizzatoreAnterioreS', ('Ammortizzatore anteriore SX', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('ammortizzatoreAnterioreD', ('Ammortizzatore anteriore DX', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('paraPolvere', ('Parapolvere', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('cuffiaStelo', ('Cuffia stelo', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('mollaElicoidaleAnterioreS', ('Molla elicoidale anteriore SX', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('mollaElicoidaleAnterioreD', ('Molla elicoidale anteriore DX', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('tiranteAmmortizzatoreSospesoS', ('Tirante ammortizzatore sospeso SX', 'Sospensione Anteriore', SheetState.DA_FARE)),
    ('tiranteAmmortizzatoreSospesoD', ('Tirante ammortizzatore sospeso DX', 'Sospensione Anteriore', SheetState.DA_FARE)),
    ('braccioInferioreS', ('Braccio inferiore SX', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('braccioInferioreD', ('Braccio inferiore DX', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('barraStabilizzatriceAnte', ('Barra stabilizzatrice anteriore', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('gomminiBarraStabilizzatrice', ('Gommini barra stabilizzatrice', 'Sospensione Anteriore', SheetState.CONTROLLATO)),
    ('battistradaAnt', ('Battistrada anteriore', 'Pneumatici', SheetState.CONTROLLATO)),
    ('battistradaPost', ('Battistrada posteriore', 'Pneumatici', SheetState.CONTROLLATO)),
    ('controlloPressione', ('Controllo pressione', 'Pneumatici', SheetState.CONTROLLATO)),
    ('provaSuStrada', ('Prova su strada', 'Altro', SheetState.CONTROLLATO)),
])

# Key that identifies a node holding the sheet directly.
SHEET_MARKER = 'livelloOlioMotore'

COMMENT_FIELDS = ('commenti', 'note', 'noteGenerali')


def default_sheet() -> Dict[str, Dict[str, str]]:
    return {key: {'stato': state.value, 'note': ''} for key, (_, _, state) in SHEET_ITEMS.items()}


def catalog_defaults() -> 'OrderedDict[str, Dict[str, str]]':
    """The sheet items expressed as catalog parameters, for seeding."""
    return OrderedDict(
        (key, {'name': label, 'section': section, 'defaultState': state.value})
        for key, (label, section, state) in SHEET_ITEMS.items()
    )


def _normalise(checklist: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
    result: Dict[str, Dict[str, str]] = {}
    for key, entry in checklist.items():
        if not isinstance(entry, Mapping):
            continue
        note = entry.get('note')
        result[str(key)] = {
            'stato': SheetState.coerce(entry.get('stato')).value,
            'note': '' if note is None else str(note),
        }
    return result


class InspectionSheet:
    def __init__(self, store, vehicle_id: str, appointment_id: Optional[str] = None) -> None:
        if not vehicle_id:
            raise ValidationError("Il veicolo è obbligatorio")
        self.store = store
        self.vehicle_id = vehicle_id
        self.appointment_id = appointment_id or None
        self.saved: Dict[str, Dict[str, str]] = default_sheet()
        self.staged: Dict[str, Dict[str, str]] = {}
        self.comments = ''
        self.source_path: Optional[str] = None

    @property
    def needs_saving(self) -> bool:
        return bool(self.staged)

    def _read(self, path: str) -> Any:
        try:
            return self.store.read(path)
        except StoreError as exc:
            logger.error("Errore nel caricamento dal percorso %s: %s", path, exc)
            return None

    def load(self) -> Dict[str, Dict[str, str]]:
        found: Optional[Mapping[str, Any]] = None
        found_path: Optional[str] = None
        if self.appointment_id:
            for path in sheet_appointment_paths(self.appointment_id):
                data = self._read(path)
                if not isinstance(data, Mapping):
                    continue
                if isinstance(data.get('checklist'), Mapping):
                    found, found_path = data['checklist'], path
                    break
                if data.get(SHEET_MARKER) is not None:
                    found, found_path = data, path
                    break
        for path in sheet_vehicle_paths(self.vehicle_id):
            data = self._read(path)
            if not isinstance(data, Mapping):
                continue
            if not self.comments and data.get('commenti'):
                self.comments = str(data['commenti'])
            if found is None and isinstance(data.get('checklist'), Mapping):
                found, found_path = data['checklist'], path
        if found is not None:
            logger.info("Checklist caricata dal percorso %s", found_path)
            self.saved = {**default_sheet(), **_normalise(found)}
        else:
            logger.warning("Nessun dato di checklist trovato per il veicolo %s", self.vehicle_id)
        self.source_path = found_path
        self.staged = {}
        return self.current()

    def current(self) -> Dict[str, Dict[str, str]]:
        merged = {key: dict(value) for key, value in self.saved.items()}
        for key, value in self.staged.items():
            merged[key] = dict(value)
        return merged

    def _entry(self, key: str) -> Dict[str, str]:
        if key in self.staged:
            return dict(self.staged[key])
        if key in self.saved:
            return dict(self.saved[key])
        if key in SHEET_ITEMS:
            return {'stato': SHEET_ITEMS[key][2].value, 'note': ''}
        raise ValidationError(f"Voce sconosciuta: {key}")

    def toggle(self, key: str) -> SheetState:
        entry = self._entry(key)
        state = SheetState.coerce(entry['stato']).next()
        entry['stato'] = state.value
        self.staged[key] = entry
        return state

    def set_note(self, key: str, note: str) -> None:
        entry = self._entry(key)
        note = '' if note is None else str(note)
        if entry.get('note') == note:
            return
        entry['note'] = note
        self.staged[key] = entry

    def save(self) -> WriteReport:
        """Write the merged sheet as ``checklist`` on every known location."""
        merged = self.current()
        paths: List[str] = []
        if self.appointment_id:
            paths.append(f"appointments/{self.appointment_id}")
            paths.append(f"appointments/{self.appointment_id}/checklist")
        paths.extend(sheet_vehicle_paths(self.vehicle_id))
        report = write_each(self.store, [(path, {'checklist': merged}) for path in paths], method='update')
        self.saved = merged
        self.staged = {}
        logger.info("Checklist del veicolo %s salvata in %d percorsi (%d errori)",
                    self.vehicle_id, len(report.written), len(report.failed))
        return report

    def save_comments(self, text: str) -> WriteReport:
        """Store general comments on every vehicle node that already exists."""
        text = '' if text is None else str(text)
        self.comments = text
        fields = {name: text for name in COMMENT_FIELDS}
        targets = [(path, fields) for path in sheet_vehicle_paths(self.vehicle_id)
                   if self._read(path) is not None]
        return write_each(self.store, targets, method='update')

    def to_dict(self) -> Dict[str, Any]:
        current = self.current()
        sections: 'OrderedDict[str, List[Dict[str, str]]]' = OrderedDict()
        for key, (label, section, _) in SHEET_ITEMS.items():
            entry = current.get(key) or {'stato': SHEET_ITEMS[key][2].value, 'note': ''}
            sections.setdefault(section, []).append({'key': key, 'label': label, **entry})
        return {
            'vehicleId': self.vehicle_id,
            'appointmentId': self.appointment_id,
            'sections': [{'name': name, 'items': items} for name, items in sections.items()],
            'comments': self.comments,
            'needsSaving': self.needs_saving,
        }
