import pytest

from officina.errors import ValidationError
from officina.inspection import SHEET_ITEMS, InspectionSheet
from officina.states import SheetState

from conftest import FlakyStore


def test_defaults_when_nothing_is_stored(store):
    sheet = InspectionSheet(store, 'V1')
    data = sheet.load()
    assert set(data) == set(SHEET_ITEMS)
    assert data['livelloOlioMotore'] == {'stato': 'CONTROLLATO', 'note': ''}
    assert data['filtroAria']['stato'] == 'DA FARE'
    assert sheet.source_path is None


def test_appointment_sheet_stored_directly_wins(store):
    store.write('appointments/A1', {'livelloOlioMotore': {'stato': 'DA FARE', 'note': ''}})
    store.write('vehicles/V1/lavorazione/checklist/livelloOlioMotore', {'stato': 'CONTROLLATO'})
    sheet = InspectionSheet(store, 'V1', 'A1')
    assert sheet.load()['livelloOlioMotore']['stato'] == 'DA FARE'
    assert sheet.source_path == 'appointments/A1'


def test_vehicle_sheet_and_comments(store):
    store.write('vehicles/V1', {'targa': 'AB123CD', 'lavorazione': {
        'checklist': {'filtroAria': {'stato': 'CONTROLLATO', 'note': ''}, 'provaSuStrada': {'stato': '??'}},
        'commenti': 'rumore alla ruota',
    }})
    sheet = InspectionSheet(store, 'V1')
    data = sheet.load()
    assert sheet.source_path == 'vehicles/V1/lavorazione'
    assert data['filtroAria'] == {'stato': 'CONTROLLATO', 'note': ''}
    assert data['provaSuStrada'] == {'stato': 'DA FARE', 'note': ''}
    assert sheet.comments == 'rumore alla ruota'


def test_toggle_is_two_state_and_staged(store):
    sheet = InspectionSheet(store, 'V1')
    sheet.load()
    assert sheet.toggle('livelloOlioMotore') is SheetState.DA_FARE
    assert sheet.toggle('livelloOlioMotore') is SheetState.CONTROLLATO
    assert sheet.needs_saving
    assert store.read('vehicles') is None


def test_unknown_key(store):
    with pytest.raises(ValidationError):
        InspectionSheet(store, 'V1').toggle('tettuccio')


def test_save_writes_every_location(store):
    store.write('vehicles/V1/targa', 'AB123CD')
    sheet = InspectionSheet(store, 'V1', 'A1')
    sheet.load()
    sheet.toggle('filtroAria')
    sheet.set_note('filtroAria', 'sostituito')
    report = sheet.save()
    assert report.ok
    assert not sheet.needs_saving
    assert 'appointments/A1/checklist' in report.written
    expected = {'stato': 'CONTROLLATO', 'note': 'sostituito'}
    assert store.read('vehicles/V1/checklist/filtroAria') == expected
    assert store.read('vehicles/V1/lavorazione/checklist/filtroAria') == expected
    assert store.read('appointments/A1/checklist/filtroAria') == expected
    assert store.read('vehicles/V1/targa') == 'AB123CD'


def test_save_continues_after_a_failing_location():
    store = FlakyStore(fail_prefixes=['vehicles/V1/fase2'])
    sheet = InspectionSheet(store, 'V1')
    sheet.toggle('provaSuStrada')
    report = sheet.save()
    assert report.failed == ['vehicles/V1/fase2']
    assert store.read('lavorazione/V1/checklist/provaSuStrada/stato') == 'DA FARE'


def test_save_comments_only_on_existing_vehicle_nodes(store):
    store.write('vehicles/V1/lavorazione/inizio', 1)
    report = InspectionSheet(store, 'V1').save_comments('tutto ok')
    assert report.written == ['vehicles/V1', 'vehicles/V1/lavorazione']
    assert store.read('vehicles/V1/lavorazione/noteGenerali') == 'tutto ok'
    assert store.read('workingPhase') is None


def test_to_dict_groups_items_by_section(store):
    data = InspectionSheet(store, 'V1').to_dict()
    assert [s['name'] for s in data['sections']] == [
        'Motore', 'Sistema Sterzo', 'Sistema Freni', 'Sospensione Anteriore', 'Pneumatici', 'Altro']
    assert data['sections'][-1]['items'][0]['key'] == 'provaSuStrada'
