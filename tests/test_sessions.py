import pytest

from officina.errors import ValidationError
from officina.sessions import ChecklistSession, SessionRegistry


def test_session_rows_use_catalog_defaults(store, two_sections):
    store.write('parameters', two_sections)
    session = ChecklistSession(store, vehicle_id='V1')
    session.load()
    assert session.sections.active_section == 'Motore'
    assert session.rows() == [{'id': 'olio', 'name': 'Olio', 'section': 'Motore', 'stato': 'DA FARE', 'note': ''}]
    assert session.rows('Pneumatici')[0]['stato'] == 'CONTROLLATO'


def test_refresh_keeps_selection_of_surviving_ids(store, two_sections):
    store.write('parameters', dict(two_sections, filtro={'name': 'Filtro', 'section': 'Motore'}))
    session = ChecklistSession(store, vehicle_id='V1')
    session.load()
    selection = session.selection()
    selection.enter()
    selection.toggle('olio')
    selection.toggle('filtro')
    store.remove('parameters/filtro')
    session.refresh_catalog()
    assert session.selection().selected == ['olio']
    assert session.selection().active


def test_refresh_moves_active_tab_when_it_empties(store, two_sections):
    store.write('parameters', two_sections)
    session = ChecklistSession(store, vehicle_id='V1')
    session.load()
    store.remove('parameters/olio')
    session.refresh_catalog()
    assert session.sections.active_section == 'Pneumatici'


def test_apply_bulk_state(store, two_sections):
    store.write('parameters', two_sections)
    session = ChecklistSession(store, vehicle_id='V1')
    session.load()
    session.selection().toggle('olio')
    assert session.apply_bulk_state('CONTROLLATO') == ['olio']
    assert store.read('vehicles/V1/lavorazione/controls/olio/stato') == 'CONTROLLATO'


def test_selection_without_sections(store):
    session = ChecklistSession(store, vehicle_id='V1')
    session.load()
    with pytest.raises(ValidationError):
        session.selection()


def test_registry_reuses_sessions_per_subject(store):
    registry = SessionRegistry(store)
    first = registry.open('V1', None)
    assert registry.open(' V1 ', '') is first
    assert registry.open('V1', 'A1') is not first
    assert len(registry) == 2
    assert registry.close('V1', None)
    assert not registry.close('V1', None)


def test_registry_requires_a_subject(store):
    with pytest.raises(ValidationError):
        SessionRegistry(store).open(None, '  ')


def test_closing_flushes_pending_notes(store):
    registry = SessionRegistry(store, debounce_seconds=60)
    session = registry.open('V1', None)
    session.controls.set_note('olio', 'da verificare')
    registry.close_all()
    assert store.read('vehicles/V1/lavorazione/controls/olio/note') == 'da verificare'


def test_reload_writes_pending_note_then_rereads(store, two_sections):
    store.write('parameters', two_sections)
    session = ChecklistSession(store, vehicle_id='V1', debounce_seconds=60)
    session.load()
    session.controls.set_note('olio', 'perdita')
    store.write('vehicles/V1/lavorazione/controls/pressione', {'stato': 'DA FARE', 'note': ''})
    session.reload()
    assert session.controls.pending_notes() == {}
    assert session.controls.control_for('olio').note == 'perdita'
    assert session.controls.control_for('pressione').state.value == 'DA FARE'


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_idle_sessions_are_closed(store):
    clock = FakeClock()
    registry = SessionRegistry(store, debounce_seconds=60, idle_seconds=10, clock=clock)
    first = registry.open('V1', None)
    first.controls.set_note('olio', 'da rivedere')
    clock.now = 5
    registry.open('V2', None)
    clock.now = 12
    assert registry.open('V2', None) is not None
    assert len(registry) == 1
    assert store.read('vehicles/V1/lavorazione/controls/olio/note') == 'da rivedere'
    assert registry.open('V1', None) is not first


def test_sessions_kept_without_idle_limit(store):
    clock = FakeClock()
    registry = SessionRegistry(store, clock=clock)
    first = registry.open('V1', None)
    clock.now = 10 ** 6
    assert registry.open('V1', None) is first
