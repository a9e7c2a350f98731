import pytest

from officina.errors import ValidationError
from officina.records import ChecklistParameter
from officina.sections import SectionModel, group_by_section


def _catalog(*rows):
    return {pid: ChecklistParameter(pid, pid.title(), section) for pid, section in rows}


CATALOG = _catalog(
    ('olio', 'Motore'),
    ('battistrada', 'Pneumatici'),
    ('filtro', 'Motore'),
    ('spazzole', 'Carrozzeria'),
    ('pressione', 'Pneumatici'),
)


def test_grouping_keeps_first_seen_section_order_and_catalog_order():
    grouped = group_by_section(CATALOG)
    assert list(grouped) == ['Motore', 'Pneumatici', 'Altro']
    assert grouped['Motore'] == ['olio', 'filtro']
    assert grouped['Pneumatici'] == ['battistrada', 'pressione']
    assert grouped['Altro'] == ['spazzole']


def test_flattened_order_follows_sections():
    model = SectionModel(CATALOG)
    assert model.flattened() == ['olio', 'filtro', 'battistrada', 'pressione', 'spazzole']


def test_first_section_is_active_initially():
    assert SectionModel(CATALOG).active_section == 'Motore'
    assert SectionModel().active_section is None


def test_active_section_falls_back_when_it_empties():
    model = SectionModel(_catalog(('olio', 'Motore'), ('pressione', 'Pneumatici')))
    assert model.active_section == 'Motore'
    model.set_parameters(_catalog(('pressione', 'Pneumatici')))
    assert model.active_section == 'Pneumatici'
    model.set_parameters({})
    assert model.active_section is None


def test_active_section_is_kept_when_still_present():
    model = SectionModel(CATALOG)
    model.select('Pneumatici')
    model.set_parameters(_catalog(('olio', 'Motore'), ('pressione', 'Pneumatici')))
    assert model.active_section == 'Pneumatici'


def test_select_unknown_section():
    with pytest.raises(ValidationError):
        SectionModel(CATALOG).select('Carrozzeria')


def test_tab_wraps_from_last_to_first():
    model = SectionModel(CATALOG)
    model.select('Altro')
    move = model.move_focus('spazzole')
    assert move.parameter_id == 'olio'
    assert move.section == 'Motore'
    assert move.section_changed
    assert move.delay == pytest.approx(0.1)
    assert model.active_section == 'Motore'


def test_shift_tab_wraps_from_first_to_last():
    model = SectionModel(CATALOG)
    move = model.move_focus('olio', backward=True)
    assert move.parameter_id == 'spazzole'
    assert model.active_section == 'Altro'


def test_tab_within_section_focuses_immediately():
    model = SectionModel(CATALOG)
    move = model.move_focus('olio')
    assert move.parameter_id == 'filtro'
    assert not move.section_changed
    assert move.delay == 0.0


def test_tab_from_unknown_id_and_empty_catalog():
    model = SectionModel(CATALOG, focus_delay=0.25)
    assert model.move_focus(None).parameter_id == 'olio'
    assert model.move_focus('manca', backward=True).delay == 0.25
    assert SectionModel().move_focus('olio') is None


def test_to_dict_lists_non_empty_sections():
    data = SectionModel(CATALOG).to_dict()
    assert data['activeSection'] == 'Motore'
    assert [s['name'] for s in data['sections']] == ['Motore', 'Pneumatici', 'Altro']
    assert data['sections'][0] == {'name': 'Motore', 'parameterIds': ['olio', 'filtro'], 'count': 2}
