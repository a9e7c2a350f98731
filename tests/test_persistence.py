from officina.persistence import ControlWriter, probe_first, write_each
from officina.records import Control, is_control_map
from officina.states import ControlState

from conftest import FlakyStore


def test_writer_targets():
    writer = ControlWriter(None)
    assert writer.targets('V1', None, 'olio') == [
        'vehicles/V1/lavorazione/controls/olio',
        'vehicles/V1/lavorazione/checklist/olio',
    ]
    assert writer.targets('V1', 'A1', 'olio')[-1] == 'appointments/A1/checklist/olio'
    assert writer.targets(None, 'A1', 'olio') == ['appointments/A1/checklist/olio']


def test_writer_mirrors_to_every_path(store):
    report = ControlWriter(store).write('V1', 'A1', 'olio', Control(ControlState.DA_FARE, 'cambiare'))
    assert report.ok
    expected = {'stato': 'DA FARE', 'note': 'cambiare'}
    assert store.read('vehicles/V1/lavorazione/controls/olio') == expected
    assert store.read('vehicles/V1/lavorazione/checklist/olio') == expected
    assert store.read('appointments/A1/checklist/olio') == expected


def test_writer_failure_on_one_path_keeps_the_others():
    store = FlakyStore(fail_prefixes=['vehicles/V1/lavorazione/controls'])
    report = ControlWriter(store).write('V1', 'A1', 'olio', Control(ControlState.CONTROLLATO))
    assert not report.ok
    assert report.failed == ['vehicles/V1/lavorazione/controls/olio']
    assert store.read('vehicles/V1/lavorazione/checklist/olio')['stato'] == 'CONTROLLATO'
    assert store.read('appointments/A1/checklist/olio')['stato'] == 'CONTROLLATO'


def test_probe_first_skips_unreadable_and_invalid_candidates():
    store = FlakyStore({
        'a': {'controls': {'x': {'note': 'senza stato'}}},
        'b': {'controls': {'x': {'stato': 'CONTROLLATO'}}},
        'c': {'controls': {'y': {'stato': 'DA FARE'}}},
    }, fail_reads=['zero'])
    path, value = probe_first(store, ['zero', 'nulla', 'a/controls', 'b/controls', 'c/controls'], is_control_map)
    assert path == 'b/controls'
    assert value == {'x': {'stato': 'CONTROLLATO'}}


def test_probe_first_without_match(store):
    assert probe_first(store, ['a', 'b'], is_control_map) == (None, None)


def test_write_each_with_update(store):
    store.write('x', {'a': 1})
    report = write_each(store, [('x', {'b': 2})], method='update')
    assert report.written == ['x']
    assert store.read('x') == {'a': 1, 'b': 2}
