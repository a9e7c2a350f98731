from officina.paths import (
    control_candidates,
    legacy_vehicle_paths,
    sheet_appointment_paths,
    sheet_vehicle_paths,
    vehicle_checklist_path,
    vehicle_controls_path,
)


def test_canonical_vehicle_paths():
    assert vehicle_controls_path('V1') == 'vehicles/V1/lavorazione/controls'
    assert vehicle_checklist_path('V1') == 'vehicles/V1/lavorazione/checklist'


def test_candidates_put_appointment_first_then_canonical_then_legacy():
    paths = control_candidates('V1', 'A9')
    assert paths[0] == 'appointments/A9/checklist'
    assert paths[1:3] == ['vehicles/V1/lavorazione/controls', 'vehicles/V1/lavorazione/checklist']
    assert paths[3:] == legacy_vehicle_paths('V1')
    assert paths[-1] == 'lavorazione/V1/checklist'


def test_candidates_without_appointment_or_vehicle():
    assert control_candidates('V1')[0] == 'vehicles/V1/lavorazione/controls'
    assert control_candidates(None, 'A1') == ['appointments/A1/checklist']
    assert control_candidates() == []


def test_legacy_paths_keep_historical_order():
    assert legacy_vehicle_paths('X') == [
        'vehicles/X/fase2/controls',
        'vehicles/X/fase2/checklist',
        'vehicles/X/workingPhase/controls',
        'vehicles/X/workingPhase/checklist',
        'workingPhase/X/controls',
        'workingPhase/X/checklist',
        'lavorazione/X/controls',
        'lavorazione/X/checklist',
    ]


def test_sheet_paths():
    assert sheet_appointment_paths('A1')[0] == 'appointments/A1'
    assert 'vehicles/V1/lavorazione' in sheet_vehicle_paths('V1')
    assert sheet_vehicle_paths('V1')[-1] == 'lavorazione/V1'
