import pytest

from officina.errors import ValidationError
from officina.states import ControlState, SheetState


def test_control_state_cycle_returns_to_start_after_three_steps():
    for state in ControlState:
        assert state.next().next().next() is state
    assert ControlState.CONTROLLATO.next() is ControlState.NON_CONTROLLATO
    assert ControlState.NON_CONTROLLATO.next() is ControlState.DA_FARE
    assert ControlState.DA_FARE.next() is ControlState.CONTROLLATO


def test_control_state_values_match_stored_strings():
    assert ControlState.NON_CONTROLLATO.value == 'NON CONTROLLATO'
    assert ControlState.parse('DA FARE') is ControlState.DA_FARE


def test_control_state_parse_rejects_unknown_values():
    with pytest.raises(ValidationError):
        ControlState.parse('FATTO')


def test_sheet_state_is_two_state():
    assert SheetState.CONTROLLATO.next() is SheetState.DA_FARE
    assert SheetState.DA_FARE.next() is SheetState.CONTROLLATO
    assert SheetState.coerce('NON CONTROLLATO') is SheetState.DA_FARE
    assert SheetState.coerce(None) is SheetState.DA_FARE
