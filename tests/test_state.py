"""
Tests for calibration phase transitions.
"""

import pytest

from steadygaze.core.state import CalibrationPhase, PhaseMachine, is_valid_transition


class TestTransitions:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        "from_phase,to_phase",
        [
            (CalibrationPhase.IDLE, CalibrationPhase.SETTLING),
            (CalibrationPhase.SETTLING, CalibrationPhase.COLLECTING),
            (CalibrationPhase.COLLECTING, CalibrationPhase.TRANSITIONING),
            (CalibrationPhase.TRANSITIONING, CalibrationPhase.SETTLING),
            (CalibrationPhase.TRANSITIONING, CalibrationPhase.FINALIZING),
            (CalibrationPhase.FINALIZING, CalibrationPhase.TRACKING),
            (CalibrationPhase.TRACKING, CalibrationPhase.IDLE),
        ],
    )
    def test_valid(self, from_phase, to_phase):
        assert is_valid_transition(from_phase, to_phase)

    @pytest.mark.parametrize(
        "from_phase,to_phase",
        [
            (CalibrationPhase.IDLE, CalibrationPhase.COLLECTING),
            (CalibrationPhase.SETTLING, CalibrationPhase.TRANSITIONING),
            (CalibrationPhase.COLLECTING, CalibrationPhase.FINALIZING),
            (CalibrationPhase.TRACKING, CalibrationPhase.SETTLING),
        ],
    )
    def test_invalid(self, from_phase, to_phase):
        assert not is_valid_transition(from_phase, to_phase)

    def test_same_phase_is_noop(self):
        assert is_valid_transition(CalibrationPhase.COLLECTING, CalibrationPhase.COLLECTING)


class TestPhaseMachine:
    """Tests for PhaseMachine."""

    def test_transition_records_previous(self):
        machine = PhaseMachine()

        assert machine.transition_to(CalibrationPhase.SETTLING) is True
        assert machine.current_phase == CalibrationPhase.SETTLING
        assert machine.previous_phase == CalibrationPhase.IDLE

    def test_invalid_transition_refused(self):
        machine = PhaseMachine()

        assert machine.can_transition_to(CalibrationPhase.TRACKING) is False
        assert machine.transition_to(CalibrationPhase.TRACKING) is False
        assert machine.current_phase == CalibrationPhase.IDLE

    def test_reset(self):
        machine = PhaseMachine(CalibrationPhase.COLLECTING)

        machine.reset()

        assert machine.current_phase == CalibrationPhase.IDLE
        assert machine.previous_phase == CalibrationPhase.COLLECTING
