"""
Calibration phase management.

Defines the phase machine for a calibration session with clear transitions.
"""

from enum import Enum, auto
from typing import Optional, Set


class CalibrationPhase(Enum):
    """
    Calibration session phases.

    Phase transitions:
        IDLE -> SETTLING -> COLLECTING -> TRANSITIONING -> SETTLING (next target)
        TRANSITIONING -> FINALIZING -> TRACKING (last target)
        Any -> IDLE (cancel / restart)
    """

    IDLE = auto()           # Session created but not started, or torn down
    SETTLING = auto()       # Gaze landing on a new target, samples discarded
    COLLECTING = auto()     # Dwell window, samples recorded for the target
    TRANSITIONING = auto()  # Indicator travelling to the next target
    FINALIZING = auto()     # Aggregating samples and solving the mapping
    TRACKING = auto()       # Mapping learned, runtime tracking (terminal)


# Define valid phase transitions
_VALID_TRANSITIONS: dict[CalibrationPhase, Set[CalibrationPhase]] = {
    CalibrationPhase.IDLE: {
        CalibrationPhase.SETTLING,
    },
    CalibrationPhase.SETTLING: {
        CalibrationPhase.COLLECTING,
        CalibrationPhase.IDLE,
    },
    CalibrationPhase.COLLECTING: {
        CalibrationPhase.TRANSITIONING,
        CalibrationPhase.IDLE,
    },
    CalibrationPhase.TRANSITIONING: {
        CalibrationPhase.SETTLING,
        CalibrationPhase.FINALIZING,
        CalibrationPhase.IDLE,
    },
    CalibrationPhase.FINALIZING: {
        CalibrationPhase.TRACKING,
        CalibrationPhase.IDLE,
    },
    CalibrationPhase.TRACKING: {
        CalibrationPhase.IDLE,
    },
}

# Phases during which a session owns pending timers
ACTIVE_PHASES = frozenset(
    {
        CalibrationPhase.SETTLING,
        CalibrationPhase.COLLECTING,
        CalibrationPhase.TRANSITIONING,
        CalibrationPhase.FINALIZING,
    }
)


def is_valid_transition(from_phase: CalibrationPhase, to_phase: CalibrationPhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Target phase

    Returns:
        True if transition is allowed, False otherwise
    """
    # Same phase is always valid (no-op)
    if from_phase == to_phase:
        return True

    return to_phase in _VALID_TRANSITIONS.get(from_phase, set())


class PhaseMachine:
    """Tracks the single active calibration phase with validated transitions."""

    def __init__(self, initial_phase: CalibrationPhase = CalibrationPhase.IDLE):
        self._current_phase = initial_phase
        self._previous_phase: Optional[CalibrationPhase] = None

    @property
    def current_phase(self) -> CalibrationPhase:
        """Get current phase."""
        return self._current_phase

    @property
    def previous_phase(self) -> Optional[CalibrationPhase]:
        """Get previous phase."""
        return self._previous_phase

    def transition_to(self, new_phase: CalibrationPhase) -> bool:
        """
        Transition to a new phase.

        Args:
            new_phase: Target phase

        Returns:
            True if transition succeeded, False if invalid
        """
        if not is_valid_transition(self._current_phase, new_phase):
            return False

        self._previous_phase = self._current_phase
        self._current_phase = new_phase
        return True

    def can_transition_to(self, new_phase: CalibrationPhase) -> bool:
        """Check if a transition would be valid without performing it."""
        return is_valid_transition(self._current_phase, new_phase)

    def reset(self):
        """Reset to IDLE."""
        self._previous_phase = self._current_phase
        self._current_phase = CalibrationPhase.IDLE
