"""
Calibration session: guided procedure learning the gaze-to-screen mapping.

Each target goes through three timed windows:

    SETTLING      gaze lands on the target, samples discarded
    COLLECTING    dwell window, filtered samples recorded
    TRANSITIONING indicator travels to the next target, nothing recorded

After the last target the session aggregates every sample set, solves the
affine mapping and enters TRACKING, where it stays until restarted.
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from steadygaze.core.config import CalibrationConfig, validate_calibration_config
from steadygaze.core.state import ACTIVE_PHASES, CalibrationPhase, PhaseMachine
from steadygaze.gaze.aggregator import SampleAggregator
from steadygaze.gaze.mapping import AffineMappingSolver, MappingParameters
from steadygaze.gaze.types import NormalizedPoint
from steadygaze.utils.logger import get_logger
from steadygaze.utils.timing import Scheduler, TimerHandle

logger = get_logger(__name__)


@dataclass(frozen=True)
class TargetResult:
    """Outcome of one calibration target."""

    index: int
    target: NormalizedPoint
    aggregated: NormalizedPoint  # Representative gaze for this target
    sample_count: int
    used_fallback: bool  # True if no samples arrived and the target stood in


@dataclass(frozen=True)
class CalibrationResult:
    """Learned mapping plus the per-target correspondence it came from."""

    parameters: MappingParameters
    targets: Tuple[TargetResult, ...]

    @property
    def fallback_targets(self) -> List[int]:
        """Indices of targets that contributed no real samples."""
        return [t.index for t in self.targets if t.used_fallback]


class CalibrationSession:
    """
    Timer-driven calibration state machine.

    Timers come from the injected scheduler. Every scheduled callback
    carries the generation it was created in; restart() and cancel() bump
    the generation so a callback that still fires afterwards is ignored.

    Samples and timer callbacks are serialized through one re-entrant lock.
    """

    def __init__(
        self,
        config: CalibrationConfig,
        scheduler: Scheduler,
        on_complete: Optional[Callable[[CalibrationResult], None]] = None,
        on_phase_change: Optional[Callable[[CalibrationPhase, int], None]] = None,
        lock: Optional["threading.RLock"] = None,
    ):
        """
        Initialize session.

        Args:
            config: Calibration configuration (targets, durations, policies)
            scheduler: Source of delayed callbacks
            on_complete: Called with the result when TRACKING is reached
            on_phase_change: Called with (phase, target_index) on every transition
            lock: Re-entrant lock shared with the owner (private lock if omitted)

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        validate_calibration_config(config)

        self._config = config
        self._scheduler = scheduler
        self._on_complete = on_complete
        self._on_phase_change = on_phase_change

        self._targets: Tuple[NormalizedPoint, ...] = tuple(
            NormalizedPoint(float(x), float(y)) for x, y in config.target_positions
        )
        # One growable sample list per target index
        self._samples: List[List[NormalizedPoint]] = [[] for _ in self._targets]

        self._aggregator = SampleAggregator(config.aggregation, config.trim_proportion)
        self._solver = AffineMappingSolver(config.variance_epsilon)

        self._phases = PhaseMachine()
        self._target_index = 0
        self._generation = 0
        self._pending: Optional[TimerHandle] = None
        self._result: Optional[CalibrationResult] = None
        self._lock = lock or threading.RLock()

        logger.info(
            f"CalibrationSession initialized: {len(self._targets)} targets, "
            f"settle={config.settle_seconds}s, dwell={config.dwell_seconds}s, "
            f"travel={config.travel_seconds}s"
        )

    # Lifecycle

    def start(self):
        """Start calibration from the first target, discarding any previous run."""
        with self._lock:
            self._teardown()
            self._result = None
            logger.info(f"Calibration started: {len(self._targets)} targets")
            self._enter_target(0)

    def restart(self):
        """Restart on an external recalibration request."""
        logger.info("Calibration restart requested")
        self.start()

    def cancel(self):
        """
        Stop the session, dropping pending timers and in-progress samples.

        A finished session is left in TRACKING with its result.
        """
        with self._lock:
            if not self.is_active:
                return
            self._teardown()
            self._notify_phase()
            logger.info("Calibration cancelled")

    def _teardown(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._generation += 1
        for samples in self._samples:
            samples.clear()
        self._target_index = 0
        self._phases.reset()

    # Samples

    def add_sample(self, point: NormalizedPoint) -> bool:
        """
        Offer a filtered sample to the session.

        Args:
            point: Filtered normalized gaze point

        Returns:
            True if recorded for the current target, False if discarded
        """
        with self._lock:
            phase = self._phases.current_phase
            collecting = phase == CalibrationPhase.COLLECTING or (
                phase == CalibrationPhase.TRANSITIONING and self._config.collect_during_travel
            )
            if not collecting:
                return False

            self._samples[self._target_index].append(point)
            return True

    # Phase steps

    def _enter_target(self, index: int):
        self._target_index = index
        self._samples[index].clear()
        self._set_phase(CalibrationPhase.SETTLING)
        logger.info(
            f"Target {index + 1}/{len(self._targets)}: "
            f"({self._targets[index].x:.2f}, {self._targets[index].y:.2f})"
        )
        self._schedule(self._config.settle_seconds, self._on_settled)

    def _on_settled(self):
        self._set_phase(CalibrationPhase.COLLECTING)
        self._schedule(self._config.dwell_seconds, self._on_dwell_elapsed)

    def _on_dwell_elapsed(self):
        self._set_phase(CalibrationPhase.TRANSITIONING)
        logger.debug(
            f"Target {self._target_index} dwell finished: "
            f"{len(self._samples[self._target_index])} samples"
        )
        self._schedule(self._config.travel_seconds, self._on_travel_elapsed)

    def _on_travel_elapsed(self):
        if self._target_index + 1 < len(self._targets):
            self._enter_target(self._target_index + 1)
        else:
            self._finalize()

    def _finalize(self):
        """Aggregate every target, solve the mapping and enter TRACKING."""
        self._set_phase(CalibrationPhase.FINALIZING)

        results = []
        for index, (target, samples) in enumerate(zip(self._targets, self._samples)):
            if samples:
                aggregated = self._aggregator.aggregate(samples)
                used_fallback = False
            else:
                # Keep one pair per target so indices stay aligned
                logger.warning(f"No samples for target {index}, using target position")
                aggregated = target
                used_fallback = True

            results.append(
                TargetResult(
                    index=index,
                    target=target,
                    aggregated=aggregated,
                    sample_count=len(samples),
                    used_fallback=used_fallback,
                )
            )

        parameters = self._solver.solve([(r.aggregated, r.target) for r in results])
        self._result = CalibrationResult(parameters=parameters, targets=tuple(results))

        self._set_phase(CalibrationPhase.TRACKING)
        logger.info(
            f"Calibration finalized: {len(results)} targets, "
            f"{len(self._result.fallback_targets)} fallback"
        )

        if self._on_complete is not None:
            self._on_complete(self._result)

    # Helpers

    def _schedule(self, delay: float, step: Callable[[], None]):
        generation = self._generation

        def fire():
            with self._lock:
                if generation != self._generation:
                    logger.debug("Stale calibration timer ignored")
                    return
                self._pending = None
                step()

        self._pending = self._scheduler.call_later(delay, fire)

    def _set_phase(self, phase: CalibrationPhase):
        previous = self._phases.current_phase
        if not self._phases.transition_to(phase):
            raise RuntimeError(f"Invalid phase transition: {previous.name} -> {phase.name}")
        logger.debug(f"Phase {previous.name} -> {phase.name} (target {self._target_index})")
        self._notify_phase()

    def _notify_phase(self):
        if self._on_phase_change is not None:
            self._on_phase_change(self._phases.current_phase, self._target_index)

    # Properties

    @property
    def phase(self) -> CalibrationPhase:
        """Get current phase."""
        return self._phases.current_phase

    @property
    def is_active(self) -> bool:
        """True while the procedure is running (not IDLE or TRACKING)."""
        return self._phases.current_phase in ACTIVE_PHASES

    @property
    def is_complete(self) -> bool:
        return self._phases.current_phase == CalibrationPhase.TRACKING

    @property
    def targets(self) -> Tuple[NormalizedPoint, ...]:
        return self._targets

    @property
    def target_index(self) -> int:
        return self._target_index

    @property
    def current_target(self) -> Optional[NormalizedPoint]:
        """Target the session is collecting for, None when not running."""
        if not self.is_active:
            return None
        return self._targets[self._target_index]

    @property
    def display_target(self) -> Optional[NormalizedPoint]:
        """
        Target the UI should show.

        While travelling this is already the next target unless
        show_next_during_travel is disabled.
        """
        with self._lock:
            if not self.is_active:
                return None

            next_index = self._target_index + 1
            if (
                self._phases.current_phase == CalibrationPhase.TRANSITIONING
                and self._config.show_next_during_travel
                and next_index < len(self._targets)
            ):
                return self._targets[next_index]

            return self._targets[self._target_index]

    @property
    def progress(self) -> Tuple[int, int]:
        """Get progress (current_target, total_targets)."""
        return (self._target_index, len(self._targets))

    def samples_for(self, index: int) -> Sequence[NormalizedPoint]:
        """Snapshot of the samples collected so far for a target."""
        with self._lock:
            return tuple(self._samples[index])

    @property
    def result(self) -> Optional[CalibrationResult]:
        """Get calibration result (None until TRACKING)."""
        return self._result

    @property
    def parameters(self) -> Optional[MappingParameters]:
        return self._result.parameters if self._result is not None else None
