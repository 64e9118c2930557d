"""
Central controller routing raw gaze samples through calibration and tracking.

Owns every stateful component and serializes access to them.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from steadygaze.core.config import AppConfig
from steadygaze.core.state import CalibrationPhase
from steadygaze.gaze.calibration import CalibrationResult, CalibrationSession
from steadygaze.gaze.filter import GazeFilter
from steadygaze.gaze.mapping import MappingParameters
from steadygaze.gaze.normalizer import EyePair, ImageSize, OrientationNormalizer, eye_midpoint
from steadygaze.gaze.pipeline import TrackingPipeline
from steadygaze.gaze.smoother import DotSmoother
from steadygaze.gaze.types import NormalizedPoint, ScreenPoint, ScreenSize
from steadygaze.storage.calibration_store import CalibrationStore, CalibrationStoreError
from steadygaze.storage.schema import CalibrationRecord
from steadygaze.utils.logger import get_logger
from steadygaze.utils.timing import SampleRateCounter, Scheduler, ThreadingScheduler

logger = get_logger(__name__)


@dataclass
class SampleResult:
    """Outcome of submitting one raw sample."""

    phase: CalibrationPhase
    filtered: NormalizedPoint
    collected: bool = False  # Recorded for the current calibration target
    cursor: Optional[ScreenPoint] = None  # Set while tracking


class GazeController:
    """
    Central controller for SteadyGaze.

    Sample routing:
    - calibration running: raw -> GazeFilter -> CalibrationSession
    - mapping available:   raw -> TrackingPipeline -> cursor
    - neither:             raw -> GazeFilter only

    One GazeFilter instance is shared by calibration and tracking, since
    both consume the same sample stream.
    """

    def __init__(
        self,
        config: AppConfig,
        screen_size: ScreenSize,
        scheduler: Optional[Scheduler] = None,
        store: Optional[CalibrationStore] = None,
        autosave: bool = False,
    ):
        """
        Initialize controller.

        Args:
            config: Application configuration
            screen_size: Screen dimensions
            scheduler: Timer source for calibration phases (real time if omitted)
            store: Calibration persistence (optional)
            autosave: Save each successful calibration to the store
        """
        self._config = config
        self._screen_size = screen_size
        self._scheduler = scheduler or ThreadingScheduler()
        self._store = store
        self._autosave = autosave

        self._normalizer = OrientationNormalizer(config.sensor)
        self._filter = GazeFilter(config.filter)

        # Smooths the calibration indicator, separate from tracking history
        self._indicator_smoother = DotSmoother(screen_size, config.smoother)

        self._session: Optional[CalibrationSession] = None
        self._pipeline: Optional[TrackingPipeline] = None
        self._last_result: Optional[CalibrationResult] = None

        self._phase_listeners: list[Callable[[CalibrationPhase, int], None]] = []
        self._rate_counter = SampleRateCounter(clock=self._scheduler.now)

        # Shared with the session so timer callbacks and samples never interleave
        self._lock = threading.RLock()

        logger.info(f"GazeController initialized for {screen_size.width}x{screen_size.height}")

    # Calibration control

    def start_calibration(self):
        """Start (or restart) the guided calibration."""
        with self._lock:
            if self._session is None:
                self._session = CalibrationSession(
                    self._config.calibration,
                    self._scheduler,
                    on_complete=self._on_calibration_complete,
                    on_phase_change=self._on_phase_change,
                    lock=self._lock,
                )
            self._filter.reset()
            self._indicator_smoother.reset()
            self._session.start()

    def recalibrate(self):
        """
        Run calibration again.

        The current mapping keeps serving until the new one replaces it;
        samples are routed to the session meanwhile.
        """
        logger.info("Recalibration requested")
        self.start_calibration()

    def cancel_calibration(self):
        """Abort a running calibration, discarding its samples."""
        with self._lock:
            if self._session is not None and self._session.is_active:
                self._session.cancel()

    def _on_calibration_complete(self, result: CalibrationResult):
        self._last_result = result
        self._install_parameters(result.parameters)

        if self._autosave and self._store is not None:
            # Called under the lock; the write runs once the timer callback returns
            self._scheduler.call_later(0.0, self._autosave_result)

    def _autosave_result(self):
        try:
            self.save_calibration()
        except CalibrationStoreError as e:
            # Tracking works without persistence
            logger.error(f"Autosave failed: {e}")

    def _install_parameters(self, parameters: MappingParameters):
        if self._pipeline is None:
            self._pipeline = TrackingPipeline(
                parameters,
                self._screen_size,
                gaze_filter=self._filter,
                smoother=DotSmoother(self._screen_size, self._config.smoother),
            )
            self._pipeline.reset()
        else:
            self._pipeline.set_parameters(parameters)
        logger.info("Tracking mapping installed")

    def _on_phase_change(self, phase: CalibrationPhase, target_index: int):
        for listener in list(self._phase_listeners):
            listener(phase, target_index)

    def on_phase_change(self, listener: Callable[[CalibrationPhase, int], None]):
        """Register a callback receiving (phase, target_index) on each transition."""
        self._phase_listeners.append(listener)

    # Samples

    def submit_raw(self, raw: NormalizedPoint) -> SampleResult:
        """
        Process one raw normalized sample.

        Args:
            raw: Raw gaze point in canonical normalized space

        Returns:
            SampleResult describing where the sample went
        """
        with self._lock:
            self._rate_counter.tick()

            if self._session is not None and self._session.is_active:
                filtered = self._filter.filter(raw)
                collected = self._session.add_sample(filtered)
                return SampleResult(
                    phase=self._session.phase, filtered=filtered, collected=collected
                )

            if self._pipeline is not None:
                cursor = self._pipeline.process(raw)
                return SampleResult(
                    phase=CalibrationPhase.TRACKING,
                    filtered=self._filter.state,
                    cursor=cursor,
                )

            return SampleResult(phase=CalibrationPhase.IDLE, filtered=self._filter.filter(raw))

    def submit_image_point(self, x: float, y: float, image: ImageSize) -> SampleResult:
        """Normalize an image-space point for the sensor orientation, then submit it."""
        return self.submit_raw(self._normalizer.normalize(x, y, image))

    def submit_faces(self, faces: Iterable[EyePair], image: ImageSize) -> Optional[SampleResult]:
        """
        Submit the eye midpoint of detected faces.

        Returns:
            None if no face had both eyes (the frame is skipped)
        """
        point = eye_midpoint(faces)
        if point is None:
            logger.debug("No usable eye landmarks in frame")
            return None
        return self.submit_image_point(point[0], point[1], image)

    # Persistence

    def save_calibration(self) -> bool:
        """
        Persist the latest calibration result.

        Raises:
            CalibrationStoreError: If there is nothing to save or writing fails
        """
        if self._store is None:
            raise CalibrationStoreError("No calibration store configured")
        if self._last_result is None:
            raise CalibrationStoreError("No completed calibration to save")

        record = CalibrationRecord.from_result(self._last_result, self._screen_size)
        return self._store.save(record)

    def load_calibration(self) -> bool:
        """
        Install a saved mapping and go straight to tracking.

        Returns:
            True if a mapping was loaded, False if none was saved or it was unreadable
        """
        if self._store is None:
            return False

        try:
            record = self._store.load()
        except CalibrationStoreError as e:
            logger.error(f"Failed to load calibration: {e}")
            return False

        if record is None:
            return False

        if not record.is_compatible_with_screen(self._screen_size.width, self._screen_size.height):
            logger.info(
                f"Calibration was made on {record.screen_width}x{record.screen_height}, "
                f"current screen {self._screen_size.width}x{self._screen_size.height}"
            )

        with self._lock:
            self._install_parameters(record.parameters)
        return True

    # Screen

    def update_screen_size(self, screen_size: ScreenSize):
        """Apply new screen dimensions to every screen-space stage."""
        with self._lock:
            self._screen_size = screen_size
            self._indicator_smoother.update_screen_size(screen_size)
            if self._pipeline is not None:
                self._pipeline.update_screen_size(screen_size)

    def indicator_position(self) -> Optional[ScreenPoint]:
        """
        Smoothed screen position of the calibration indicator.

        Call once per rendered frame; the indicator glides to each new
        target over a few frames.
        """
        with self._lock:
            if self._session is None:
                return None
            target = self._session.display_target
            if target is None:
                return None
            return self._indicator_smoother.smooth(target.to_screen(self._screen_size))

    # Properties

    @property
    def phase(self) -> CalibrationPhase:
        """Current phase: session phase while calibrating, else TRACKING or IDLE."""
        if self._session is not None and self._session.is_active:
            return self._session.phase
        if self._pipeline is not None:
            return CalibrationPhase.TRACKING
        return CalibrationPhase.IDLE

    @property
    def session(self) -> Optional[CalibrationSession]:
        """Get calibration session (for UI to access targets and progress)."""
        return self._session

    @property
    def display_target(self) -> Optional[NormalizedPoint]:
        if self._session is None:
            return None
        return self._session.display_target

    @property
    def cursor(self) -> Optional[ScreenPoint]:
        """Most recent smoothed cursor position."""
        if self._pipeline is None:
            return None
        return self._pipeline.last_point

    @property
    def mapping(self) -> Optional[MappingParameters]:
        if self._pipeline is None:
            return None
        return self._pipeline.parameters

    @property
    def last_result(self) -> Optional[CalibrationResult]:
        return self._last_result

    @property
    def sample_rate(self) -> float:
        """Incoming samples per second."""
        return self._rate_counter.rate

    @property
    def screen_size(self) -> ScreenSize:
        return self._screen_size
