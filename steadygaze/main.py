"""
SteadyGaze - replay recorded gaze samples through calibration and tracking.

Reads a CSV with columns t,x,y (seconds, normalized raw gaze) and feeds it
to the controller on a simulated clock, so a recording can be evaluated
without a camera.

Usage:
    python -m steadygaze.main samples.csv --width 1920 --height 1080
"""

import argparse
import csv
import sys
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from steadygaze.core.config import get_default_config, ConfigurationError
from steadygaze.core.controller import GazeController
from steadygaze.gaze.types import NormalizedPoint, ScreenSize
from steadygaze.storage.calibration_store import CalibrationStore, CalibrationStoreError
from steadygaze.utils.logger import setup_logger, get_logger
from steadygaze.utils.timing import ManualScheduler


def read_samples(path: Path) -> Iterator[Tuple[float, NormalizedPoint]]:
    """Yield (timestamp, point) rows; rows with missing values are skipped."""
    with open(path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            try:
                t = float(row["t"])
                point = NormalizedPoint(float(row["x"]), float(row["y"]))
            except (KeyError, TypeError, ValueError):
                continue
            yield t, point


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay a recorded gaze stream through SteadyGaze"
    )
    parser.add_argument("samples", type=Path, help="CSV file with t,x,y columns")
    parser.add_argument("--width", type=float, default=1920, help="Screen width")
    parser.add_argument("--height", type=float, default=1080, help="Screen height")
    parser.add_argument("--skip-calibration", action="store_true",
                        help="Use the saved mapping instead of calibrating")
    parser.add_argument("--save", action="store_true",
                        help="Save the learned mapping")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Calibration storage directory")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = get_default_config()
    if args.data_dir is not None:
        config.storage.data_dir = args.data_dir

    setup_logger(
        level=config.log_level,
        log_file=config.storage.log_path,
        enable_file_logging=config.storage.enable_file_logging,
    )
    logger = get_logger(__name__)
    logger.info(f"SteadyGaze replay starting (version {config.version})")

    try:
        screen = ScreenSize(args.width, args.height)
        store = CalibrationStore(config.storage) if (args.save or args.skip_calibration) else None
        scheduler = ManualScheduler()
        controller = GazeController(config, screen, scheduler=scheduler, store=store)
    except (ConfigurationError, ValueError, CalibrationStoreError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.skip_calibration:
        if not controller.load_calibration():
            print("error: no saved calibration", file=sys.stderr)
            return 1
    else:
        controller.start_calibration()

    count = 0
    try:
        for t, point in read_samples(args.samples):
            scheduler.advance_to(t)
            controller.submit_raw(point)
            count += 1
    except OSError as e:
        logger.error(f"Failed to read samples: {e}")
        print(f"error: cannot read {args.samples}: {e}", file=sys.stderr)
        return 2

    # Let a calibration that outlived the recording finish its timers
    if controller.session is not None and controller.session.is_active:
        calibration = config.calibration
        remaining = (
            calibration.settle_seconds + calibration.dwell_seconds + calibration.travel_seconds
        ) * len(calibration.target_positions)
        scheduler.advance(remaining)

    print(f"samples: {count}")
    print(f"phase: {controller.phase.name}")

    mapping = controller.mapping
    if mapping is None:
        print("mapping: none")
        return 1

    print(f"mapping x: slope={mapping.x.slope:.4f} intercept={mapping.x.intercept:.4f}")
    print(f"mapping y: slope={mapping.y.slope:.4f} intercept={mapping.y.intercept:.4f}")

    result = controller.last_result
    if result is not None and result.fallback_targets:
        print(f"fallback targets: {result.fallback_targets}")

    cursor = controller.cursor
    if cursor is not None:
        print(f"cursor: ({cursor.x:.1f}, {cursor.y:.1f})")

    if args.save and result is not None:
        try:
            controller.save_calibration()
        except CalibrationStoreError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        print(f"saved: {config.storage.calibration_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
