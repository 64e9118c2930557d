"""
Calibration record storage.

- Local-only storage
- Path traversal protection
- Schema validation on save and load
- Atomic JSON writes
"""

import json
from pathlib import Path
from typing import Optional

from steadygaze.core.config import StorageConfig
from steadygaze.storage.schema import CalibrationRecord
from steadygaze.utils.logger import get_logger

logger = get_logger(__name__)


class CalibrationStoreError(Exception):
    """Calibration storage errors."""

    pass


class CalibrationStore:
    """Persist the learned mapping so the host can skip recalibration."""

    def __init__(self, config: StorageConfig):
        """
        Initialize calibration store.

        Args:
            config: Storage configuration

        Raises:
            CalibrationStoreError: If storage path is invalid
        """
        self._config = config

        try:
            self._data_dir = Path(config.data_dir).resolve(strict=False)
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except (RuntimeError, OSError) as e:
            raise CalibrationStoreError(f"Invalid storage path: {e}")

        self._calibration_path = self._data_dir / config.calibration_filename

        # Ensure we're still within the intended directory
        if not self._is_safe_path(self._calibration_path):
            raise CalibrationStoreError("Path traversal detected")

        logger.info(f"CalibrationStore initialized: {self._calibration_path}")

    def save(self, record: CalibrationRecord) -> bool:
        """
        Save a calibration record to disk.

        Returns:
            True if successful

        Raises:
            CalibrationStoreError: If validation or writing fails
        """
        try:
            record.validate()

            temp_path = self._calibration_path.with_suffix(".tmp")
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2)

            temp_path.replace(self._calibration_path)

        except (OSError, ValueError) as e:
            error_msg = f"Failed to save calibration: {e}"
            logger.error(error_msg)
            raise CalibrationStoreError(error_msg) from e

        logger.info(f"Calibration saved: {len(record.points)} points")
        return True

    def load(self) -> Optional[CalibrationRecord]:
        """
        Load the calibration record from disk.

        Returns:
            CalibrationRecord if found, None if nothing was saved

        Raises:
            CalibrationStoreError: If the file is corrupted or invalid
        """
        if not self._calibration_path.exists():
            logger.info("No calibration data found")
            return None

        try:
            with open(self._calibration_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            record = CalibrationRecord.from_dict(data)
            record.validate()

        except json.JSONDecodeError as e:
            error_msg = f"Corrupted calibration file: {e}"
            logger.error(error_msg)
            raise CalibrationStoreError(error_msg) from e

        except (ValueError, TypeError) as e:
            error_msg = f"Invalid calibration data: {e}"
            logger.error(error_msg)
            raise CalibrationStoreError(error_msg) from e

        except OSError as e:
            error_msg = f"Failed to load calibration: {e}"
            logger.error(error_msg)
            raise CalibrationStoreError(error_msg) from e

        logger.info(f"Calibration loaded: {len(record.points)} points")
        return record

    def delete(self) -> bool:
        """
        Delete the saved calibration.

        Returns:
            True if deleted, False if file didn't exist
        """
        if not self._calibration_path.exists():
            logger.info("No calibration data to delete")
            return False

        try:
            self._calibration_path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete calibration: {e}")
            raise CalibrationStoreError(f"Failed to delete calibration: {e}") from e

        logger.info("Calibration data deleted")
        return True

    def exists(self) -> bool:
        """Check if a calibration file exists."""
        return self._calibration_path.exists()

    @property
    def path(self) -> Path:
        return self._calibration_path

    def _is_safe_path(self, path: Path) -> bool:
        """Check that path resolves inside the data directory."""
        try:
            resolved = path.resolve(strict=False)
            return resolved.parent == self._data_dir
        except (RuntimeError, OSError):
            return False
