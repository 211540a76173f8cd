"""Ground truth labeling of point cloud frames."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

import numpy as np

from ..sensors.cloud import CloudFrame
from ..utils.config_loader import ConfigError
from ..utils.logger import LoggerMixin


class GroundTruthSource(Protocol):
    """Anything able to label frames for which ground truth exists."""

    def label_if_available(self, frame: CloudFrame) -> bool:
        ...


@dataclass
class GroundTruthConfig:
    """Location of per-frame ground truth label files."""

    directory: Optional[str] = None
    file_extension: str = ".npy"

    def validate(self, require_directory: bool = True) -> "GroundTruthConfig":
        if not self.file_extension.startswith("."):
            raise ConfigError(
                f"'ground_truth.file_extension' must start with '.', got '{self.file_extension}'"
            )
        if require_directory and not self.directory:
            raise ConfigError("'ground_truth.directory' must be set.")
        return self


def _attach_labels(frame: CloudFrame, labels, logger: logging.Logger) -> bool:
    labels = np.asarray(labels).reshape(-1)
    if len(labels) != len(frame):
        logger.warning(
            f"Ground truth for timestamp {frame.timestamp} has {len(labels)} labels "
            f"but the frame has {len(frame)} points, skipping."
        )
        return False

    frame.annotation.set_ground_truth(labels)
    return True


class GroundTruthHandler(LoggerMixin):
    """
    Label frames from a directory of per-frame label files.

    Each file is named ``<timestamp><file_extension>`` and holds one
    dynamic (non-zero) / static (zero) label per point, in point order.
    """

    def __init__(
        self,
        config: GroundTruthConfig,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the handler and index the label files.

        Args:
            config: Ground truth configuration.
            logger: Logger to use.
        """
        self.config = config.validate()
        self.logger = logger
        self.directory = Path(config.directory)
        self._validate_path()
        self._index_labels()

    def _validate_path(self) -> None:
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Ground truth directory not found: {self.directory}")

    def _index_labels(self) -> None:
        self.label_files: Dict[str, Path] = {
            path.stem: path
            for path in sorted(self.directory.glob(f"*{self.config.file_extension}"))
        }
        self.logger.info(
            f"Found {len(self.label_files)} ground truth frames in '{self.directory}'."
        )

    def __len__(self) -> int:
        return len(self.label_files)

    def has_timestamp(self, timestamp) -> bool:
        return str(timestamp) in self.label_files

    def load_labels(self, timestamp) -> np.ndarray:
        path = self.label_files[str(timestamp)]
        return np.load(path, allow_pickle=False)

    def label_if_available(self, frame: CloudFrame) -> bool:
        """
        Attach ground truth to a frame if labels exist for its timestamp.

        Returns:
            True if the frame was labeled, False if it was left untouched.
        """
        if not self.has_timestamp(frame.timestamp):
            return False
        return _attach_labels(frame, self.load_labels(frame.timestamp), self.logger)


class InMemoryGroundTruthHandler(LoggerMixin):
    """Label frames from a timestamp to labels mapping."""

    def __init__(
        self,
        labels: Optional[Mapping] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.labels = dict(labels or {})
        self.logger = logger

    def add(self, timestamp, labels) -> None:
        self.labels[timestamp] = labels

    def label_if_available(self, frame: CloudFrame) -> bool:
        if frame.timestamp not in self.labels:
            return False
        return _attach_labels(frame, self.labels[frame.timestamp], self.logger)
