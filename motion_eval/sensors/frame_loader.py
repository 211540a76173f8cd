"""Loader for classified point cloud frames stored as .npz files."""

from pathlib import Path
from typing import Iterator, Optional, Union

import numpy as np

from .cloud import CloudFrame

PREDICTION_KEYS = ("point_level_dynamic", "cluster_level_dynamic", "object_level_dynamic")


def save_frame(frame: CloudFrame, path: Union[str, Path]) -> Path:
    """
    Save the sensor data and predictions of a frame.

    Args:
        frame: Frame to save. Evaluation state is not saved.
        path: Output .npz file path.

    Returns:
        Path of the written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez(
        path,
        timestamp=np.int64(frame.timestamp),
        distances=frame.distances,
        **{key: getattr(frame, key) for key in PREDICTION_KEYS},
    )
    return path


class FrameLoader:
    """Load classified frames from a directory of .npz files."""

    def __init__(self, frames_dir: Union[str, Path], pattern: str = "*.npz"):
        """
        Initialize the frame loader.

        Args:
            frames_dir: Directory containing one .npz file per frame.
            pattern: Glob pattern selecting frame files.
        """
        self.frames_dir = Path(frames_dir)
        self.pattern = pattern

        self._validate_path()
        self._index_frames()

    def _validate_path(self) -> None:
        """Validate that the frames directory exists."""
        if not self.frames_dir.is_dir():
            raise FileNotFoundError(f"Frames directory not found: {self.frames_dir}")

    def _index_frames(self) -> None:
        """Index all available frame files, numerically if named by timestamp."""
        files = list(self.frames_dir.glob(self.pattern))
        if files and all(f.stem.isdigit() for f in files):
            self.frame_files = sorted(files, key=lambda f: int(f.stem))
        else:
            self.frame_files = sorted(files)

    def __len__(self) -> int:
        return len(self.frame_files)

    def __getitem__(self, index: int) -> CloudFrame:
        return self.load_frame(index)

    def load_frame(self, index: int) -> CloudFrame:
        """
        Load a single frame.

        Args:
            index: Frame index.

        Returns:
            CloudFrame with distances and predictions, not yet labeled.
        """
        if index < 0 or index >= len(self.frame_files):
            raise IndexError(f"Frame index {index} out of range [0, {len(self) - 1}]")

        path = self.frame_files[index]
        with np.load(path, allow_pickle=False) as data:
            if "distances" not in data:
                raise KeyError(f"Frame file {path} has no 'distances' array")
            timestamp = int(data["timestamp"]) if "timestamp" in data else int(path.stem)
            return CloudFrame(
                timestamp=timestamp,
                distances=data["distances"],
                **{key: data[key] if key in data else None for key in PREDICTION_KEYS},
            )

    def iterate_frames(
        self,
        start: int = 0,
        end: Optional[int] = None,
        step: int = 1,
    ) -> Iterator[CloudFrame]:
        """
        Iterate over frames.

        Args:
            start: Starting frame index.
            end: Ending frame index (exclusive).
            step: Step size.

        Yields:
            CloudFrame for each frame.
        """
        end = len(self) if end is None else min(end, len(self))

        for i in range(start, end, step):
            yield self.load_frame(i)
