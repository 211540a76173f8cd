"""Point cloud frames carrying motion predictions and evaluation state."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Union

import numpy as np


class EvaluationLevel(Enum):
    """Granularity at which a dynamic/static prediction is judged."""

    POINT = "point"
    CLUSTER = "cluster"
    OBJECT = "object"

    @classmethod
    def parse(cls, level: Union["EvaluationLevel", str]) -> "EvaluationLevel":
        """
        Convert a level or its name to an EvaluationLevel.

        Raises:
            ValueError: If the identifier names no known level.
        """
        if isinstance(level, cls):
            return level
        try:
            return cls(str(level).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown evaluation level '{level}'") from None

    def predictions(self, frame: "CloudFrame") -> np.ndarray:
        """Return the per-point dynamic predictions judged at this level."""
        if self is EvaluationLevel.POINT:
            return frame.point_level_dynamic
        if self is EvaluationLevel.CLUSTER:
            return frame.cluster_level_dynamic
        return frame.object_level_dynamic


@dataclass
class PointInfo:
    """A single LiDAR point with its upstream motion predictions."""

    distance_to_sensor: float
    point_level_dynamic: bool = False
    cluster_level_dynamic: bool = False
    object_level_dynamic: bool = False
    ground_truth_dynamic: Optional[bool] = None
    eligible: bool = False


@dataclass(eq=False)
class EvaluationAnnotation:
    """
    Evaluation state kept alongside a frame's sensor data.

    ``eligible`` marks points inside the evaluated range window and
    ``ground_truth_dynamic`` stays None until ground truth is attached.
    """

    eligible: np.ndarray
    ground_truth_dynamic: Optional[np.ndarray] = None

    @classmethod
    def empty(cls, num_points: int) -> "EvaluationAnnotation":
        return cls(eligible=np.zeros(num_points, dtype=bool))

    @property
    def is_labeled(self) -> bool:
        return self.ground_truth_dynamic is not None

    def set_ground_truth(self, labels) -> None:
        """Attach one ground truth label per point."""
        labels = np.asarray(labels).astype(bool).reshape(-1)
        if len(labels) != len(self.eligible):
            raise ValueError(
                f"Expected {len(self.eligible)} ground truth labels, got {len(labels)}"
            )
        self.ground_truth_dynamic = labels


def _as_flags(values, num_points: int, name: str) -> np.ndarray:
    if values is None:
        return np.zeros(num_points, dtype=bool)
    flags = np.asarray(values).astype(bool).reshape(-1)
    if len(flags) != num_points:
        raise ValueError(f"'{name}' has {len(flags)} entries, expected {num_points}")
    return flags


@dataclass(eq=False)
class CloudFrame:
    """
    One LiDAR sweep with per-point motion predictions.

    Points are stored column-wise: entry ``i`` of every array belongs to
    point ``i``. ``distances`` and the three prediction arrays are produced
    upstream; evaluation only writes to ``annotation``.
    """

    timestamp: int
    distances: np.ndarray
    point_level_dynamic: np.ndarray = None
    cluster_level_dynamic: np.ndarray = None
    object_level_dynamic: np.ndarray = None
    annotation: EvaluationAnnotation = field(default=None)

    def __post_init__(self):
        self.distances = np.asarray(self.distances, dtype=np.float64).reshape(-1)
        n = len(self.distances)

        self.point_level_dynamic = _as_flags(self.point_level_dynamic, n, "point_level_dynamic")
        self.cluster_level_dynamic = _as_flags(self.cluster_level_dynamic, n, "cluster_level_dynamic")
        self.object_level_dynamic = _as_flags(self.object_level_dynamic, n, "object_level_dynamic")

        if self.annotation is None:
            self.annotation = EvaluationAnnotation.empty(n)
        elif len(self.annotation.eligible) != n:
            raise ValueError(
                f"Annotation covers {len(self.annotation.eligible)} points, expected {n}"
            )

    def __len__(self) -> int:
        return len(self.distances)

    @classmethod
    def from_points(cls, timestamp: int, points: Iterable[PointInfo]) -> "CloudFrame":
        """
        Build a frame from individual points.

        Ground truth is attached only if every point carries a label.
        """
        points = list(points)
        frame = cls(
            timestamp=timestamp,
            distances=np.array([p.distance_to_sensor for p in points], dtype=np.float64),
            point_level_dynamic=np.array([p.point_level_dynamic for p in points], dtype=bool),
            cluster_level_dynamic=np.array([p.cluster_level_dynamic for p in points], dtype=bool),
            object_level_dynamic=np.array([p.object_level_dynamic for p in points], dtype=bool),
        )
        frame.annotation.eligible = np.array([p.eligible for p in points], dtype=bool)

        if points and all(p.ground_truth_dynamic is not None for p in points):
            frame.annotation.set_ground_truth([p.ground_truth_dynamic for p in points])

        return frame

    def point(self, index: int) -> PointInfo:
        """Return a snapshot of point ``index``."""
        gt = self.annotation.ground_truth_dynamic
        return PointInfo(
            distance_to_sensor=float(self.distances[index]),
            point_level_dynamic=bool(self.point_level_dynamic[index]),
            cluster_level_dynamic=bool(self.cluster_level_dynamic[index]),
            object_level_dynamic=bool(self.object_level_dynamic[index]),
            ground_truth_dynamic=None if gt is None else bool(gt[index]),
            eligible=bool(self.annotation.eligible[index]),
        )

    def points(self) -> List[PointInfo]:
        return [self.point(i) for i in range(len(self))]
