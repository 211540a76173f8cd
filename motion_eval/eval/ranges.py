"""Distance-to-sensor statistics per confusion category."""

from typing import Dict, List

import numpy as np

from ..sensors.cloud import CloudFrame

CATEGORIES = ("TP", "FP", "TN", "FN")


def format_number(value) -> str:
    """Format a number the way all evaluation files write it."""
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return str(int(value))
    return format(float(value), "g")


class RangeBuckets:
    """
    Accumulate sensor distances of evaluated points by outcome.

    Outcomes are always judged on the cluster-level prediction. Buckets only
    grow for the lifetime of the instance and keep observation order, so the
    rendered lines are reproducible for identical input.
    """

    def __init__(self):
        self._buckets: Dict[str, List[float]] = {c: [] for c in CATEGORIES}

    def __getitem__(self, category: str) -> List[float]:
        return list(self._buckets[category])

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets.values())

    def accumulate(self, frame: CloudFrame) -> int:
        """
        Add the distances of a labeled frame's eligible points.

        Args:
            frame: Frame with ground truth and eligibility set.

        Returns:
            Number of distances added.
        """
        annotation = frame.annotation
        if not annotation.is_labeled:
            raise ValueError(f"Frame {frame.timestamp} has no ground truth labels")

        mask = annotation.eligible
        distances = frame.distances[mask]
        predicted = frame.cluster_level_dynamic[mask]
        ground_truth = annotation.ground_truth_dynamic[mask]

        selections = {
            "TP": predicted & ground_truth,
            "FP": predicted & ~ground_truth,
            "TN": ~predicted & ~ground_truth,
            "FN": ~predicted & ground_truth,
        }
        for category, selected in selections.items():
            self._buckets[category].extend(distances[selected].tolist())

        return len(distances)

    def lines(self) -> List[str]:
        """Render one line per category: its label followed by all distances."""
        return [
            ",".join([category] + [format_number(d) for d in self._buckets[category]])
            for category in CATEGORIES
        ]
