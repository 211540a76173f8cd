"""
Evaluation Metrics for Point-wise Motion Detection.

Every evaluated point is a binary decision, dynamic (positive) or static
(negative), compared against ground truth:

- **TP**: predicted dynamic, ground truth dynamic
- **FP**: predicted dynamic, ground truth static
- **TN**: predicted static, ground truth static
- **FN**: predicted static, ground truth dynamic

Metric Definitions:
-------------------
- **Precision**: TP / (TP + FP), 1.0 if nothing was predicted dynamic
- **Recall**: TP / (TP + FN), 1.0 if nothing is dynamic
- **IoU**: TP / (TP + FP + FN), 1.0 if all three counts are zero

A zero denominator means there was nothing to get wrong, which counts as
a perfect score.

Only points inside the evaluated range window ("eligible" points) are
counted.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional, Union

import numpy as np

from ..sensors.cloud import CloudFrame, EvaluationLevel
from ..utils.logger import get_logger


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class ConfusionMatrix:
    """Binary confusion matrix of one (frame, level) pair."""
    tp: int = 0
    fp: int = 0
    tn: int = 0
    fn: int = 0

    def __post_init__(self):
        for name in ("tp", "fp", "tn", "fn"):
            value = int(getattr(self, name))
            if value < 0:
                raise ValueError(f"Confusion matrix count '{name}' must be >= 0, got {value}")
            setattr(self, name, value)

    def __add__(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        return ConfusionMatrix(
            tp=self.tp + other.tp,
            fp=self.fp + other.fp,
            tn=self.tn + other.tn,
            fn=self.fn + other.fn,
        )

    @property
    def total(self) -> int:
        return self.tp + self.fp + self.tn + self.fn


@dataclass
class Metrics:
    """Scores derived from a confusion matrix."""
    iou: float
    precision: float
    recall: float


class LevelResult(NamedTuple):
    """Result of evaluating one frame at one level."""
    level: EvaluationLevel
    matrix: ConfusionMatrix
    metrics: Metrics


# =============================================================================
# Metric Computation
# =============================================================================

def compute_precision(tp: int, fp: int) -> float:
    """
    Compute precision.

    Args:
        tp: Number of true positives.
        fp: Number of false positives.

    Returns:
        Precision in [0, 1], 1.0 if there are no positive predictions.
    """
    if tp + fp == 0:
        return 1.0
    return tp / (tp + fp)


def compute_recall(tp: int, fn: int) -> float:
    """
    Compute recall.

    Args:
        tp: Number of true positives.
        fn: Number of false negatives.

    Returns:
        Recall in [0, 1], 1.0 if there are no positive ground truths.
    """
    if tp + fn == 0:
        return 1.0
    return tp / (tp + fn)


def compute_iou(tp: int, fp: int, fn: int) -> float:
    """
    Compute intersection over union of predicted and true dynamic points.

    Args:
        tp: Number of true positives.
        fp: Number of false positives.
        fn: Number of false negatives.

    Returns:
        IoU in [0, 1], 1.0 if prediction and ground truth are both empty.
    """
    if tp + fp + fn == 0:
        return 1.0
    return tp / (tp + fp + fn)


def compute_metrics(matrix: ConfusionMatrix) -> Metrics:
    """Compute IoU, precision and recall of a confusion matrix."""
    return Metrics(
        iou=compute_iou(matrix.tp, matrix.fp, matrix.fn),
        precision=compute_precision(matrix.tp, matrix.fp),
        recall=compute_recall(matrix.tp, matrix.fn),
    )


def confusion_matrix(predicted: np.ndarray, ground_truth: np.ndarray) -> ConfusionMatrix:
    """
    Count agreement between boolean predictions and ground truth.

    Args:
        predicted: (N,) bool array, True for dynamic.
        ground_truth: (N,) bool array, True for dynamic.

    Returns:
        ConfusionMatrix over all N entries.
    """
    predicted = np.asarray(predicted, dtype=bool)
    ground_truth = np.asarray(ground_truth, dtype=bool)

    return ConfusionMatrix(
        tp=int(np.count_nonzero(predicted & ground_truth)),
        fp=int(np.count_nonzero(predicted & ~ground_truth)),
        tn=int(np.count_nonzero(~predicted & ~ground_truth)),
        fn=int(np.count_nonzero(~predicted & ground_truth)),
    )


# =============================================================================
# Range Filtering
# =============================================================================

def filter_eligible_points(frame: CloudFrame, min_range: float, max_range: float) -> int:
    """
    Mark the points of a frame that lie inside the evaluated range window.

    Args:
        frame: Frame whose eligibility mask is rewritten.
        min_range: Minimum distance to the sensor (inclusive).
        max_range: Maximum distance to the sensor (inclusive).

    Returns:
        Number of eligible points.
    """
    eligible = (frame.distances >= min_range) & (frame.distances <= max_range)
    frame.annotation.eligible = eligible
    return int(np.count_nonzero(eligible))


# =============================================================================
# Level Evaluation
# =============================================================================

def evaluate_level(
    frame: CloudFrame,
    level: Union[EvaluationLevel, str],
    logger: Optional[logging.Logger] = None,
) -> Optional[LevelResult]:
    """
    Evaluate the eligible points of a labeled frame at one level.

    Args:
        frame: Frame with ground truth and eligibility set.
        level: Level or level name selecting the prediction to judge.
        logger: Logger for reporting unknown levels.

    Returns:
        LevelResult, or None if the level is unknown.

    Raises:
        ValueError: If the frame carries no ground truth.
    """
    try:
        level = EvaluationLevel.parse(level)
    except ValueError:
        (logger or get_logger("motion_eval.metrics")).error(
            f"Unknown evaluation level '{level}'!"
        )
        return None

    annotation = frame.annotation
    if not annotation.is_labeled:
        raise ValueError(f"Frame {frame.timestamp} has no ground truth labels")

    mask = annotation.eligible
    matrix = confusion_matrix(
        level.predictions(frame)[mask],
        annotation.ground_truth_dynamic[mask],
    )

    return LevelResult(level=level, matrix=matrix, metrics=compute_metrics(matrix))
