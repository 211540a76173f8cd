"""Evaluation modules for motion detection metrics."""

from .evaluator import Evaluator, EvaluatorConfig
from .ground_truth import GroundTruthConfig, GroundTruthHandler, InMemoryGroundTruthHandler
from .metrics import (
    ConfusionMatrix,
    LevelResult,
    Metrics,
    compute_iou,
    compute_metrics,
    compute_precision,
    compute_recall,
    evaluate_level,
    filter_eligible_points,
)
from .ranges import RangeBuckets
from .writer import ResultWriter

__all__ = [
    "Evaluator",
    "EvaluatorConfig",
    "GroundTruthConfig",
    "GroundTruthHandler",
    "InMemoryGroundTruthHandler",
    "ConfusionMatrix",
    "LevelResult",
    "Metrics",
    "compute_iou",
    "compute_metrics",
    "compute_precision",
    "compute_recall",
    "evaluate_level",
    "filter_eligible_points",
    "RangeBuckets",
    "ResultWriter",
]
