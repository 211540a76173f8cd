"""
Tests for motion detection metrics.

Test Coverage:
- Precision / recall / IoU including empty denominators
- Confusion matrix counting
- Range filtering with inclusive bounds
- Level evaluation and unknown levels
"""

import itertools

import numpy as np
import pytest
from unittest.mock import Mock

from motion_eval.eval.metrics import (
    ConfusionMatrix,
    compute_iou,
    compute_metrics,
    compute_precision,
    compute_recall,
    confusion_matrix,
    evaluate_level,
    filter_eligible_points,
)
from motion_eval.sensors.cloud import CloudFrame, EvaluationLevel


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def labeled_frame():
    """Three points in range, one out of range, with ground truth."""
    frame = CloudFrame(
        timestamp=1000,
        distances=np.array([1.0, 5.0, 10.0, 50.0]),
        point_level_dynamic=np.array([True, True, True, True]),
        cluster_level_dynamic=np.array([True, False, False, True]),
        object_level_dynamic=np.array([False, False, False, False]),
    )
    frame.annotation.set_ground_truth([True, True, False, False])
    return frame


# =============================================================================
# Metric Computation
# =============================================================================

class TestMetricFunctions:
    """Tests for precision, recall and IoU."""

    def test_precision(self):
        assert compute_precision(3, 1) == pytest.approx(0.75)

    def test_recall(self):
        assert compute_recall(1, 3) == pytest.approx(0.25)

    def test_iou(self):
        assert compute_iou(2, 1, 1) == pytest.approx(0.5)

    def test_precision_without_positive_predictions(self):
        """No positive predictions means perfect precision."""
        assert compute_precision(0, 0) == 1.0

    def test_recall_without_positive_ground_truth(self):
        """No dynamic ground truth means perfect recall."""
        assert compute_recall(0, 0) == 1.0

    def test_iou_without_dynamic_points(self):
        assert compute_iou(0, 0, 0) == 1.0

    def test_zero_true_positives(self):
        assert compute_precision(0, 4) == 0.0
        assert compute_recall(0, 4) == 0.0
        assert compute_iou(0, 2, 2) == 0.0

    def test_metrics_bounded(self):
        """All metrics stay within [0, 1]."""
        for tp, fp, fn in itertools.product(range(4), repeat=3):
            metrics = compute_metrics(ConfusionMatrix(tp=tp, fp=fp, fn=fn))
            for value in (metrics.iou, metrics.precision, metrics.recall):
                assert 0.0 <= value <= 1.0

    def test_compute_metrics_ignores_true_negatives(self):
        metrics = compute_metrics(ConfusionMatrix(tp=0, fp=0, tn=100, fn=0))

        assert metrics.iou == 1.0
        assert metrics.precision == 1.0
        assert metrics.recall == 1.0


class TestConfusionMatrix:
    """Tests for ConfusionMatrix."""

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            ConfusionMatrix(tp=-1)

    def test_add(self):
        total = ConfusionMatrix(1, 2, 3, 4) + ConfusionMatrix(4, 3, 2, 1)

        assert total == ConfusionMatrix(5, 5, 5, 5)
        assert total.total == 20

    def test_counting(self):
        predicted = np.array([True, True, False, False, True])
        ground_truth = np.array([True, False, False, True, True])

        matrix = confusion_matrix(predicted, ground_truth)

        assert matrix == ConfusionMatrix(tp=2, fp=1, tn=1, fn=1)

    def test_counting_empty(self):
        matrix = confusion_matrix(np.zeros(0, dtype=bool), np.zeros(0, dtype=bool))

        assert matrix.total == 0


# =============================================================================
# Range Filtering
# =============================================================================

class TestRangeFilter:
    """Tests for filter_eligible_points."""

    def test_bounds_inclusive(self):
        frame = CloudFrame(timestamp=0, distances=[0.49, 0.5, 10.0, 20.0, 20.01])

        count = filter_eligible_points(frame, 0.5, 20.0)

        assert count == 3
        assert np.array_equal(
            frame.annotation.eligible, [False, True, True, True, False]
        )

    def test_previous_eligibility_overwritten(self):
        frame = CloudFrame(timestamp=0, distances=[1.0, 30.0])
        frame.annotation.eligible[:] = True

        count = filter_eligible_points(frame, 0.0, 20.0)

        assert count == 1
        assert not frame.annotation.eligible[1]

    def test_empty_frame(self):
        frame = CloudFrame(timestamp=0, distances=[])

        assert filter_eligible_points(frame, 0.0, 20.0) == 0

    def test_only_eligibility_changes(self, labeled_frame):
        distances = labeled_frame.distances.copy()
        predictions = labeled_frame.cluster_level_dynamic.copy()

        filter_eligible_points(labeled_frame, 0.0, 20.0)

        assert np.array_equal(labeled_frame.distances, distances)
        assert np.array_equal(labeled_frame.cluster_level_dynamic, predictions)


# =============================================================================
# Level Evaluation
# =============================================================================

class TestEvaluateLevel:
    """Tests for evaluate_level."""

    def test_cluster_level_scenario(self):
        """GT [dyn, dyn, static] vs prediction [dyn, static, static]."""
        frame = CloudFrame(
            timestamp=1,
            distances=[2.0, 4.0, 6.0],
            cluster_level_dynamic=[True, False, False],
        )
        frame.annotation.set_ground_truth([True, True, False])
        filter_eligible_points(frame, 0.0, 20.0)

        result = evaluate_level(frame, EvaluationLevel.CLUSTER)

        assert result.level is EvaluationLevel.CLUSTER
        assert result.matrix == ConfusionMatrix(tp=1, fp=0, tn=1, fn=1)
        assert result.metrics.precision == 1.0
        assert result.metrics.recall == pytest.approx(0.5)
        assert result.metrics.iou == pytest.approx(0.5)

    def test_ineligible_points_skipped(self, labeled_frame):
        evaluated = filter_eligible_points(labeled_frame, 0.0, 20.0)

        for level in EvaluationLevel:
            result = evaluate_level(labeled_frame, level)
            assert result.matrix.total == evaluated

    def test_levels_use_their_predictions(self, labeled_frame):
        filter_eligible_points(labeled_frame, 0.0, 20.0)

        point = evaluate_level(labeled_frame, "point")
        obj = evaluate_level(labeled_frame, "object")

        assert point.matrix == ConfusionMatrix(tp=2, fp=1, tn=0, fn=0)
        assert obj.matrix == ConfusionMatrix(tp=0, fp=0, tn=1, fn=2)
        assert obj.metrics.precision == 1.0
        assert obj.metrics.recall == 0.0

    def test_unknown_level_reported_and_skipped(self, labeled_frame):
        logger = Mock()
        filter_eligible_points(labeled_frame, 0.0, 20.0)

        result = evaluate_level(labeled_frame, "voxel", logger=logger)

        assert result is None
        logger.error.assert_called_once()
        assert "voxel" in logger.error.call_args[0][0]

    def test_unlabeled_frame_rejected(self):
        frame = CloudFrame(timestamp=3, distances=[1.0])
        filter_eligible_points(frame, 0.0, 20.0)

        with pytest.raises(ValueError):
            evaluate_level(frame, EvaluationLevel.POINT)

    def test_no_eligible_points(self, labeled_frame):
        filter_eligible_points(labeled_frame, 100.0, 200.0)

        result = evaluate_level(labeled_frame, EvaluationLevel.CLUSTER)

        assert result.matrix.total == 0
        assert result.metrics.iou == 1.0
