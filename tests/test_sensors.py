"""Tests for point cloud frames and frame loading."""

import numpy as np
import pytest

from motion_eval.sensors.cloud import CloudFrame, EvaluationLevel, PointInfo
from motion_eval.sensors.frame_loader import FrameLoader, save_frame


class TestEvaluationLevel:
    """Tests for EvaluationLevel."""

    @pytest.mark.parametrize("name, level", [
        ("point", EvaluationLevel.POINT),
        ("Cluster", EvaluationLevel.CLUSTER),
        (" object ", EvaluationLevel.OBJECT),
        (EvaluationLevel.POINT, EvaluationLevel.POINT),
    ])
    def test_parse(self, name, level):
        assert EvaluationLevel.parse(name) is level

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            EvaluationLevel.parse("voxel")

    def test_predictions(self):
        frame = CloudFrame(
            timestamp=0,
            distances=[1.0, 2.0],
            point_level_dynamic=[True, False],
            cluster_level_dynamic=[False, True],
            object_level_dynamic=[True, True],
        )

        assert list(EvaluationLevel.POINT.predictions(frame)) == [True, False]
        assert list(EvaluationLevel.CLUSTER.predictions(frame)) == [False, True]
        assert list(EvaluationLevel.OBJECT.predictions(frame)) == [True, True]


class TestCloudFrame:
    """Tests for CloudFrame."""

    def test_defaults(self):
        frame = CloudFrame(timestamp=1, distances=[1.0, 2.0, 3.0])

        assert len(frame) == 3
        assert frame.cluster_level_dynamic.dtype == bool
        assert not frame.cluster_level_dynamic.any()
        assert not frame.annotation.eligible.any()
        assert not frame.annotation.is_labeled

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            CloudFrame(timestamp=1, distances=[1.0, 2.0], point_level_dynamic=[True])

    def test_ground_truth_length_mismatch(self):
        frame = CloudFrame(timestamp=1, distances=[1.0, 2.0])

        with pytest.raises(ValueError):
            frame.annotation.set_ground_truth([True])

    def test_from_points_round_trip(self):
        points = [
            PointInfo(1.5, point_level_dynamic=True, ground_truth_dynamic=True),
            PointInfo(9.0, cluster_level_dynamic=True, ground_truth_dynamic=False),
        ]

        frame = CloudFrame.from_points(42, points)

        assert frame.timestamp == 42
        assert frame.annotation.is_labeled
        assert frame.points() == points

    def test_from_points_partial_labels(self):
        frame = CloudFrame.from_points(
            1, [PointInfo(1.0, ground_truth_dynamic=True), PointInfo(2.0)]
        )

        assert not frame.annotation.is_labeled
        assert frame.point(0).ground_truth_dynamic is None


class TestFrameLoader:
    """Tests for FrameLoader."""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FrameLoader(tmp_path / "missing")

    def test_save_and_load(self, tmp_path):
        original = CloudFrame(
            timestamp=1650000000123456789,
            distances=[1.0, 5.5],
            point_level_dynamic=[True, False],
            cluster_level_dynamic=[True, True],
            object_level_dynamic=[False, True],
        )
        save_frame(original, tmp_path / "frames" / "000001.npz")

        loader = FrameLoader(tmp_path / "frames")
        frame = loader[0]

        assert len(loader) == 1
        assert frame.timestamp == original.timestamp
        assert np.allclose(frame.distances, original.distances)
        assert np.array_equal(frame.object_level_dynamic, original.object_level_dynamic)
        assert not frame.annotation.is_labeled

    def test_timestamp_from_file_name(self, tmp_path):
        np.savez(tmp_path / "77.npz", distances=np.array([1.0]))

        frame = FrameLoader(tmp_path).load_frame(0)

        assert frame.timestamp == 77
        assert not frame.point_level_dynamic.any()

    def test_iterate_sorted(self, tmp_path):
        for timestamp in (3, 1, 2):
            save_frame(CloudFrame(timestamp=timestamp, distances=[1.0]), tmp_path / f"{timestamp}.npz")

        loader = FrameLoader(tmp_path)

        assert [f.timestamp for f in loader.iterate_frames()] == [1, 2, 3]

    def test_iterate_numeric_order(self, tmp_path):
        for timestamp in (100, 99, 1000):
            save_frame(CloudFrame(timestamp=timestamp, distances=[1.0]), tmp_path / f"{timestamp}.npz")

        loader = FrameLoader(tmp_path)

        assert [f.timestamp for f in loader.iterate_frames()] == [99, 100, 1000]

    def test_non_numeric_names_sorted_by_name(self, tmp_path):
        for name, timestamp in (("b", 1), ("a", 2)):
            save_frame(CloudFrame(timestamp=timestamp, distances=[1.0]), tmp_path / f"{name}.npz")

        loader = FrameLoader(tmp_path)

        assert [f.timestamp for f in loader.iterate_frames()] == [2, 1]
        assert [f.timestamp for f in loader.iterate_frames(start=1, end=10)] == [2, 3]

    def test_index_out_of_range(self, tmp_path):
        with pytest.raises(IndexError):
            FrameLoader(tmp_path).load_frame(0)
