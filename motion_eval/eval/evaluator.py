"""
Frame-by-frame evaluation of motion detection against ground truth.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..sensors.cloud import CloudFrame, EvaluationLevel
from ..utils.config_loader import ConfigError, ConfigLoader
from ..utils.logger import LoggerMixin
from ..utils.timing import TimingCollector, get_timing_collector
from .ground_truth import GroundTruthConfig, GroundTruthHandler, GroundTruthSource
from .metrics import (
    ConfusionMatrix,
    LevelResult,
    Metrics,
    compute_metrics,
    evaluate_level,
    filter_eligible_points,
)
from .ranges import RangeBuckets
from .writer import ResultWriter


@dataclass
class EvaluatorConfig:
    """Evaluation settings."""

    output_directory: str = ""
    # Evaluated distances to the sensor, inclusive [m].
    min_range: float = 0.0
    max_range: float = 20.0
    evaluate_point_level: bool = True
    evaluate_cluster_level: bool = True
    evaluate_object_level: bool = True
    evaluate_ranges: bool = True
    ground_truth: GroundTruthConfig = field(default_factory=GroundTruthConfig)

    def __post_init__(self):
        self.output_directory = str(self.output_directory) if self.output_directory else ""

    def validate(self, require_ground_truth: bool = True) -> "EvaluatorConfig":
        """
        Check the configuration.

        Args:
            require_ground_truth: Whether the ground truth section must be
                complete, i.e. no labeling handler is supplied separately.

        Raises:
            ConfigError: If any value is invalid.
        """
        if not self.output_directory:
            raise ConfigError("'output_directory' must be set.")
        if self.min_range < 0:
            raise ConfigError(f"'min_range' must be >= 0, got {self.min_range}.")
        if not self.max_range > self.min_range:
            raise ConfigError("'max_range' must be larger than 'min_range'.")
        self.ground_truth.validate(require_directory=require_ground_truth)
        return self

    @property
    def levels(self) -> List[EvaluationLevel]:
        """Enabled levels in scores-table column order."""
        enabled = {
            EvaluationLevel.POINT: self.evaluate_point_level,
            EvaluationLevel.CLUSTER: self.evaluate_cluster_level,
            EvaluationLevel.OBJECT: self.evaluate_object_level,
        }
        return [level for level, on in enabled.items() if on]

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "EvaluatorConfig":
        """
        Build a config from a (YAML) dictionary.

        Raises:
            ConfigError: On unknown keys.
        """
        config = dict(config or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ConfigError(f"Unknown evaluation config keys: {unknown}")

        gt = config.pop("ground_truth", None) or {}
        gt_known = {f.name for f in fields(GroundTruthConfig)}
        gt_unknown = sorted(set(gt) - gt_known)
        if gt_unknown:
            raise ConfigError(f"Unknown ground_truth config keys: {gt_unknown}")

        try:
            for key in ("min_range", "max_range"):
                if key in config:
                    config[key] = float(config[key])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid range value: {e}") from e

        if "output_directory" in config:
            config["output_directory"] = str(config["output_directory"])

        return cls(ground_truth=GroundTruthConfig(**gt), **config)

    @classmethod
    def from_yaml(
        cls,
        config_path: Union[str, Path],
        section: Optional[str] = "evaluation",
    ) -> "EvaluatorConfig":
        """Load the config, optionally from a named section of a YAML file."""
        config = ConfigLoader().load(config_path)
        if section and section in config:
            config = config[section]
        return cls.from_dict(config)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_string(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)


class Evaluator(LoggerMixin):
    """
    Evaluate classified point clouds against ground truth.

    For every frame the timing dump is refreshed. Frames the ground truth
    handler can label are range filtered and scored at each enabled level;
    one row per such frame is appended to the scores table and, if enabled,
    the distance buckets are updated and rewritten.

    Frames are only borrowed for the duration of ``evaluate_frame``. Not
    safe for concurrent calls.
    """

    def __init__(
        self,
        config: EvaluatorConfig,
        ground_truth_handler: Optional[GroundTruthSource] = None,
        timing: Optional[TimingCollector] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the evaluator and its output files.

        Args:
            config: Evaluation settings, validated here.
            ground_truth_handler: Labeling service. Built from
                ``config.ground_truth`` if not given.
            timing: Timing collector whose report is dumped every frame.
            logger: Logger passed to all components.

        Raises:
            ConfigError: If the config is invalid.
        """
        self.config = config.validate(require_ground_truth=ground_truth_handler is None)
        self.logger = logger
        self.logger.info("Evaluation config:\n" + self.config.to_string())

        if ground_truth_handler is None:
            ground_truth_handler = GroundTruthHandler(self.config.ground_truth, logger=logger)
        self.ground_truth_handler = ground_truth_handler
        self.timing = timing if timing is not None else get_timing_collector()
        self.levels = self.config.levels

        self.writer = ResultWriter(self.config.output_directory, self.levels, logger=logger)
        self.range_buckets = RangeBuckets() if self.config.evaluate_ranges else None

        self.evaluated_frames = 0
        self._cumulative = {level: ConfusionMatrix() for level in self.levels}

    @property
    def output_directory(self) -> Path:
        return self.writer.output_directory

    def evaluate_frame(self, frame: CloudFrame) -> bool:
        """
        Evaluate one frame.

        Args:
            frame: Classified frame; only its annotation is modified.

        Returns:
            True if ground truth was available and the frame was scored.
        """
        self.writer.write_timings(self.timing.current_report_text())

        if not self.ground_truth_handler.label_if_available(frame):
            return False

        self._write_scores(frame)
        self.evaluated_frames += 1
        self.logger.info(
            f"Evaluated cloud {self.evaluated_frames} with timestamp {frame.timestamp}."
        )
        return True

    def _write_scores(self, frame: CloudFrame) -> None:
        evaluated_points = filter_eligible_points(
            frame, self.config.min_range, self.config.max_range
        )

        results: List[LevelResult] = []
        for level in self.levels:
            result = evaluate_level(frame, level, logger=self.logger)
            if result is None:
                continue
            results.append(result)
            self._cumulative[result.level] = self._cumulative[result.level] + result.matrix

        self.writer.append_scores(frame.timestamp, results, evaluated_points, len(frame))

        if self.range_buckets is not None:
            self.range_buckets.accumulate(frame)
            self.writer.write_ranges(self.range_buckets)

    def cumulative_matrices(self) -> Dict[EvaluationLevel, ConfusionMatrix]:
        """Confusion matrices summed over all evaluated frames, per level."""
        return dict(self._cumulative)

    def summary(self) -> Dict[EvaluationLevel, Metrics]:
        """Metrics of the cumulative confusion matrices, per level."""
        return {level: compute_metrics(m) for level, m in self._cumulative.items()}
