"""Persistence of evaluation results."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..sensors.cloud import EvaluationLevel
from ..utils.logger import LoggerMixin
from .metrics import LevelResult
from .ranges import RangeBuckets, format_number

SCORES_FILE_NAME = "scores.csv"
RANGES_FILE_NAME = "ranges.csv"
TIMINGS_FILE_NAME = "timings.txt"

TIMESTAMP_FORMAT = "%Y_%m_%d-%H_%M_%S"
LEVEL_COLUMNS = ("IoU", "Precision", "Recall", "TP", "TN", "FP", "FN")


def resolve_output_directory(
    output_directory: Union[str, Path],
    now: Optional[datetime] = None,
) -> Path:
    """
    Create a fresh output directory.

    If ``output_directory`` already exists, a sibling named
    ``<output_directory>_<YYYY_MM_DD-HH_MM_SS>`` is created instead, with a
    numeric suffix if that is taken as well. An existing directory is never
    reused.

    Args:
        output_directory: Requested directory.
        now: Time used for the suffix (defaults to the current local time).

    Returns:
        Path of the created directory.
    """
    requested = Path(output_directory)
    try:
        requested.mkdir(parents=True, exist_ok=False)
        return requested
    except FileExistsError:
        pass

    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    requested = requested.resolve()
    base = requested.with_name(f"{requested.name}_{stamp}")
    candidate = base
    attempt = 0

    while True:
        try:
            candidate.mkdir(parents=True, exist_ok=False)
            return candidate
        except FileExistsError:
            attempt += 1
            candidate = base.with_name(f"{base.name}_{attempt}")


def format_timestamp(timestamp) -> str:
    if isinstance(timestamp, float):
        return repr(float(timestamp))
    return str(timestamp)


def scores_header(levels: Sequence[EvaluationLevel]) -> str:
    columns = ["timestamp"]
    for level in levels:
        columns.extend(f"{level.value}_{column}" for column in LEVEL_COLUMNS)
    columns.extend(["EvaluatedPoints", "TotalPoints"])
    return ",".join(columns)


def scores_row(
    timestamp,
    results: Iterable[LevelResult],
    evaluated_points: int,
    total_points: int,
) -> str:
    values: List = []
    for result in results:
        m, c = result.metrics, result.matrix
        values.extend([m.iou, m.precision, m.recall, c.tp, c.tn, c.fp, c.fn])
    values.extend([evaluated_points, total_points])
    return ",".join([format_timestamp(timestamp)] + [format_number(v) for v in values])


class ResultWriter(LoggerMixin):
    """
    Write the evaluation files of one run.

    - ``scores.csv``: header at setup, one appended row per evaluated frame.
    - ``ranges.csv``: rewritten with all accumulated distances on each call.
    - ``timings.txt``: rewritten with the latest timing report on each call.

    Every write opens and closes its file; no handles are kept.
    """

    def __init__(
        self,
        output_directory: Union[str, Path],
        levels: Sequence[EvaluationLevel],
        logger: Optional[logging.Logger] = None,
        now: Optional[datetime] = None,
    ):
        """
        Create the output directory and the scores header.

        Args:
            output_directory: Requested output directory.
            levels: Evaluated levels, in column order.
            logger: Logger to use.
            now: Time used for the collision suffix.
        """
        self.logger = logger
        self.levels = [EvaluationLevel.parse(level) for level in levels]
        self.output_directory = resolve_output_directory(output_directory, now=now)

        if self.output_directory != Path(output_directory):
            self.logger.info(
                f"Output directory '{output_directory}' already exists, "
                f"using '{self.output_directory}' instead."
            )
        self.logger.info(f"Writing evaluation to '{self.output_directory}'.")

        with open(self.scores_path, "w") as f:
            f.write(scores_header(self.levels) + "\n")

    @property
    def scores_path(self) -> Path:
        return self.output_directory / SCORES_FILE_NAME

    @property
    def ranges_path(self) -> Path:
        return self.output_directory / RANGES_FILE_NAME

    @property
    def timings_path(self) -> Path:
        return self.output_directory / TIMINGS_FILE_NAME

    def append_scores(
        self,
        timestamp,
        results: Sequence[LevelResult],
        evaluated_points: int,
        total_points: int,
    ) -> None:
        """Append one frame's row to the scores table."""
        with open(self.scores_path, "a") as f:
            f.write(scores_row(timestamp, results, evaluated_points, total_points) + "\n")

    def write_ranges(self, buckets: RangeBuckets) -> None:
        """Overwrite the range dump with all distances accumulated so far."""
        with open(self.ranges_path, "w") as f:
            f.write("\n".join(buckets.lines()) + "\n")

    def write_timings(self, report: str) -> None:
        """Overwrite the timing dump with the current report."""
        with open(self.timings_path, "w") as f:
            f.write(report + "\n")
