"""Runtime timing statistics for the motion detection pipeline."""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

import numpy as np


@dataclass
class TimingRecord:
    """Durations (seconds) recorded under one timer tag."""

    name: str
    durations: List[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.durations)

    @property
    def total(self) -> float:
        return float(np.sum(self.durations)) if self.durations else 0.0

    def stats(self) -> Dict[str, float]:
        """Return count, total, mean, std, min and max of the durations."""
        if not self.durations:
            return {"count": 0, "total": 0.0, "mean": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}

        values = np.asarray(self.durations, dtype=np.float64)
        return {
            "count": len(values),
            "total": float(values.sum()),
            "mean": float(values.mean()),
            "std": float(values.std()),
            "min": float(values.min()),
            "max": float(values.max()),
        }


class TimingCollector:
    """
    Collect cumulative wall-clock timings per tag.

    Timers are started and stopped by name, or used as a context manager:

        with collector.timer("motion_detection/clustering"):
            ...

    The collector only grows; ``current_report_text`` renders a snapshot of
    everything recorded so far.
    """

    def __init__(self):
        self._records: Dict[str, TimingRecord] = {}
        self._running: Dict[str, float] = {}

    def start(self, name: str) -> None:
        """Start the timer for ``name``."""
        if name in self._running:
            raise RuntimeError(f"Timer '{name}' is already running")
        self._running[name] = time.perf_counter()

    def stop(self, name: str) -> float:
        """Stop the timer for ``name`` and record the elapsed time."""
        try:
            started = self._running.pop(name)
        except KeyError:
            raise RuntimeError(f"Timer '{name}' was not started") from None

        elapsed = time.perf_counter() - started
        self.record(name, elapsed)
        return elapsed

    def record(self, name: str, duration: float) -> None:
        """Record an externally measured duration in seconds."""
        if duration < 0:
            raise ValueError(f"Duration must be non-negative, got {duration}")
        self._records.setdefault(name, TimingRecord(name)).durations.append(duration)

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        """Time the enclosed block under ``name``."""
        self.start(name)
        try:
            yield
        finally:
            self.stop(name)

    def get(self, name: str) -> Optional[TimingRecord]:
        return self._records.get(name)

    @property
    def names(self) -> List[str]:
        return sorted(self._records)

    def current_report_text(self) -> str:
        """
        Render all timings as a fixed-width table.

        Returns:
            Report text, one line per tag sorted by name, times in seconds.
        """
        header = f"{'name':<40}{'count':>8}{'total':>12}{'mean':>12}{'std':>12}{'min':>12}{'max':>12}"
        lines = ["Timing statistics (seconds)", "-" * len(header), header]

        for name in self.names:
            s = self._records[name].stats()
            lines.append(
                f"{name:<40}{s['count']:>8d}{s['total']:>12.6f}{s['mean']:>12.6f}"
                f"{s['std']:>12.6f}{s['min']:>12.6f}{s['max']:>12.6f}"
            )

        lines.append("-" * len(header))
        return "\n".join(lines)


_DEFAULT_COLLECTOR = TimingCollector()


def get_timing_collector() -> TimingCollector:
    """Return the process-wide timing collector."""
    return _DEFAULT_COLLECTOR
