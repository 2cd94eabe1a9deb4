"""In-memory counters and timings reported by event sources."""

from __future__ import annotations

from collections import Counter
from contextlib import contextmanager
from time import perf_counter
from typing import Dict, Generator

from .logging import get_logger

LOGGER = get_logger("telemetry")


class MetricsCollector:
    """Counts registry activity and accumulates dispatch durations.

    ``timings`` holds the total seconds spent per name and ``samples`` how
    many measurements contributed to it.
    """

    def __init__(self) -> None:
        self.counters: Counter[str] = Counter()
        self.timings: Dict[str, float] = {}
        self.samples: Counter[str] = Counter()

    def increment(self, name: str, value: int = 1) -> None:
        self.counters[name] += value

    @contextmanager
    def time(self, name: str) -> Generator[None, None, None]:
        start = perf_counter()
        try:
            yield
        finally:
            self.observe(name, perf_counter() - start)

    def observe(self, name: str, seconds: float) -> None:
        self.timings[name] = self.timings.get(name, 0.0) + seconds
        self.samples[name] += 1
        LOGGER.debug("timing=%s duration=%.6f samples=%s", name, seconds, self.samples[name])

    def average(self, name: str) -> float:
        """Return the mean duration recorded for ``name`` (0.0 when unseen)."""

        count = self.samples[name]
        return self.timings[name] / count if count else 0.0

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        return {
            "counters": dict(self.counters),
            "timings": dict(self.timings),
            "samples": dict(self.samples),
        }

    def reset(self) -> None:
        self.counters.clear()
        self.timings.clear()
        self.samples.clear()
