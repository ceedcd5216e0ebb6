"""Operation timing with a rolling window of samples per operation name."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

logger = logging.getLogger(__name__)

MAX_SAMPLES_PER_OPERATION = 100


@dataclass(frozen=True)
class TimingStats:
    count: int
    avg: float
    min: float
    max: float
    p95: float


class PerformanceMonitor:
    """Records elapsed milliseconds for named operations.

    Running timers are tracked per thread, so overlapping requests on one
    monitor each measure their own operations. Samples are shared.
    """

    def __init__(
        self,
        *,
        max_samples: int = MAX_SAMPLES_PER_OPERATION,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._max_samples = max(max_samples, 1)
        self._clock = clock
        self._local = threading.local()
        self._lock = threading.Lock()
        self._samples: Dict[str, Deque[float]] = {}

    def _timers(self) -> Dict[str, float]:
        timers = getattr(self._local, "timers", None)
        if timers is None:
            timers = self._local.timers = {}
        return timers

    def start_timer(self, name: str) -> None:
        self._timers()[name] = self._clock()

    def end_timer(self, name: str) -> float:
        started = self._timers().pop(name, None)
        if started is None:
            logger.warning("No timer found for operation: %s", name)
            return 0.0
        elapsed_ms = (self._clock() - started) * 1000.0
        with self._lock:
            samples = self._samples.setdefault(name, deque(maxlen=self._max_samples))
            samples.append(elapsed_ms)
        return elapsed_ms

    def get_stats(self, name: str) -> Optional[TimingStats]:
        with self._lock:
            ordered = sorted(self._samples.get(name, ()))
        if not ordered:
            return None
        count = len(ordered)
        p95_index = min(math.floor(count * 0.95), count - 1)
        return TimingStats(
            count=count,
            avg=sum(ordered) / count,
            min=ordered[0],
            max=ordered[-1],
            p95=ordered[p95_index],
        )

    def all_stats(self) -> Dict[str, TimingStats]:
        stats: Dict[str, TimingStats] = {}
        with self._lock:
            names = list(self._samples)
        for name in names:
            entry = self.get_stats(name)
            if entry is not None:
                stats[name] = entry
        return stats

    def log_all_stats(self) -> None:
        for name, stats in self.all_stats().items():
            logger.info(
                "Timing %s: count=%s avg=%.1fms min=%.1fms max=%.1fms p95=%.1fms",
                name,
                stats.count,
                stats.avg,
                stats.min,
                stats.max,
                stats.p95,
            )

    def clear(self) -> None:
        self._timers().clear()
        with self._lock:
            self._samples.clear()


__all__ = ["MAX_SAMPLES_PER_OPERATION", "PerformanceMonitor", "TimingStats"]
