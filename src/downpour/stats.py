import logging
import threading
from collections import defaultdict

from .models import AggregateStats

logger = logging.getLogger(__name__)


class StatsAggregator:
    """Accumulates request outcomes from concurrent workers.

    Every mutation happens under one lock, so the (success, failure,
    total duration) triple is never observed half-updated. The lock is a
    ``threading.Lock`` and is never held across an ``await``; callers may be
    coroutines on the event loop or plain threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._success_count = 0
        self._failure_count = 0
        self._total_success_duration = 0.0
        self._latencies: list[float] = []
        self._status_counts: dict[int, int] = defaultdict(int)

    def add_success(self, duration: float, status: int = 200) -> None:
        with self._lock:
            self._success_count += 1
            self._total_success_duration += duration
            self._latencies.append(duration)
            self._status_counts[status] += 1

    def add_failure(self, status: int | None = None) -> None:
        with self._lock:
            self._failure_count += 1
            if status is not None:
                self._status_counts[status] += 1

    def snapshot(self, requested: int | None = None) -> AggregateStats:
        with self._lock:
            completed = self._success_count + self._failure_count
            stats = AggregateStats(
                requested=completed if requested is None else requested,
                success_count=self._success_count,
                failure_count=self._failure_count,
                total_success_duration=self._total_success_duration,
                latencies=list(self._latencies),
                status_counts=dict(self._status_counts),
            )
        logger.debug(
            f"Snapshot: success={stats.success_count}, failure={stats.failure_count}, "
            f"requested={stats.requested}"
        )
        return stats
