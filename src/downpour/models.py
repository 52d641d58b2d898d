from dataclasses import dataclass, field
from typing import Any, Optional
from collections.abc import Callable


@dataclass(frozen=True)
class CorpusItem:
    name: str
    payload: bytes


@dataclass(frozen=True)
class WorkItem:
    request_num: int
    corpus_index: int
    name: str
    payload: bytes


@dataclass(frozen=True)
class RequestOutcome:
    ok: bool
    duration: Optional[float] = None
    status: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, duration: float, status: int = 200) -> "RequestOutcome":
        return cls(ok=True, duration=duration, status=status)

    @classmethod
    def failure(cls, status: int | None = None, error: str | None = None) -> "RequestOutcome":
        return cls(ok=False, status=status, error=error)


@dataclass
class AggregateStats:
    requested: int = 0
    success_count: int = 0
    failure_count: int = 0
    total_success_duration: float = 0.0
    latencies: list[float] = field(default_factory=list)
    status_counts: dict[int, int] = field(default_factory=dict)

    @property
    def completed(self) -> int:
        return self.success_count + self.failure_count

    @property
    def skipped(self) -> int:
        return max(0, self.requested - self.completed)

    @property
    def mean_latency(self) -> float | None:
        if not self.success_count:
            return None
        return self.total_success_duration / self.success_count


@dataclass
class Stats:
    total: int
    success: int
    errors: int
    mean: float | None
    std: float | None
    p50: float | None
    p90: float | None
    p95: float | None
    p99: float | None
    min: float | None
    max: float | None
    error_rate: float
    status_counts: dict[int, int]


@dataclass
class MemoryDelta:
    before: int | None = None
    after: int | None = None

    @property
    def delta(self) -> int | None:
        # Signed: the target may release memory during the run
        if self.before is None or self.after is None:
            return None
        return self.after - self.before


@dataclass
class RunResult:
    requested: int
    skipped: int
    duration_s: float
    stats: Stats
    memory: MemoryDelta
    latencies: list[float] = field(default_factory=list)

    @property
    def requests_per_second(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return self.stats.total / self.duration_s


# Metrics callback: callable accepting stats dict
MetricsCallback = Callable[[dict[str, Any]], None]
