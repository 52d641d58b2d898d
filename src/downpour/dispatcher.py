import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from .models import AggregateStats, CorpusItem, RequestOutcome, WorkItem
from .stats import StatsAggregator
from .throttling import ConcurrencyGate
from .utils import GracefulKiller

logger = logging.getLogger(__name__)

DEFAULT_PACING_DELAY_S = 0.02


class Executor(Protocol):
    async def execute(self, item: WorkItem, aggregator: StatsAggregator) -> RequestOutcome: ...


def select_work_item(corpus: Sequence[CorpusItem], request_num: int) -> WorkItem:
    """Pick the corpus entry for ``request_num``, cycling through the corpus."""
    idx = request_num % len(corpus)
    entry = corpus[idx]
    return WorkItem(
        request_num=request_num,
        corpus_index=idx,
        name=entry.name,
        payload=entry.payload,
    )


class Dispatcher:
    """Launches a fixed number of uploads with bounded concurrency.

    Each unit holds a gate permit for the request *and* the pacing delay
    that follows it, so sustained throughput stays below
    ``concurrency / (latency + pacing_delay_s)``.
    """

    def __init__(
        self,
        executor: Executor,
        pacing_delay_s: float = DEFAULT_PACING_DELAY_S,
        graceful_killer: GracefulKiller | None = None,
        on_complete: Callable[[RequestOutcome], None] | None = None,
    ) -> None:
        self.executor = executor
        self.pacing_delay_s = pacing_delay_s
        self.graceful_killer = graceful_killer
        self.on_complete = on_complete
        self.gate: ConcurrencyGate | None = None
        self.launched = 0

    def _should_stop(self) -> bool:
        return self.graceful_killer is not None and self.graceful_killer.kill_now

    async def _run_unit(
        self, item: WorkItem, gate: ConcurrencyGate, aggregator: StatsAggregator
    ) -> None:
        # The permit was taken by the launcher; it is released here on every path
        try:
            try:
                outcome = await self.executor.execute(item, aggregator)
            except Exception as e:
                logger.error(f"Request {item.request_num} crashed: {e!r}")
                aggregator.add_failure()
                outcome = RequestOutcome.failure(error=repr(e))
            if self.on_complete:
                try:
                    self.on_complete(outcome)
                except Exception as e:
                    logger.error(f"Completion callback failed for request {item.request_num}: {e!r}")
            await asyncio.sleep(self.pacing_delay_s)
        finally:
            gate.release()

    async def run(
        self, total_requests: int, concurrency: int, corpus: Sequence[CorpusItem]
    ) -> AggregateStats:
        aggregator = StatsAggregator()
        self.launched = 0

        if total_requests <= 0:
            logger.info("No requests to dispatch.")
            return aggregator.snapshot(requested=0)
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if not corpus:
            raise ValueError("cannot dispatch requests from an empty corpus")

        gate = ConcurrencyGate(concurrency, name="dispatch")
        self.gate = gate
        tasks: list[asyncio.Task] = []

        logger.info(
            f"Dispatching {total_requests} requests, concurrency={concurrency}, "
            f"pacing={self.pacing_delay_s * 1000:.0f}ms, corpus={len(corpus)} items"
        )

        try:
            for request_num in range(total_requests):
                await gate.acquire()
                # Checked after the wait: shutdown may arrive while blocked on a permit
                if self._should_stop():
                    gate.release()
                    logger.info(
                        f"Shutdown requested. Stopped launching after {self.launched} requests"
                    )
                    break
                item = select_work_item(corpus, request_num)
                tasks.append(asyncio.create_task(self._run_unit(item, gate, aggregator)))
                self.launched += 1
        finally:
            # Join every launched unit before the stats are read
            await asyncio.gather(*tasks, return_exceptions=True)

        stats = aggregator.snapshot(requested=total_requests)
        logger.info(
            f"Dispatch finished: {stats.success_count} succeeded, {stats.failure_count} failed, "
            f"{stats.skipped} skipped, peak in flight {gate.peak}/{concurrency}"
        )
        return stats
