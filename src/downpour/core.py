import logging

import aiohttp
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn, MofNCompleteColumn

from .config import LoadTestConfig
from .corpus import load_corpus
from .dispatcher import Dispatcher
from .errors import FatalTeardownError, MemorySampleError
from .executor import RequestExecutor
from .memory import BYTES_PER_MB, DockerMemorySampler
from .metrics import compute_stats
from .models import MemoryDelta, MetricsCallback, RequestOutcome, RunResult
from .utils import GracefulKiller, build_upload_headers, now, origin_of


logger = logging.getLogger(__name__)


class LoadRunner:
    """Drives one load test: corpus, memory bracket, dispatch, stats."""

    def __init__(
        self,
        config: LoadTestConfig,
        memory_sampler: DockerMemorySampler | None = None,
        metrics_callback: MetricsCallback | None = None,
        graceful_killer: GracefulKiller | None = None,
        use_progress_bar: bool = True,
    ) -> None:
        self.config = config
        self.metrics_callback = metrics_callback
        self.graceful_killer = graceful_killer
        self.use_progress_bar = use_progress_bar
        self.memory_sampler = memory_sampler
        if self.memory_sampler is None and config.container_id:
            self.memory_sampler = DockerMemorySampler(config.docker_host)

        origin = config.origin or origin_of(config.url)
        self.headers = build_upload_headers(config.bearer_token, origin, config.time_zone)

        logger.info(
            f"Initialized runner: url={config.url}, requests={config.total_requests}, "
            f"concurrency={config.concurrency}, timeout={config.request_timeout_s}s"
        )

    @property
    def samples_memory(self) -> bool:
        return bool(self.config.container_id) and self.memory_sampler is not None

    async def _sample_memory(self, stage: str) -> int:
        usage = await self.memory_sampler.sample(self.config.container_id)
        logger.info(f"Memory usage {stage}: {usage / BYTES_PER_MB:.2f} MB")
        return usage

    async def run(self) -> RunResult:
        cfg = self.config
        logger.info("Starting load test...")

        # Setup errors (CorpusError, MemorySampleError) propagate before any request
        corpus = load_corpus(cfg.corpus_path, cfg.extensions)

        memory = MemoryDelta()
        if self.samples_memory:
            memory.before = await self._sample_memory("before run")

        progress = None
        task_id = None
        if self.use_progress_bar:
            progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
            )
            task_id = progress.add_task("[cyan]Uploading...", total=cfg.total_requests)

        def on_complete(_outcome: RequestOutcome) -> None:
            if progress is not None and task_id is not None:
                progress.advance(task_id)

        connector = aiohttp.TCPConnector(limit=0)
        timeout = aiohttp.ClientTimeout(total=cfg.request_timeout_s)
        async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
            executor = RequestExecutor(
                session, cfg.url, headers=self.headers, progress_every=cfg.progress_every
            )
            dispatcher = Dispatcher(
                executor,
                pacing_delay_s=cfg.pacing_delay_s,
                graceful_killer=self.graceful_killer,
                on_complete=on_complete,
            )
            if progress:
                progress.start()
            t0 = now()
            try:
                agg = await dispatcher.run(cfg.total_requests, cfg.concurrency, corpus)
            finally:
                duration = now() - t0
                if progress:
                    progress.stop()

        stats = compute_stats(agg, self.metrics_callback)
        result = RunResult(
            requested=agg.requested,
            skipped=agg.skipped,
            duration_s=duration,
            stats=stats,
            memory=memory,
            latencies=agg.latencies,
        )

        if self.samples_memory:
            try:
                memory.after = await self._sample_memory("after run")
            except MemorySampleError as e:
                raise FatalTeardownError(f"error getting final memory usage: {e}", result) from e
            logger.info(f"Memory difference: {memory.delta / BYTES_PER_MB:+.2f} MB")

        logger.info(
            f"Run completed: {stats.success} successes, {stats.errors} errors, "
            f"error_rate={stats.error_rate * 100:.2f}%"
        )
        return result
