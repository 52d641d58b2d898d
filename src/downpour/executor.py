import asyncio
import logging

import aiohttp

from .models import RequestOutcome, WorkItem
from .stats import StatsAggregator
from .utils import now

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200
UPLOAD_FIELD = "file[]"


def is_success(status: int | None) -> bool:
    # Only an exact 200 counts; 201/204 from an upload endpoint are failures
    return status == SUCCESS_STATUS


class RequestExecutor:
    """Sends one multipart upload per work item and reports its outcome."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: dict[str, str] | None = None,
        progress_every: int = 50,
    ) -> None:
        self.session = session
        self.url = url
        self.headers = headers or {}
        self.progress_every = progress_every

    @staticmethod
    def build_form(item: WorkItem) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field(
            UPLOAD_FIELD,
            item.payload,
            filename=item.name,
            content_type="application/octet-stream",
        )
        return form

    async def _send(self, item: WorkItem) -> RequestOutcome:
        try:
            form = self.build_form(item)
        except (TypeError, ValueError) as e:
            return RequestOutcome.failure(error=f"building multipart body: {e}")

        start = now()
        try:
            # Timing stops once headers arrive; the body is never drained
            async with self.session.post(self.url, data=form, headers=self.headers) as resp:
                latency = now() - start
                status = resp.status
        except asyncio.TimeoutError:
            return RequestOutcome.failure(error="timed out")
        except aiohttp.ClientError as e:
            return RequestOutcome.failure(error=f"{type(e).__name__}: {e}")

        if is_success(status):
            return RequestOutcome.success(latency, status)
        return RequestOutcome.failure(status=status, error=f"status {status}")

    async def execute(self, item: WorkItem, aggregator: StatsAggregator) -> RequestOutcome:
        outcome = await self._send(item)

        if outcome.ok:
            aggregator.add_success(outcome.duration, outcome.status)
            if item.request_num % self.progress_every == 0:
                logger.info(
                    f"Request {item.request_num} completed successfully in {outcome.duration:.3f}s"
                )
        else:
            aggregator.add_failure(outcome.status)
            logger.warning(f"Request {item.request_num} failed: {outcome.error}")

        return outcome
