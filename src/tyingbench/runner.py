"""Async worker pool for the scrape and extract stages.

Sources are processed concurrently up to ``PipelineConfig.concurrency``; calls
to the same host are additionally throttled by a per-domain limiter. Transient
network errors are retried with exponential backoff; anything else fails the
source without retrying.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from tyingbench.adapters.http_resilience import DomainRateLimiter
from tyingbench.config import PipelineConfig
from tyingbench.domain.errors import PermanentSourceError, PipelineError, TransientNetworkError
from tyingbench.domain.identity import url_domain
from tyingbench.domain.model import SourceStatus
from tyingbench.domain.ports import ExtractionFailure, SourceMetadata

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from tyingbench.config import BackoffPolicy
    from tyingbench.domain.model import Source
    from tyingbench.domain.pipeline import ExtractionStore, SourceRegistry
    from tyingbench.domain.ports import ContentFetcher, ExtractionOracle

type Sleep = Callable[[float], Awaitable[None]]

log = getLogger(__name__)


@dataclass(slots=True)
class StageResult:
    stage: str
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: dict[str, str] = field(default_factory=dict[str, str])

    def record_failure(self, source: Source, reason: str) -> None:
        self.failed += 1
        self.errors[source.url] = reason

    def summary(self) -> str:
        return (
            f"{self.stage}: attempted={self.attempted}, succeeded={self.succeeded}, "
            f"failed={self.failed}"
        )


async def retry_with_backoff[T](
    operation: Callable[[], Awaitable[T]],
    *,
    policy: BackoffPolicy,
    sleep: Sleep = asyncio.sleep,
    description: str = "operation",
) -> T:
    """Run ``operation``, retrying ``TransientNetworkError`` up to ``policy.attempts`` times."""

    attempts = max(1, policy.attempts)
    for attempt in range(attempts):
        try:
            return await operation()
        except TransientNetworkError as exc:
            if attempt + 1 >= attempts:
                log.warning(f"{description} failed after {attempts} attempts: {exc}")
                raise
            delay = policy.delay_for(attempt)
            log.info(f"{description} failed ({exc}); retry {attempt + 1} in {delay:.1f}s")
            await sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover


class PipelineRunner:
    def __init__(
        self,
        *,
        registry: SourceRegistry,
        store: ExtractionStore,
        fetcher: ContentFetcher | None = None,
        oracle: ExtractionOracle | None = None,
        config: PipelineConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.store = store
        self.fetcher = fetcher
        self.oracle = oracle
        self.config = config or PipelineConfig()
        self._sleep = sleep
        self._limiters = DomainRateLimiter(self.config.domain_calls_per_second)

    async def run(self, *, limit: int | None = None) -> tuple[StageResult, StageResult]:
        scraped = await self.scrape_pending(limit=limit)
        extracted = await self.extract_pending(limit=limit)
        return scraped, extracted

    async def scrape_pending(self, *, limit: int | None = None) -> StageResult:
        fetcher = self.fetcher
        if fetcher is None:
            raise RuntimeError("No content fetcher configured")
        sources = self.registry.list_by_status(SourceStatus.DISCOVERED, limit=limit)

        async def scrape(source: Source, result: StageResult) -> None:
            await self._scrape_one(fetcher, source, result)

        return await self._run_stage("scrape", sources, scrape)

    async def extract_pending(self, *, limit: int | None = None) -> StageResult:
        oracle = self.oracle
        if oracle is None:
            raise RuntimeError("No extraction oracle configured")
        sources = self.registry.list_by_status(SourceStatus.SCRAPED, limit=limit)

        async def extract(source: Source, result: StageResult) -> None:
            await self._extract_one(oracle, source, result)

        return await self._run_stage("extract", sources, extract)

    async def _run_stage(
        self,
        stage: str,
        sources: Iterable[Source],
        worker: Callable[[Source, StageResult], Awaitable[None]],
    ) -> StageResult:
        result = StageResult(stage)
        semaphore = asyncio.Semaphore(max(1, self.config.concurrency))

        async def bounded(source: Source) -> None:
            async with semaphore:
                result.attempted += 1
                await worker(source, result)

        await asyncio.gather(*(bounded(source) for source in sources))
        log.info(result.summary())
        return result

    async def _throttled[T](self, source: Source, call: Callable[[], Awaitable[T]]) -> T:
        async def attempt() -> T:
            async with self._limiters.for_domain(url_domain(source.url)):
                return await call()

        return await retry_with_backoff(
            attempt,
            policy=self.config.backoff,
            sleep=self._sleep,
            description=source.url,
        )

    async def _scrape_one(
        self, fetcher: ContentFetcher, source: Source, result: StageResult
    ) -> None:
        try:
            content = await self._throttled(source, lambda: fetcher.fetch(source))
        except (PermanentSourceError, TransientNetworkError) as exc:
            self._fail(source, result, str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            log.exception(f"Unexpected error scraping {source.url}")
            self._fail(source, result, f"unexpected error: {exc}")
            return
        self.registry.mark_scraped(source.id, content)
        result.succeeded += 1

    async def _extract_one(
        self, oracle: ExtractionOracle, source: Source, result: StageResult
    ) -> None:
        if not source.raw_content:
            self._fail(source, result, "no raw content to extract from")
            return
        raw_content = source.raw_content
        metadata = SourceMetadata.of(source)
        try:
            outcome = await self._throttled(
                source, lambda: oracle.extract(raw_content, metadata)
            )
        except (PermanentSourceError, TransientNetworkError) as exc:
            self._fail(source, result, str(exc))
            return
        except Exception as exc:  # noqa: BLE001
            log.exception(f"Unexpected error extracting {source.url}")
            self._fail(source, result, f"unexpected error: {exc}")
            return

        if isinstance(outcome, ExtractionFailure):
            self._fail(source, result, outcome.reason)
            return
        try:
            self.store.submit_extraction(source.id, outcome)
        except PipelineError as exc:
            log.warning(f"Could not store extraction for {source.url}: {exc}")
            result.record_failure(source, str(exc))
            return
        result.succeeded += 1

    def _fail(self, source: Source, result: StageResult, reason: str) -> None:
        result.record_failure(source, reason)
        self.registry.mark_failed(source.id, reason)
