"""In-memory stand-ins for the fetcher and oracle ports."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from tyingbench.domain.errors import PermanentSourceError, TransientNetworkError

if TYPE_CHECKING:
    from tyingbench.domain.model import ExtractedPayload, Source
    from tyingbench.domain.ports import ExtractionFailure, SourceMetadata

type Outcome = str | Exception


class FakeFetcher:
    """Returns scripted outcomes per URL; an exception in the script is raised.

    The last scripted outcome repeats once the script runs out.
    """

    def __init__(self, scripts: dict[str, list[Outcome]] | None = None, default: str = "") -> None:
        self.scripts = scripts or {}
        self.default = default
        self.calls: defaultdict[str, int] = defaultdict(int)

    async def fetch(self, source: Source) -> str:
        attempt = self.calls[source.url]
        self.calls[source.url] += 1
        script = self.scripts.get(source.url)
        if not script:
            if not self.default:
                raise PermanentSourceError(f"HTTP 404 for {source.url}")
            return self.default
        outcome = script[min(attempt, len(script) - 1)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeOracle:
    def __init__(
        self,
        payloads: dict[str, ExtractedPayload | ExtractionFailure],
        *,
        transient_failures: int = 0,
    ) -> None:
        self.payloads = payloads
        self.transient_failures = transient_failures
        self.requests: list[tuple[str, SourceMetadata]] = []

    async def extract(
        self, raw_content: str, metadata: SourceMetadata
    ) -> ExtractedPayload | ExtractionFailure:
        self.requests.append((raw_content, metadata))
        if self.transient_failures:
            self.transient_failures -= 1
            raise TransientNetworkError("oracle timed out")
        return self.payloads[metadata.url]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
