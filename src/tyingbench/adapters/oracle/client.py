"""HTTP client for a remote extraction oracle service."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PydanticValidationError

from tyingbench.adapters.http_resilience import ResilientClient
from tyingbench.config import get_oracle_config
from tyingbench.domain.errors import TransientNetworkError
from tyingbench.domain.ports.fetching import ExtractionFailure, ExtractionOracle

from .schema import OracleRequest, OracleResponse
from .translator import translate_pattern

if TYPE_CHECKING:
    from tyingbench.config import OracleConfig
    from tyingbench.domain.model import ExtractedPayload
    from tyingbench.domain.ports.fetching import SourceMetadata

log = getLogger(__name__)

_TRANSIENT_STATUSES = frozenset({408, 425, 429})


def _request_body(raw_content: str, metadata: SourceMetadata) -> dict[str, object]:
    request = OracleRequest(
        content=raw_content,
        metadata={
            "url": metadata.url,
            "sourceType": metadata.source_type.value,
            "title": metadata.title,
            "creator": metadata.creator,
            "platform": metadata.platform,
            "query": metadata.query,
        },
    )
    return request.model_dump(by_alias=True)


class HttpExtractionOracle:
    """Posts ``{content, metadata}`` to the configured oracle endpoint.

    Network trouble and 5xx/429 responses raise ``TransientNetworkError`` so the
    runner can retry; every other unusable answer becomes an ``ExtractionFailure``.
    """

    def __init__(
        self,
        config: OracleConfig | None = None,
        *,
        client: ResilientClient | None = None,
    ) -> None:
        self.config = config or get_oracle_config()
        self._client = client or ResilientClient(self.config.resilience)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def extract(
        self, raw_content: str, metadata: SourceMetadata
    ) -> ExtractedPayload | ExtractionFailure:
        response = await self._post(_request_body(raw_content, metadata), url=metadata.url)

        if response.status_code >= 500 or response.status_code in _TRANSIENT_STATUSES:
            raise TransientNetworkError(
                f"Oracle returned {response.status_code} for {metadata.url}"
            )
        if response.status_code >= 400:
            return ExtractionFailure(f"oracle rejected request: HTTP {response.status_code}")

        try:
            envelope = OracleResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            log.warning(f"Unparseable oracle response for {metadata.url}: {exc}")
            return ExtractionFailure(f"unparseable oracle response: {exc}")

        if envelope.pattern is None:
            return ExtractionFailure(envelope.reason or "no pattern found in content")
        payload = translate_pattern(envelope.pattern)
        if not payload.pattern_name:
            return ExtractionFailure(envelope.reason or "no pattern found in content")
        log.info(
            f"Oracle extracted {payload.pattern_name!r} with "
            f"{len(payload.materials)} materials from {metadata.url}"
        )
        return payload

    async def _post(self, body: dict[str, object], *, url: str) -> httpx.Response:
        try:
            return await self._client.post(self.config.endpoint, json=body)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(f"Oracle timed out for {url}") from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"Oracle unreachable for {url}: {exc}") from exc


if TYPE_CHECKING:
    _oracle_check: ExtractionOracle = HttpExtractionOracle()
