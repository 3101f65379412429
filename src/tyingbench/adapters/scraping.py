"""HTTP content fetcher: downloads a source and reduces it to readable text."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import httpx
from bs4 import BeautifulSoup

from tyingbench.domain.errors import PermanentSourceError, TransientNetworkError
from tyingbench.domain.model import SourceType

if TYPE_CHECKING:
    from tyingbench.adapters.http_resilience import ResilientClient
    from tyingbench.domain.model import Source

log = logging.getLogger(__name__)

_NOISE_TAGS: Final = ("script", "style", "noscript", "nav", "footer", "header", "aside", "form")
_CONTENT_SELECTORS: Final = ("article", "main", "[role=main]", ".entry-content", ".post-content")
_TRANSIENT_STATUSES: Final = frozenset({408, 425, 429})


def html_to_text(html: str) -> str:
    """Readable text of the main content area of an HTML page."""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(list(_NOISE_TAGS)):
        tag.decompose()

    root = next(
        (node for selector in _CONTENT_SELECTORS if (node := soup.select_one(selector))),
        soup.body or soup,
    )
    lines = (line.strip() for line in root.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


class HttpContentFetcher:
    """``ContentFetcher`` over a ``ResilientClient``."""

    def __init__(self, client: ResilientClient) -> None:
        self._client = client

    async def fetch(self, source: Source) -> str:
        if source.source_type is SourceType.PDF or source.url.lower().endswith(".pdf"):
            raise PermanentSourceError(f"PDF sources are not supported: {source.url}")

        try:
            response = await self._client.get(source.url)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(f"Timed out fetching {source.url}") from exc
        except httpx.UnsupportedProtocol as exc:
            raise PermanentSourceError(f"Unsupported URL scheme: {source.url}") from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"Network error fetching {source.url}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise PermanentSourceError(f"Invalid URL {source.url}: {exc}") from exc

        status = response.status_code
        if status >= 500 or status in _TRANSIENT_STATUSES:
            raise TransientNetworkError(f"{source.url} answered {status}")
        if status >= 400:
            raise PermanentSourceError(f"{source.url} answered {status}")

        content_type = response.headers.get("content-type", "").lower()
        if "pdf" in content_type:
            raise PermanentSourceError(f"PDF content is not supported: {source.url}")
        if "html" in content_type or not content_type:
            text = html_to_text(response.text)
        elif content_type.startswith("text/") or "json" in content_type:
            text = response.text.strip()
        else:
            raise PermanentSourceError(f"Unsupported content type {content_type!r}: {source.url}")

        if not text:
            raise PermanentSourceError(f"No readable content at {source.url}")
        log.debug("Fetched %s (%d chars)", source.url, len(text))
        return text
