from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest

from tyingbench.adapters.http_resilience import ResilientClient
from tyingbench.adapters.scraping import HttpContentFetcher, html_to_text
from tyingbench.config import ResilienceConfig
from tyingbench.domain.errors import PermanentSourceError, TransientNetworkError
from tyingbench.domain.model import Source, SourceType

if TYPE_CHECKING:
    from collections.abc import Callable

ARTICLE_HTML = """
<html>
  <head><title>Woolly Bugger</title><style>body { color: red; }</style></head>
  <body>
    <nav>Home | Flies | Shop</nav>
    <article>
      <h1>Woolly Bugger</h1>
      <p>Hook: streamer hook, size 8</p>
      <script>track();</script>
      <p>Thread: black 6/0</p>
    </article>
    <footer>Copyright</footer>
  </body>
</html>
"""


def _fetch(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    url: str = "https://flies.example.com/woolly",
    source_type: SourceType = SourceType.ARTICLE,
) -> str:
    client = ResilientClient(
        ResilienceConfig(name="scrape-test", retry=None, cache=None),
        transport=httpx.MockTransport(handler),
    )
    fetcher = HttpContentFetcher(client)

    async def run() -> str:
        async with client:
            return await fetcher.fetch(Source(url=url, source_type=source_type))

    return asyncio.run(run())


def test_html_to_text_keeps_main_content() -> None:
    text = html_to_text(ARTICLE_HTML)

    assert text.splitlines() == [
        "Woolly Bugger",
        "Hook: streamer hook, size 8",
        "Thread: black 6/0",
    ]


def test_html_to_text_falls_back_to_body() -> None:
    assert html_to_text("<html><body><p>Just a paragraph</p></body></html>") == "Just a paragraph"


def test_fetch_html_page() -> None:
    text = _fetch(
        lambda _request: httpx.Response(
            200, text=ARTICLE_HTML, headers={"content-type": "text/html; charset=utf-8"}
        )
    )

    assert "Thread: black 6/0" in text
    assert "Copyright" not in text


def test_fetch_plain_text() -> None:
    text = _fetch(
        lambda _request: httpx.Response(
            200, text="  transcript of the video  ", headers={"content-type": "text/plain"}
        )
    )

    assert text == "transcript of the video"


@pytest.mark.parametrize("status", [404, 410, 403])
def test_client_errors_are_permanent(status: int) -> None:
    with pytest.raises(PermanentSourceError):
        _fetch(lambda _request: httpx.Response(status))


@pytest.mark.parametrize("status", [429, 502, 503])
def test_server_errors_are_transient(status: int) -> None:
    with pytest.raises(TransientNetworkError):
        _fetch(lambda _request: httpx.Response(status))


def test_connection_errors_are_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientNetworkError):
        _fetch(handler)


def test_pdf_sources_are_permanent_failures() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise AssertionError("PDF sources must not be downloaded")

    with pytest.raises(PermanentSourceError):
        _fetch(handler, url="https://flies.example.com/guide.pdf")
    with pytest.raises(PermanentSourceError):
        _fetch(handler, source_type=SourceType.PDF)


def test_pdf_content_type_is_permanent() -> None:
    with pytest.raises(PermanentSourceError):
        _fetch(
            lambda _request: httpx.Response(
                200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"}
            )
        )


def test_empty_page_is_permanent() -> None:
    with pytest.raises(PermanentSourceError, match="No readable content"):
        _fetch(
            lambda _request: httpx.Response(
                200, text="<html><body><nav>menu</nav></body></html>", headers={"content-type": "text/html"}
            )
        )
