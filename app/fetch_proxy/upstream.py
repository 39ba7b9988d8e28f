import asyncio
import codecs
import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from opentelemetry import trace

from app.vars import (
    UPSTREAM_DEADLINE,
    UPSTREAM_MAX_BYTES,
    UPSTREAM_TIMEOUT,
    UPSTREAM_USER_AGENT,
)
from .errors import BlockedHost, UpstreamFetchFailure, UpstreamTooLarge
from .url_resolver import TargetURL, is_blocked_host

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class UpstreamResponse:
    url: str
    status_code: int
    content_type: str
    raw_content_type: Optional[str]
    cache_control: Optional[str]
    content: bytes
    encoding: Optional[str] = None

    @property
    def is_html(self) -> bool:
        return "text/html" in self.content_type

    @property
    def text(self) -> str:
        return self.content.decode(_usable_encoding(self.encoding), errors="replace")


def _usable_encoding(label: Optional[str]) -> str:
    """Map a declared charset to a known codec; unknown or missing labels become utf-8."""
    if not label:
        return "utf-8"
    try:
        return codecs.lookup(label).name
    except LookupError:
        logger.debug(f"[Fetch] Unknown charset {label!r}, decoding as utf-8")
        return "utf-8"


async def _guard_redirect_hop(request: httpx.Request) -> None:
    """Re-apply the SSRF guard to every request, redirects included."""
    if is_blocked_host(request.url.host):
        logger.warning(f"[Fetch] Redirect to blocked host {request.url.host}")
        raise BlockedHost(request.url.host)


def build_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(UPSTREAM_TIMEOUT),
        follow_redirects=True,
        headers={"User-Agent": UPSTREAM_USER_AGENT},
        event_hooks={"request": [_guard_redirect_hop]},
        transport=transport,
    )


async def _read_bounded(response: httpx.Response, limit: int) -> bytes:
    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise UpstreamTooLarge(str(response.url), limit)

    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise UpstreamTooLarge(str(response.url), limit)
    return bytes(buffer)


async def _get(url: str, limit: int) -> UpstreamResponse:
    async with build_client() as client:
        async with client.stream("GET", url) as response:
            content = await _read_bounded(response, limit)
            raw_content_type = response.headers.get("content-type")
            return UpstreamResponse(
                url=str(response.url),
                status_code=response.status_code,
                content_type=(raw_content_type or DEFAULT_CONTENT_TYPE).lower(),
                raw_content_type=raw_content_type,
                cache_control=response.headers.get("cache-control"),
                content=content,
                encoding=response.charset_encoding,
            )


async def fetch_upstream(
    target: TargetURL,
    max_bytes: Optional[int] = None,
    deadline: Optional[float] = None,
) -> UpstreamResponse:
    """
    GET the target, following redirects, and buffer the body.

    Upstream status codes are carried through untouched. Transport level
    failures, and fetches running past the overall deadline, raise
    UpstreamFetchFailure; a redirect to a blocked host raises BlockedHost.
    """
    limit = UPSTREAM_MAX_BYTES if max_bytes is None else max_bytes
    deadline = UPSTREAM_DEADLINE if deadline is None else deadline
    url = target.href

    with tracer.start_as_current_span("upstream_fetch") as span:
        span.set_attribute("upstream.url", url)
        logger.debug(f"[Fetch] GET {url}")
        try:
            result = await asyncio.wait_for(_get(url, limit), timeout=deadline)
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.error(f"[Fetch] Timeout fetching {url}: {e!r}")
            span.set_attribute("upstream.error", "timeout")
            raise UpstreamFetchFailure(f"Timed out fetching {url}")
        except httpx.TooManyRedirects as e:
            logger.error(f"[Fetch] Too many redirects for {url}: {e}")
            span.set_attribute("upstream.error", "too_many_redirects")
            raise UpstreamFetchFailure(f"Too many redirects fetching {url}")
        except httpx.HTTPError as e:
            logger.error(f"[Fetch] Failed to fetch {url}: {e}")
            span.set_attribute("upstream.error", type(e).__name__)
            raise UpstreamFetchFailure(f"Failed to fetch {url}: {e}")

        span.set_attribute("upstream.status_code", result.status_code)
        span.set_attribute("upstream.content_type", result.content_type)
        logger.debug(
            f"[Fetch] {url} -> {result.status_code} {result.content_type} "
            f"({len(result.content)} bytes)"
        )
        return result
