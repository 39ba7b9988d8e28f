from typing import Dict

from fastapi.responses import Response

from app.vars import FORWARD_CACHE_CONTROL, SERVICE_NAME
from .upstream import DEFAULT_CONTENT_TYPE, UpstreamResponse

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


def outgoing_headers(
    upstream: UpstreamResponse, content_type: str, cache_control: bool = True
) -> Dict[str, str]:
    """
    Build the response headers from scratch.

    Only content-type and cache-control ever come from upstream, so framing
    and security headers (CSP, X-Frame-Options, ...) are never copied.
    """
    headers = {"content-type": content_type, "x-proxied-by": SERVICE_NAME}
    if cache_control and FORWARD_CACHE_CONTROL and upstream.cache_control:
        headers["cache-control"] = upstream.cache_control
    return headers


def passthrough_response(upstream: UpstreamResponse) -> Response:
    """Relay a non-HTML body byte for byte. The upstream status is not mirrored."""
    content_type = upstream.raw_content_type or DEFAULT_CONTENT_TYPE
    return Response(
        content=upstream.content,
        status_code=200,
        headers=outgoing_headers(upstream, content_type),
    )


def html_response(upstream: UpstreamResponse, html: str) -> Response:
    return Response(
        content=html.encode("utf-8"),
        status_code=200,
        headers=outgoing_headers(upstream, HTML_CONTENT_TYPE, cache_control=False),
    )
