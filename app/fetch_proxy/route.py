import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response
from opentelemetry import trace

from app.bridge.injected_script import build_navigation_script
from app.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)
from app.utils.traced_requests import traced_request
from app.vars import PROXY_ENDPOINT, PUBLIC_URL
from .errors import InternalRewriteFailure, MissingParameter, ProxyError
from .html_rewriter import RewriteContext, rewrite_html
from .passthrough import html_response, passthrough_response
from .upstream import UpstreamResponse, fetch_upstream
from .url_resolver import TargetURL, parse_target, resolve_target

router = APIRouter()
tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")


def proxy_base() -> str:
    """Path (or absolute URL when PUBLIC_URL is set) that rewritten references point at."""
    return f"{PUBLIC_URL}{PROXY_ENDPOINT}"


def error_response(error: ProxyError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


def _document_target(requested: TargetURL, upstream: UpstreamResponse) -> TargetURL:
    """Resolve relative references against the URL the document was finally served from."""
    if not upstream.url or upstream.url == requested.href:
        return requested
    try:
        return parse_target(upstream.url)
    except ProxyError:
        return requested


def render_document(upstream: UpstreamResponse, target: TargetURL, base: str) -> str:
    try:
        ctx = RewriteContext(target=target, proxy_base=base)
        script = build_navigation_script(
            document_href=target.href, proxy_prefix=ctx.proxy_prefix
        )
        return rewrite_html(upstream.text, ctx, script)
    except Exception as e:
        log_exception_with_details(logger, "[Rewrite]", e)
        raise InternalRewriteFailure(format_exception_message(e))


async def proxy_fetch(raw_target: Optional[str], base: Optional[str] = None) -> Response:
    """
    Handle one proxy request end to end.

    Stateless: everything the request needs is derived from raw_target, so
    concurrent requests never share anything. Raises ProxyError subclasses
    for every expected failure.
    """
    if not raw_target:
        raise MissingParameter("u")

    target = resolve_target(raw_target)
    upstream = await fetch_upstream(target)
    if not upstream.is_html:
        return passthrough_response(upstream)

    document = _document_target(target, upstream)
    html = render_document(upstream, document, base or proxy_base())
    logger.debug(f"[Rewrite] Rewrote {len(upstream.content)} bytes of HTML from {document.origin}")
    return html_response(upstream, html)


@router.get(PROXY_ENDPOINT)
async def fetch(
    u: Optional[str] = Query(
        None, description="Target URL; https:// is assumed when no scheme is given"
    ),
):
    """Fetch u through the proxy, rewriting HTML so it can be framed."""
    with traced_request(
        tracer,
        operation="proxy_fetch",
        target_url=u,
        start_message=f"[Fetch] Proxying {u}",
    ) as span:
        try:
            response = await proxy_fetch(u)
        except ProxyError as e:
            logger.warning(f"[Fetch] {type(e).__name__}: {e.message}")
            span.set_attribute("proxy.error", type(e).__name__)
            span.set_attribute("proxy.status_code", e.status_code)
            return error_response(e)
        except Exception as e:
            log_exception_with_details(logger, "[Fetch]", e)
            span.set_attribute("proxy.error", "InternalRewriteFailure")
            return error_response(InternalRewriteFailure(format_exception_message(e)))

        span.set_attribute("proxy.status_code", response.status_code)
        span.set_attribute("proxy.content_type", response.headers.get("content-type", ""))
        return response
