from .errors import (
    ProxyError,
    MissingParameter,
    InvalidURL,
    BlockedHost,
    UpstreamFetchFailure,
    UpstreamTooLarge,
    InternalRewriteFailure,
)
from .url_resolver import TargetURL, resolve_target, is_blocked_host
from .html_rewriter import RewriteContext, rewrite_html

__all__ = [
    "ProxyError",
    "MissingParameter",
    "InvalidURL",
    "BlockedHost",
    "UpstreamFetchFailure",
    "UpstreamTooLarge",
    "InternalRewriteFailure",
    "TargetURL",
    "resolve_target",
    "is_blocked_host",
    "RewriteContext",
    "rewrite_html",
]
