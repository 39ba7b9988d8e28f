"""
Error taxonomy for the fetch proxy.

Every failure that can end a proxy request is a ProxyError carrying the HTTP
status code the request boundary answers with. Per-URL rewrite failures are
not part of this hierarchy; the rewriter handles them locally.
"""

from typing import Any, Dict


class ProxyError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message}


class MissingParameter(ProxyError):
    status_code = 400

    def __init__(self, name: str = "u"):
        super().__init__(f"Missing '{name}' parameter")


class InvalidURL(ProxyError):
    status_code = 400

    def __init__(self, raw: str, reason: str = ""):
        detail = f"Invalid URL: {raw}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(detail)
        self.raw = raw


class BlockedHost(ProxyError):
    status_code = 403

    def __init__(self, host: str):
        super().__init__("Blocked local/private host")
        self.host = host


class UpstreamFetchFailure(ProxyError):
    """Network, DNS, TLS or timeout failure while reaching the target."""

    status_code = 500


class UpstreamTooLarge(UpstreamFetchFailure):
    def __init__(self, url: str, limit: int):
        super().__init__(f"Upstream response from {url} exceeds {limit} bytes")
        self.limit = limit


class InternalRewriteFailure(ProxyError):
    status_code = 500
