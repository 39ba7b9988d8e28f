import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlsplit

from app.vars import BLOCKED_HOSTS
from .errors import BlockedHost, InvalidURL

logger = logging.getLogger("uvicorn.error")

DEFAULT_PORTS = {"http": 80, "https": 443}
SCHEME_PREFIX = re.compile(r"^https?://", re.IGNORECASE)

LOCAL_HOSTNAMES = {"localhost", "::1"}
PRIVATE_NETWORKS = [
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
]
# Shorthand numeric hosts like "127.1" are not valid dotted quads but still
# resolve to a private address, so they are matched by prefix.
PRIVATE_PREFIX = re.compile(r"^(0\.|127\.|10\.|192\.168\.|172\.(1[6-9]|2[0-9]|3[0-1])\.)")
NUMERIC_HOST = re.compile(r"^[0-9.]+$")
INVALID_HOST_CHARS = re.compile(r"[\s<>\"{}|\\^`%]")


@dataclass(frozen=True)
class TargetURL:
    """Absolute http(s) URL used as the resolution base for one request."""

    scheme: str
    host: str
    port: Optional[int] = None
    path: str = "/"
    query: str = ""
    fragment: str = ""
    userinfo: str = ""

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port is not None:
            host = f"{host}:{self.port}"
        return host

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.netloc}"

    @property
    def base_href(self) -> str:
        """Origin plus path, without query or fragment."""
        return self.origin + self.path

    @property
    def href(self) -> str:
        netloc = f"{self.userinfo}@{self.netloc}" if self.userinfo else self.netloc
        href = f"{self.scheme}://{netloc}{self.path}"
        if self.query:
            href = f"{href}?{self.query}"
        if self.fragment:
            href = f"{href}#{self.fragment}"
        return href

    def resolve(self, reference: str) -> str:
        """
        Resolve a reference found in the fetched document against this URL.

        Raises ValueError when the reference cannot be turned into a usable
        absolute URL.
        """
        absolute = urljoin(self.href, reference.strip())
        parts = urlsplit(absolute)
        # Accessing port validates it
        parts.port
        if not parts.scheme:
            raise ValueError(f"Could not resolve {reference!r}")
        return absolute

    def __str__(self) -> str:
        return self.href


def normalize_input(raw: str) -> str:
    normalized = (raw or "").strip()
    if not SCHEME_PREFIX.match(normalized):
        normalized = "https://" + normalized
    return normalized


def parse_target(raw: str) -> TargetURL:
    normalized = normalize_input(raw)
    try:
        parts = urlsplit(normalized)
        port = parts.port
    except ValueError as e:
        raise InvalidURL(raw, str(e))

    host = parts.hostname
    if not host:
        raise InvalidURL(raw, "missing host")
    if INVALID_HOST_CHARS.search(host):
        raise InvalidURL(raw, "invalid host")

    scheme = parts.scheme.lower()
    if port == DEFAULT_PORTS.get(scheme):
        port = None

    userinfo = parts.netloc.rpartition("@")[0] if "@" in parts.netloc else ""
    return TargetURL(
        scheme=scheme,
        host=host.rstrip("."),
        port=port,
        path=parts.path or "/",
        query=parts.query,
        fragment=parts.fragment,
        userinfo=userinfo,
    )


def is_blocked_host(host: Optional[str]) -> bool:
    """True when host is loopback, a private IPv4 range, or explicitly blocked."""
    if not host:
        return False
    host = host.strip("[]").rstrip(".").lower()
    if host in LOCAL_HOSTNAMES or host in BLOCKED_HOSTS:
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return bool(NUMERIC_HOST.match(host) and PRIVATE_PREFIX.match(host))

    if isinstance(address, ipaddress.IPv6Address):
        if address.is_loopback:
            return True
        if address.ipv4_mapped is None:
            return False
        address = address.ipv4_mapped
    return any(address in network for network in PRIVATE_NETWORKS)


def resolve_target(raw: str) -> TargetURL:
    """
    Normalize user input into a validated absolute target.

    Input without an http/https scheme gets https:// prepended. Raises
    InvalidURL when the result cannot be parsed and BlockedHost when it
    points at a loopback or private network host.
    """
    target = parse_target(raw)
    if is_blocked_host(target.host):
        logger.warning(f"[Fetch] Refusing blocked host {target.host}")
        raise BlockedHost(target.host)
    return target
