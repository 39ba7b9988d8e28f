import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "framed-browse-proxy")
BASE_PATH = os.environ.get("BASE_PATH", "").rstrip("/")
PROXY_ENDPOINT = os.environ.get("PROXY_ENDPOINT", BASE_PATH + "/api/fetch")
# Public-facing URL of this service; makes rewritten proxy URLs absolute
PUBLIC_URL = os.environ.get("PUBLIC_URL", "").rstrip("/")

UPSTREAM_USER_AGENT = os.getenv("UPSTREAM_USER_AGENT", "Mozilla/5.0 (VirtualBrowser)")
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))
# Overall limit for one upstream fetch, redirects and body included
UPSTREAM_DEADLINE = float(os.getenv("UPSTREAM_DEADLINE", "60"))
# 10 MiB
UPSTREAM_MAX_BYTES = int(os.getenv("UPSTREAM_MAX_BYTES", str(10 * 1024 * 1024)))
FORWARD_CACHE_CONTROL = os.getenv("FORWARD_CACHE_CONTROL", "true").lower() == "true"

# Extra hostnames refused by the SSRF guard, on top of localhost and private ranges
BLOCKED_HOSTS = [
    h.strip().lower() for h in os.environ.get("BLOCKED_HOSTS", "").split(",") if h.strip()
]

BRIDGE_MESSAGE_PREFIX = os.getenv("BRIDGE_MESSAGE_PREFIX", "virtualbrowse")
BRIDGE_TARGET_ORIGIN = os.getenv("BRIDGE_TARGET_ORIGIN", "*")
# Empty means the host page accepts messages from any origin
BRIDGE_ALLOWED_ORIGIN = os.getenv("BRIDGE_ALLOWED_ORIGIN", "")
HOST_PAGE_ENABLED = os.getenv("HOST_PAGE_ENABLED", "true").lower() == "true"

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
