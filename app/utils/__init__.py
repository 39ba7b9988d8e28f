from urllib.parse import urlsplit, urlunsplit


def redact_url(url: str) -> str:
    """Mask credentials embedded in a URL before it reaches the logs."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.password:
        return url
    userinfo, _, hostport = parts.netloc.rpartition("@")
    user = userinfo.split(":", 1)[0]
    return urlunsplit(parts._replace(netloc=f"{user}:****@{hostport}"))


def mask_url(text: str, url: str) -> str:
    return text.replace(url, redact_url(url)) if url else text
