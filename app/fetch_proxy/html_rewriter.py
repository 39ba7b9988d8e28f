"""
Regex based HTML rewriting for framed browsing.

The rewriter works on the raw markup text rather than a DOM. It makes every
resource and navigation reference route back through the proxy endpoint,
strips markup that blocks framing, pins a <base> tag to the real origin and
injects the navigation bridge script. Steps run in a fixed order so later
patterns never re-match the output of earlier ones.
"""

import html as html_lib
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote

from .url_resolver import TargetURL

logger = logging.getLogger("uvicorn.error")

BLOCKING_META = re.compile(
    r"<meta[^>]*http-equiv\s*=\s*[\"']?(?:content-security-policy|x-frame-options)[\"']?[^>]*>",
    re.IGNORECASE,
)
HEAD_OPEN = re.compile(r"<head\b([^>]*)>", re.IGNORECASE)
BODY_CLOSE = re.compile(r"</body>", re.IGNORECASE)

RELATIVE_ATTR = re.compile(
    r"\b(src|href)(\s*=\s*)(['\"])(?!https?:|data:|//)([^'\"]+)\3",
    re.IGNORECASE,
)
PROTOCOL_RELATIVE_ATTR = re.compile(
    r"\b(src|href)(\s*=\s*)(['\"])(//[^'\"]+)\3",
    re.IGNORECASE,
)
SRCSET_ATTR = re.compile(r"\bsrcset\s*=\s*(['\"])([^'\"]+)\1", re.IGNORECASE)
CSS_URL = re.compile(
    r"url\((?!['\"]?https?:|['\"]?data:|['\"]?//)(['\"]?)([^'\")]+)\1\)",
    re.IGNORECASE,
)
ABSOLUTE_REFERENCE = re.compile(r"^(?:https?:|data:|//)", re.IGNORECASE)
WHITESPACE = re.compile(r"\s+")
# A srcset URL runs up to whitespace; commas inside it (data: URLs) belong to it
SRCSET_URL = re.compile(r"[\s,]*([^\s]+)")


@dataclass(frozen=True)
class RewriteContext:
    target: TargetURL
    proxy_base: str

    @property
    def proxy_prefix(self) -> str:
        return f"{self.proxy_base}?u="

    def proxy_url(self, absolute: str) -> str:
        return self.proxy_prefix + quote(absolute, safe="")

    def is_proxied(self, value: str) -> bool:
        return value.startswith(self.proxy_prefix)

    def proxy_reference(self, reference: str) -> str:
        """Resolve a reference against the target and wrap it in proxy form."""
        return self.proxy_url(self.target.resolve(reference))


def _tolerant(step: str, rewrite: Callable[[re.Match], str]) -> Callable[[re.Match], str]:
    """Return the original match unchanged when a single URL fails to rewrite."""

    def replace(match: re.Match) -> str:
        try:
            return rewrite(match)
        except ValueError as e:
            logger.debug(f"[Rewrite] {step}: leaving {match.group(0)!r} untouched ({e})")
            return match.group(0)

    return replace


def strip_blocking_meta(html: str) -> str:
    return BLOCKING_META.sub("", html)


def inject_base_tag(html: str, ctx: RewriteContext) -> str:
    base_tag = f'<base href="{html_lib.escape(ctx.target.base_href)}">'
    if HEAD_OPEN.search(html):
        return HEAD_OPEN.sub(
            lambda m: f"<head{m.group(1)}>\n{base_tag}\n", html, count=1
        )
    return f"{base_tag}\n{html}"


def rewrite_relative_attributes(html: str, ctx: RewriteContext) -> str:
    def rewrite(match: re.Match) -> str:
        name, equals, quote_char, value = match.groups()
        if ctx.is_proxied(value):
            return match.group(0)
        absolute = ctx.target.resolve(html_lib.unescape(value))
        return f"{name}{equals}{quote_char}{ctx.proxy_url(absolute)}{quote_char}"

    return RELATIVE_ATTR.sub(_tolerant("src/href", rewrite), html)


def rewrite_protocol_relative_attributes(html: str, ctx: RewriteContext) -> str:
    def rewrite(match: re.Match) -> str:
        name, equals, quote_char, value = match.groups()
        absolute = ctx.target.resolve(f"{ctx.target.scheme}:{html_lib.unescape(value)}")
        return f"{name}{equals}{quote_char}{ctx.proxy_url(absolute)}{quote_char}"

    return PROTOCOL_RELATIVE_ATTR.sub(_tolerant("protocol-relative", rewrite), html)


def split_srcset(value: str) -> List[Tuple[str, str]]:
    """Split a srcset value into (url, descriptor) candidates."""
    candidates = []
    pos = 0
    while True:
        match = SRCSET_URL.match(value, pos)
        if not match:
            return candidates
        url, pos = match.group(1), match.end()
        descriptor = ""
        if url.endswith(","):
            url = url.rstrip(",")
        else:
            end = value.find(",", pos)
            if end == -1:
                end = len(value)
            descriptor = WHITESPACE.sub(" ", value[pos:end].strip())
            pos = end + 1
        if url:
            candidates.append((url, descriptor))


def rewrite_srcset_value(value: str, ctx: RewriteContext) -> str:
    candidates = []
    for url, descriptor in split_srcset(value):
        item = f"{url} {descriptor}" if descriptor else url
        if ABSOLUTE_REFERENCE.match(url) or ctx.is_proxied(url):
            candidates.append(item)
            continue
        try:
            rewritten = ctx.proxy_reference(html_lib.unescape(url))
        except ValueError as e:
            logger.debug(f"[Rewrite] srcset: leaving {item!r} untouched ({e})")
            candidates.append(item)
            continue
        candidates.append(f"{rewritten} {descriptor}" if descriptor else rewritten)
    return ", ".join(candidates)


def rewrite_srcset_attributes(html: str, ctx: RewriteContext) -> str:
    def rewrite(match: re.Match) -> str:
        quote_char, value = match.groups()
        return f"srcset={quote_char}{rewrite_srcset_value(value, ctx)}{quote_char}"

    return SRCSET_ATTR.sub(rewrite, html)


def rewrite_css_urls(text: str, ctx: RewriteContext) -> str:
    def rewrite(match: re.Match) -> str:
        quote_char, value = match.groups()
        if ctx.is_proxied(value):
            return match.group(0)
        return f"url({quote_char}{ctx.proxy_reference(value)}{quote_char})"

    return CSS_URL.sub(_tolerant("css url()", rewrite), text)


def append_navigation_script(html: str, script: str) -> str:
    if BODY_CLOSE.search(html):
        return BODY_CLOSE.sub(lambda m: f"{script}\n{m.group(0)}", html, count=1)
    return html + script


def rewrite_html(html: str, ctx: RewriteContext, navigation_script: Optional[str] = None) -> str:
    """
    Rewrite a fetched HTML document so it can be served from the proxy origin.

    Steps, in order:
    1. drop CSP and X-Frame-Options <meta http-equiv> tags
    2. inject <base href> as the first child of <head> (or prepend it)
    3. proxy relative src/href values
    4. proxy protocol-relative src/href values using the target scheme
    5. proxy relative srcset candidates, keeping descriptors
    6. proxy relative CSS url() references
    7. insert the navigation script before </body> (or append it)

    Absolute http(s), data: and protocol-relative references are never
    wrapped twice, and values already in proxy form are left alone.
    """
    html = strip_blocking_meta(html)
    html = inject_base_tag(html, ctx)
    html = rewrite_relative_attributes(html, ctx)
    html = rewrite_protocol_relative_attributes(html, ctx)
    html = rewrite_srcset_attributes(html, ctx)
    html = rewrite_css_urls(html, ctx)
    if navigation_script:
        html = append_navigation_script(html, navigation_script)
    return html
