from app.vars import BRIDGE_MESSAGE_PREFIX, BRIDGE_TARGET_ORIGIN
from .messages import NavigationKind, js_string, message_type

NAVIGATION_SCRIPT_TEMPLATE = """<script>
  (function(){
    var NAVIGATE = %(navigate)s;
    var LOADED = %(loaded)s;
    var TARGET_ORIGIN = %(target_origin)s;
    var PROXY_PREFIX = %(proxy_prefix)s;
    var DOCUMENT_HREF = %(document_href)s;

    function post(type, href) {
      try { parent.postMessage({ type: type, href: href }, TARGET_ORIGIN); } catch (e) {}
    }

    // links were rewritten into proxy form; report the real target instead
    function resolveHref(el) {
      var raw = el.getAttribute('href') || '';
      if (PROXY_PREFIX && raw.indexOf(PROXY_PREFIX) === 0) {
        try { return decodeURIComponent(raw.slice(PROXY_PREFIX.length)); } catch (e) {}
      }
      return el.href;
    }

    document.addEventListener('click', function(e){
      var el = e.target;
      while (el && el.nodeType === 1 && el.tagName !== 'A') el = el.parentElement;
      if (el && el.tagName === 'A' && el.href) {
        e.preventDefault();
        post(NAVIGATE, resolveHref(el));
      }
    }, true);

    document.addEventListener('DOMContentLoaded', function(){
      post(LOADED, DOCUMENT_HREF || location.href);
    });
  })();
</script>"""


def build_navigation_script(
    document_href: str = "",
    proxy_prefix: str = "",
    prefix: str = BRIDGE_MESSAGE_PREFIX,
    target_origin: str = BRIDGE_TARGET_ORIGIN,
) -> str:
    """
    Render the script injected into every proxied HTML document.

    document_href is the upstream URL the document was actually served from
    and is what the loaded message reports; proxy_prefix lets the script
    unwrap rewritten anchors back into their real target before posting a
    navigate message.
    """
    return NAVIGATION_SCRIPT_TEMPLATE % {
        "navigate": js_string(message_type(NavigationKind.NAVIGATE, prefix)),
        "loaded": js_string(message_type(NavigationKind.LOADED, prefix)),
        "target_origin": js_string(target_origin or "*"),
        "proxy_prefix": js_string(proxy_prefix),
        "document_href": js_string(document_href),
    }
