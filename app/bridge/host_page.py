"""
Host half of the navigation bridge.

Serves a minimal browser shell: an address bar, back/forward buttons and an
iframe whose src always points at the fetch proxy. The page keeps its own
history stack and reacts to the messages posted by the injected script.
"""

import html
import logging

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.vars import (
    BASE_PATH,
    BRIDGE_ALLOWED_ORIGIN,
    BRIDGE_MESSAGE_PREFIX,
    PROXY_ENDPOINT,
    SERVICE_NAME,
)
from .messages import NavigationKind, js_string, message_type

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

HOST_PAGE_TEMPLATE = """<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>%(title)s</title>
<style>
  html, body { margin: 0; height: 100%%; font-family: sans-serif; }
  #bar { display: flex; gap: 4px; padding: 6px; background: #eee; }
  #address { flex: 1; }
  #status { padding: 2px 6px; font-size: 12px; color: #555; }
  #view { width: 100%%; height: calc(100%% - 70px); border: 0; }
</style>
</head>
<body>
<div id="bar">
  <button id="backBtn" disabled>&larr;</button>
  <button id="forwardBtn" disabled>&rarr;</button>
  <input id="address" type="text" placeholder="Enter a URL">
  <button id="goBtn">Go</button>
</div>
<div id="status"></div>
<iframe id="view" sandbox="allow-scripts allow-forms allow-popups"></iframe>
<script>
(function(){
  var ENDPOINT = %(endpoint)s;
  var NAVIGATE = %(navigate)s;
  var LOADED = %(loaded)s;
  var ALLOWED_ORIGIN = %(allowed_origin)s;

  var address = document.getElementById('address');
  var goBtn = document.getElementById('goBtn');
  var view = document.getElementById('view');
  var status = document.getElementById('status');
  var backBtn = document.getElementById('backBtn');
  var forwardBtn = document.getElementById('forwardBtn');

  var historyStack = [];
  var historyIndex = -1;

  function setStatus(s) { status.textContent = s; }
  function updateNavButtons() {
    backBtn.disabled = historyIndex <= 0;
    forwardBtn.disabled = historyIndex >= historyStack.length - 1;
  }

  function loadUrl(target, pushHistory) {
    if (!target) return;
    target = target.trim();
    if (!/^https?:\\/\\//i.test(target)) target = 'https://' + target;
    setStatus('Loading ' + target + ' ...');
    view.src = ENDPOINT + '?u=' + encodeURIComponent(target);
    if (pushHistory) {
      historyStack = historyStack.slice(0, historyIndex + 1);
      historyStack.push(target);
      historyIndex = historyStack.length - 1;
      updateNavButtons();
    }
  }

  goBtn.addEventListener('click', function(){ loadUrl(address.value, true); });
  address.addEventListener('keydown', function(e){ if (e.key === 'Enter') goBtn.click(); });

  backBtn.addEventListener('click', function(){
    if (historyIndex > 0) {
      historyIndex -= 1;
      loadUrl(historyStack[historyIndex], false);
      updateNavButtons();
    }
  });
  forwardBtn.addEventListener('click', function(){
    if (historyIndex < historyStack.length - 1) {
      historyIndex += 1;
      loadUrl(historyStack[historyIndex], false);
      updateNavButtons();
    }
  });

  window.addEventListener('message', function(ev){
    if (ALLOWED_ORIGIN && ev.origin !== ALLOWED_ORIGIN) return;
    var msg = ev.data || {};
    if (typeof msg.href !== 'string' || !msg.href) return;
    if (msg.type === NAVIGATE) {
      loadUrl(msg.href, true);
    } else if (msg.type === LOADED) {
      address.value = msg.href;
      setStatus('Loaded: ' + msg.href);
    }
  });

  view.addEventListener('load', function(){ setStatus('Frame loaded'); });

  setStatus('Ready');
  updateNavButtons();
})();
</script>
</body>
</html>
"""


def render_host_page(
    endpoint: str = PROXY_ENDPOINT,
    prefix: str = BRIDGE_MESSAGE_PREFIX,
    allowed_origin: str = BRIDGE_ALLOWED_ORIGIN,
) -> str:
    return HOST_PAGE_TEMPLATE % {
        "title": html.escape(SERVICE_NAME),
        "endpoint": js_string(endpoint),
        "navigate": js_string(message_type(NavigationKind.NAVIGATE, prefix)),
        "loaded": js_string(message_type(NavigationKind.LOADED, prefix)),
        "allowed_origin": js_string(allowed_origin),
    }


@router.get(BASE_PATH + "/", response_class=HTMLResponse)
async def host_page():
    """Serve the browser shell that frames proxied pages."""
    logger.debug("[Bridge] Serving host page")
    return HTMLResponse(render_host_page())
