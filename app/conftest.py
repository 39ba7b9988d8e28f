from typing import Callable, Dict, List, Optional, Union

import httpx
import pytest

from app.fetch_proxy import upstream as upstream_module

Handler = Callable[[httpx.Request], httpx.Response]


class UpstreamStub:
    """In-memory upstream web: maps absolute URLs to canned responses."""

    def __init__(self):
        self.routes: Dict[str, Union[dict, Handler]] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        url: str,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        content: Union[bytes, str] = b"",
    ):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.routes[url] = {
            "status_code": status_code,
            "headers": headers or {},
            "content": content,
        }

    def add_html(self, url: str, html: str, status_code: int = 200, headers=None):
        self.add(
            url,
            status_code=status_code,
            headers={"content-type": "text/html; charset=utf-8", **(headers or {})},
            content=html,
        )

    def add_handler(self, url: str, handler: Handler):
        self.routes[url] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, content=b"not found", request=request)
        if callable(route):
            return route(request)
        return httpx.Response(request=request, **route)


@pytest.fixture
def upstream_stub(monkeypatch):
    """Route every upstream fetch through an UpstreamStub instead of the network."""
    stub = UpstreamStub()
    real_build_client = upstream_module.build_client

    monkeypatch.setattr(
        upstream_module,
        "build_client",
        lambda: real_build_client(transport=httpx.MockTransport(stub.handler)),
    )
    return stub
