from __future__ import annotations

import json
import threading
from collections import deque
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Union

import requests


def make_response(
    status: int = 200,
    body: Union[str, bytes, None] = None,
    *,
    json_body: Any = None,
    reason: str = "",
    url: str = "http://localhost:4502/",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.url = url
    if json_body is not None:
        body = json.dumps(json_body)
        response.headers["Content-Type"] = "application/json"
    if isinstance(body, str):
        body = body.encode("utf-8")
    response._content = body or b""
    response.encoding = "utf-8"
    return response


Scripted = Union[requests.Response, Exception]


class ScriptedSession(requests.Session):
    """A session answering from queues of responses (or exceptions) per method and path suffix."""

    def __init__(self) -> None:
        super().__init__()
        self.routes: Dict[Tuple[str, str], Deque[Scripted]] = {}
        self.defaults: Dict[Tuple[str, str], Scripted] = {}
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def script(self, method: str, path: str, *answers: Scripted, default: Optional[Scripted] = None) -> "ScriptedSession":
        self.routes.setdefault((method.upper(), path), deque()).extend(answers)
        if default is not None:
            self.defaults[(method.upper(), path)] = default
        return self

    def calls_to(self, method: str, path: str) -> int:
        return sum(1 for m, url, _ in self.calls if m == method.upper() and path in url)

    def request(self, method: str, url: str, *args: Any, **kwargs: Any) -> requests.Response:  # type: ignore[override]
        method = method.upper()
        self.calls.append((method, url, kwargs))
        for (m, path), queue in self.routes.items():
            if m == method and path in url:
                if queue:
                    answer = queue.popleft()
                elif (m, path) in self.defaults:
                    answer = self.defaults[(m, path)]
                else:
                    raise AssertionError(f"No scripted answer left for {method} {url}")
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise AssertionError(f"Unexpected request {method} {url}")


Handler = Callable[[BaseHTTPRequestHandler], Tuple[int, str]]


class LocalServer:
    """A real HTTP server on 127.0.0.1 serving ``routes[(method, path)] -> (status, body)``."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Union[Tuple[int, str], Handler]] = {}
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []
        server = self

        class _Handler(BaseHTTPRequestHandler):
            def _serve(self) -> None:
                server.requests.append((self.command, self.path, dict(self.headers)))
                route = server.routes.get((self.command, self.path))
                if route is None:
                    status, body = 404, "not found"
                elif callable(route):
                    status, body = route(self)
                else:
                    status, body = route
                payload = body.encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            do_GET = _serve
            do_POST = _serve

            def log_message(self, format: str, *args: Any) -> None:
                return

        self._httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    @property
    def port(self) -> int:
        return self._httpd.server_address[1]

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def route(self, method: str, path: str, answer: Union[Tuple[int, str], Handler]) -> None:
        self.routes[(method.upper(), path)] = answer

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._httpd.shutdown()
        self._httpd.server_close()
