"""Pytest fixtures for all test modules."""
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest


class RecordingTransport:
    """Mock transport that records requests and replies with a canned response."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = "{}"
        self.exception: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        return httpx.Response(
            self.status_code,
            headers={"Content-Type": "application/json"},
            content=self.body.encode("utf-8"),
        )


@pytest.fixture(autouse=True)
def no_env_api_key(monkeypatch):
    """Keep a developer's PERPLEXITY_API_KEY out of the tests."""
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)


@pytest.fixture
def transport():
    """
    Recording transport for injecting into a client.

    Returns:
        RecordingTransport: set .body, .status_code or .exception before calling
    """
    return RecordingTransport()


@pytest.fixture
def http_client(transport):
    """httpx.Client routed through the recording transport."""
    with httpx.Client(transport=httpx.MockTransport(transport.handler)) as client:
        yield client


def _clear_proxies(monkeypatch):
    for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(var, raising=False)


def _serve(handler_class):
    """Start a local HTTP server; returns (server, completions URL)."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler_class)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    return server, f"http://{host}:{port}/chat/completions"


@pytest.fixture
def slow_server(monkeypatch):
    """
    Local HTTP server that holds every request for two seconds before answering.

    Proxy variables are cleared so the request goes straight to the server.

    Returns:
        str: URL of the server
    """
    _clear_proxies(monkeypatch)
    release = threading.Event()

    class SlowHandler(BaseHTTPRequestHandler):
        def do_POST(self):
            release.wait(2)
            body = b"{}\n"
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format, *args):
            pass

    server, url = _serve(SlowHandler)
    yield url

    release.set()
    server.shutdown()
    server.server_close()


@pytest.fixture
def trickle_server(monkeypatch):
    """
    Local HTTP server that answers promptly but sends the '{}' body one byte
    every 0.2 seconds, after headers sent at 0.2 seconds.

    Returns:
        str: URL of the server
    """
    _clear_proxies(monkeypatch)
    stop = threading.Event()

    class TrickleHandler(BaseHTTPRequestHandler):
        def do_POST(self):
            body = b"{}"
            stop.wait(0.2)
            try:
                self.send_response(200)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                for i in range(len(body)):
                    stop.wait(0.2)
                    self.wfile.write(body[i:i + 1])
                    self.wfile.flush()
            except (BrokenPipeError, ConnectionResetError):
                pass

        def log_message(self, format, *args):
            pass

    server, url = _serve(TrickleHandler)
    yield url

    stop.set()
    server.shutdown()
    server.server_close()
