from __future__ import annotations

import http.server
import threading
from typing import Generator

import pytest

from test.fixtures import fixture_path

_FIXTURE_PAGES_DIR = fixture_path("html")


class _SilentHandler(http.server.SimpleHTTPRequestHandler):
    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, directory=str(_FIXTURE_PAGES_DIR), **kwargs)  # type: ignore[arg-type]

    def log_message(self, *_args: object) -> None:
        pass


@pytest.fixture(scope="session")
def fixture_site_server() -> Generator[str, None, None]:
    """Start a local HTTP server serving the fixture HTML pages."""
    server = http.server.HTTPServer(("127.0.0.1", 0), _SilentHandler)
    port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{port}"
    server.shutdown()
