"""Pytest configuration and fixtures for postman-core tests.

This file provides:
- RecordingHandler: httpx.MockTransport handler that records sent requests
- PortReservation / MockServer: subprocess echo server for integration tests
- Fixtures: executors wired to a recording transport, sample documents
"""

from __future__ import annotations

import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest

from postman_core.executor import Executor

PROJECT_ROOT = Path(__file__).parent.parent
MOCK_SERVER_MODULE = "tests.integration.mock_server"


class RecordingHandler:
    """MockTransport handler that records every request and returns a canned response.

    Usage:
        handler = RecordingHandler(status_code=201, content=b"created")
        executor = Executor(transport=httpx.MockTransport(handler))
        executor.execute(request)
        handler.last.url  # what was sent
    """

    def __init__(
        self,
        status_code: int = 200,
        headers: list[tuple[Any, Any]] | None = None,
        content: bytes = b"ok",
        error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.headers = headers or [("Content-Type", "text/plain")]
        self.content = content
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, headers=self.headers, content=self.content)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]


def sent_headers(request: httpx.Request, *names: str) -> list[tuple[str, str]]:
    """Headers of a sent request restricted to names (lowercase), in send order."""
    wanted = {name.lower() for name in names}
    return [(key, value) for key, value in request.headers.multi_items() if key in wanted]


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def executor(recorder: RecordingHandler) -> Generator[Executor, None, None]:
    with Executor(transport=httpx.MockTransport(recorder)) as ex:
        yield ex


@pytest.fixture
def sample_collection() -> dict[str, Any]:
    """A small collection with nested folders, inherited auth and variables."""
    return {
        "info": {
            "name": "Pet Store",
            "_postman_id": "0f0e9f4c-1111-2222-3333-444455556666",
            "schema": "https://schema.getpostman.com/json/collection/v2.1.0/collection.json",
        },
        "auth": {"type": "bearer", "bearer": [{"key": "token", "value": "{{token}}", "type": "string"}]},
        "variable": [
            {"key": "baseUrl", "value": "https://petstore.example.com"},
            {"key": "token", "value": "s3cret"},
            {"key": "", "value": "dropped"},
        ],
        "item": [
            {
                "name": "Pets",
                "item": [
                    {
                        "name": "List pets",
                        "request": {
                            "method": "GET",
                            "url": {
                                "raw": "{{baseUrl}}/pets?limit=10",
                                "host": ["{{baseUrl}}"],
                                "path": ["pets"],
                                "query": [{"key": "limit", "value": "10"}],
                            },
                        },
                        "response": [
                            {
                                "name": "OK",
                                "status": "OK",
                                "code": 200,
                                "_postman_previewlanguage": "json",
                                "header": [{"key": "Content-Type", "value": "application/json"}],
                                "body": "[]",
                            }
                        ],
                    },
                    {
                        "name": "Admin",
                        "auth": {"type": "basic", "basic": [
                            {"key": "username", "value": "admin"},
                            {"key": "password", "value": "pw"},
                        ]},
                        "item": [
                            {
                                "name": "Delete pet",
                                "request": {"method": "DELETE", "url": "{{baseUrl}}/pets/1"},
                            },
                        ],
                    },
                ],
            },
            {
                "name": "Health",
                "request": {
                    "method": "get",
                    "url": "{{baseUrl}}/health",
                    "auth": {"type": "noauth"},
                },
                "event": [
                    {"listen": "test", "script": {"type": "text/javascript", "exec": ["pm.test('ok')"]}},
                ],
            },
        ],
    }


@pytest.fixture
def sample_environment() -> dict[str, Any]:
    return {
        "id": "5b1c0a52-aaaa-bbbb-cccc-ddddeeeeffff",
        "name": "Staging",
        "values": [
            {"key": "baseUrl", "value": "https://staging.example.com", "enabled": True},
            {"key": "token", "value": "abc123", "type": "secret", "enabled": True},
            {"key": "old", "value": "unused", "enabled": False},
        ],
        "_postman_variable_scope": "environment",
        "_postman_exported_at": "2024-05-01T10:00:00.000Z",
        "_postman_exported_using": "Postman/11.0.0",
    }


# =============================================================================
# Integration Server
# =============================================================================


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    find_free_port() has a race window: another process can grab the port
    between when we find it and when the echo server binds. This class keeps
    the socket open until just before the server starts.

    Usage:
        reservation = PortReservation()
        # port is held exclusively until release()
        server = MockServer(reservation)
        server.start()  # calls release() internally, then binds
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port for server use.

        Safe to call multiple times - subsequent calls are no-ops.
        """
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def find_free_port() -> int:
    """Find an available port on localhost.

    WARNING: Race condition exists between this returning and something
    binding the port. Prefer PortReservation for server fixtures; this is
    kept for one-off cases such as a port that must refuse connections.
    """
    with PortReservation() as reservation:
        return reservation.port


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except (ConnectionRefusedError, socket.timeout, OSError):
            time.sleep(0.1)
    return False


class MockServer:
    """Manages the echo server subprocess for integration tests.

    Runs tests/integration/mock_server.py as a subprocess. The server echoes
    each request back as JSON and offers status, binary and redirect routes.
    """

    def __init__(self, port: int | PortReservation) -> None:
        """Initialize echo server configuration.

        Args:
            port: Either a port number or PortReservation. Using PortReservation
                  is preferred as it eliminates port allocation races.
        """
        if isinstance(port, PortReservation):
            self._reservation = port
            self.port = port.port
        else:
            self._reservation = None
            self.port = port
        self.host = "127.0.0.1"
        self.base_url = f"http://{self.host}:{self.port}"
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        """Start the echo server subprocess.

        Raises:
            RuntimeError: If server fails to start within 10 seconds.
        """
        if self._reservation:
            self._reservation.release()

        self._process = subprocess.Popen(
            [
                sys.executable, "-m", MOCK_SERVER_MODULE,
                "--host", self.host,
                "--port", str(self.port),
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            stderr = ""
            if self._process and self._process.stderr:
                stderr = self._process.stderr.read().decode(errors="replace")
            self.stop()
            raise RuntimeError(
                f"MockServer failed to start on port {self.port}. stderr: {stderr or '(empty)'}"
            )

    def stop(self) -> None:
        """Stop the server: SIGTERM, then SIGKILL after 5s."""
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait(timeout=5)
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


@pytest.fixture(scope="session")
def mock_server() -> Generator[MockServer, None, None]:
    """Echo server shared by all integration tests in the session."""
    with MockServer(PortReservation()) as server:
        yield server


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Tag tests by directory so subsets can be run with -m integration / -m unit."""
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
