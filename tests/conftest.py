"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
import time
from typing import Callable, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpshare import FileShareServer, ShareConfig
from httpshare.errors import ProtocolError, TransportError


@pytest.fixture
def sample_root_request() -> bytes:
    """What a browser sends for the printed URL."""
    return (
        b"GET / HTTP/1.1\r\n"
        b"Host: 192.168.1.20:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_file_request() -> bytes:
    """What a browser sends after following the redirect."""
    return (
        b"GET /report.pdf HTTP/1.1\r\n"
        b"Host: 192.168.1.20:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


@pytest.fixture
def shared_file(tmp_path: Path) -> Path:
    """A 10000-byte file named report.pdf with non-repeating content."""
    path = tmp_path / "report.pdf"
    path.write_bytes(bytes(i % 251 for i in range(10000)))
    return path


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


# =============================================================================
# FAKE NETWORK OBJECTS (for session tests without sockets)
# =============================================================================

class FakeConnection:
    """Stands in for core.connection.Connection."""

    def __init__(self, request: bytes, fail_after: Optional[int] = None):
        self.id = "fake"
        self.client_ip = "127.0.0.1"
        self.client_port = 54321
        self.request = request
        self.fail_after = fail_after
        self.writes: list[bytes] = []
        self.closed = False

    @property
    def sent(self) -> bytes:
        return b"".join(self.writes)

    def read_request(self, ceiling: int) -> bytes:
        if not self.request:
            raise ProtocolError("The browser did not send an HTTP GET request")
        return self.request

    def send_all(self, data: bytes) -> None:
        if self.fail_after is not None and len(self.writes) >= self.fail_after:
            raise TransportError("Failed to send data to the browser ([Errno 32] Broken pipe)")
        self.writes.append(data)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class FakeEndpoint:
    """Stands in for ListeningEndpoint; hands out queued FakeConnections."""

    def __init__(self, *connections: FakeConnection):
        self.connections = list(connections)
        self.accepted: list[FakeConnection] = []
        self.port = 8080

    def accept_one(self) -> FakeConnection:
        conn = self.connections.pop(0)
        self.accepted.append(conn)
        return conn


@pytest.fixture
def fake_connection() -> type:
    return FakeConnection


@pytest.fixture
def fake_endpoint() -> type:
    return FakeEndpoint


# =============================================================================
# REAL SERVER IN A BACKGROUND THREAD
# =============================================================================

class ShareServerThread:
    """Runs FileShareServer.run() in a daemon thread."""

    def __init__(self, server: FileShareServer, port: int):
        self.server = server
        self.port = port
        self.result: Optional[bool] = None
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    def _target(self):
        try:
            self.result = self.server.run()
        except BaseException as e:  # Surfaced to the test via self.error
            self.error = e

    def start(self):
        self._thread = threading.Thread(target=self._target, daemon=True)
        self._thread.start()

    def join(self, timeout: float = 5.0) -> bool:
        """Wait for run() to return. True if it did."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def output(self) -> str:
        return self.server._out.getvalue()


@pytest.fixture
def start_server(free_port: int) -> Callable[..., ShareServerThread]:
    """Factory: start_server(path, keep_serving=False) -> ShareServerThread."""

    def _start(path: Path, keep_serving: bool = False, **kwargs) -> ShareServerThread:
        config = ShareConfig(
            file_path=str(path),
            host="127.0.0.1",
            port=free_port,
            keep_serving=keep_serving,
            timeout=5.0,
            **kwargs,
        )
        server = FileShareServer(config, resolver=lambda: "127.0.0.1", out=io.StringIO())
        thread = ShareServerThread(server, free_port)
        thread.start()
        return thread

    return _start


class ShareClient:
    """A bare-socket browser stand-in for the test server."""

    def __init__(self, port: int):
        self.port = port

    def connect(self, attempts: int = 50) -> socket.socket:
        """Connect, retrying while the server is still binding."""
        for _ in range(attempts):
            try:
                return socket.create_connection(("127.0.0.1", self.port), timeout=5.0)
            except ConnectionRefusedError:
                time.sleep(0.1)
        raise RuntimeError("Server failed to start")

    def exchange(self, request: bytes) -> bytes:
        """Send one raw request and read the reply until the server closes."""
        with self.connect() as sock:
            if request:
                sock.sendall(request)
            sock.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                data = sock.recv(65536)
                if not data:
                    break
                chunks.append(data)
        return b"".join(chunks)

    def get(self, uri: str) -> tuple[str, dict, bytes]:
        return self.split(self.exchange(f"GET {uri} HTTP/1.1\r\nHost: test\r\n\r\n".encode()))

    def download(self) -> tuple[str, dict, bytes]:
        """Do what a browser does with the printed URL: follow the redirect."""
        _, headers, _ = self.get("/")
        return self.get(headers["Location"])

    @staticmethod
    def split(data: bytes) -> tuple[str, dict, bytes]:
        """Split raw response bytes into (status line, headers, body)."""
        head, _, body = data.partition(b"\r\n\r\n")
        lines = head.decode("utf-8").split("\r\n")
        headers = {}
        for line in lines[1:]:
            name, _, value = line.partition(": ")
            headers[name] = value
        return lines[0], headers, body


@pytest.fixture
def client(free_port: int) -> ShareClient:
    return ShareClient(free_port)


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """wait_for(predicate, timeout=5.0): poll until predicate() is true."""

    def _wait(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if predicate():
                return True
            time.sleep(0.05)
        return predicate()

    return _wait
