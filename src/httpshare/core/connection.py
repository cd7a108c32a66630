"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket with the three operations a sharing
session needs: read one request, send bytes, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

A browser's request may arrive in one recv() or in several:

    Client sends:
        GET /report.pdf HTTP/1.1\r\nHost: ...\r\n\r\n

    Server might receive:
        First recv():  "GET /rep"
        Second recv(): "ort.pdf HTTP/1.1\r\nHost: ...\r\n\r\n"

So read_request() keeps reading until the blank line that ends the header
block, the client stops sending, or the read ceiling is hit.

=============================================================================
ONE CONNECTION PER PHASE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Connection #1:  GET /            ──►  302 Found     ──► close     │
    │   Connection #2:  GET /report.pdf  ──►  200 OK + file ──► close     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no keep-alive: every Connection serves exactly one request.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from ..config import DEFAULT_MAX_REQUEST_SIZE
from ..errors import ProtocolError, TransportError


logger = logging.getLogger(__name__)


# recv() size while collecting a request
RECV_SIZE = 8192

HEADER_TERMINATOR = b"\r\n\r\n"

# Upper bounds for reading leftovers in close()
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """
    Lifecycle of a client connection.

        NEW ──► READING ──► WRITING ──► CLOSING ──► CLOSED
    """

    NEW = "new"
    READING = "reading"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A single accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current connection state.
        timeout: Socket timeout in seconds, None for fully blocking I/O.
        bytes_sent: Total bytes written to the client so far.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None
    bytes_sent: int = 0

    def __post_init__(self):
        # settimeout(None) puts the socket in blocking mode
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self, ceiling: int = DEFAULT_MAX_REQUEST_SIZE) -> bytes:
        """
        Read one HTTP request from the socket.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    read_request() Flow                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while buffer has no \r\n\r\n:                                  │
        │       recv(min(RECV_SIZE, room left under ceiling))             │
        │       ├── b""            → peer done sending, stop              │
        │       └── buffer == ceiling → request too long                  │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Args:
            ceiling: Maximum request size in bytes. Filling it exactly is
                     treated as "request too long", never truncated.

        Returns:
            The raw request bytes (at least one byte).

        Raises:
            ProtocolError: If the client sent nothing or the ceiling was hit.
            TransportError: If recv() failed or timed out.
        """
        self.state = ConnectionState.READING
        buffer = b""

        while HEADER_TERMINATOR not in buffer:
            try:
                chunk = self.socket.recv(min(RECV_SIZE, ceiling - len(buffer)))
            except socket.timeout as e:
                raise TransportError(f"Timed out reading the request from {self.client_ip}") from e
            except OSError as e:
                raise TransportError(f"Failed to read from the client ({e})") from e

            if not chunk:
                break  # Client closed its sending side

            buffer += chunk
            if len(buffer) >= ceiling:
                raise ProtocolError(f"Request too long (reached the {ceiling} bytes limit)")

        if not buffer:
            raise ProtocolError("The browser did not send an HTTP GET request")

        logger.debug(f"[{self.id}] Received {len(buffer)} request bytes")
        return buffer

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_all(self, data: bytes) -> None:
        """
        Write all of `data` to the client.

        sendall() either writes everything or raises, so a short write
        always surfaces as TransportError.

        Raises:
            TransportError: If the client went away or the write timed out.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except socket.timeout as e:
            raise TransportError(f"Timed out sending data to {self.client_ip}") from e
        except OSError as e:
            raise TransportError(f"Failed to send data to the browser ({e})") from e
        self.bytes_sent += len(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees the end of data
        2. drain: read what the client still sends, briefly
        3. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after sending {self.bytes_sent} bytes "
            f"in {self.age:.2f}s"
        )

    def _drain(self):
        """
        Read and discard what the client still sends.

        Stops at EOF, after DRAIN_TIMEOUT seconds in total, or after
        DRAIN_LIMIT bytes, whichever comes first.
        """
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0

        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                data = self.socket.recv(1024)
                if not data:
                    break
                drained += len(data)
        except OSError:
            pass  # Includes socket.timeout; we are closing anyway

        if drained:
            logger.debug(f"[{self.id}] Discarded {drained} bytes while closing")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
