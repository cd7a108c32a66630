"""
=============================================================================
LISTENING ENDPOINT
=============================================================================

The "ears" of the file sharing server: a TCP socket bound to all
interfaces that hands out one client connection at a time.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. setsockopt  SO_REUSEADDR, so a restart right after Ctrl+C works
    3. bind()      Associate the socket with 0.0.0.0:PORT
    4. listen(1)   Backlog of ONE: we never serve two clients at once
    5. accept()    Block until a client connects, return its socket
    6. close()     Release the listening socket

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once per run
                    │   0.0.0.0:8080        │     backlog = 1
                    └───────────┬───────────┘
                                │
                 accept_one()   │   accept_one()
            ┌───────────────────┴───────────────────┐
            ▼                                       ▼
      ┌───────────┐                           ┌───────────┐
      │ GET /     │  closed, then...          │ GET /name │
      │ (302)     │ ────────────────────────► │ (200)     │
      └───────────┘                           └───────────┘

=============================================================================
SO_REUSEADDR
=============================================================================

Without it, restarting the server right after Ctrl+C fails for ~60
seconds with "Address already in use" while the old socket sits in
TIME_WAIT. SO_REUSEPORT is deliberately NOT set: a second server on the
same port must fail to bind instead of silently sharing connections.

=============================================================================
"""

import socket
import logging
from typing import Optional

from ..errors import AcceptError, BindError
from .connection import Connection


logger = logging.getLogger(__name__)


class ListeningEndpoint:
    """
    A bound, listening TCP socket plus the port it is bound to.

    Usage:
        with create_server(8080) as endpoint:
            conn = endpoint.accept_one()   # blocks
            ...

    The context manager guarantees the socket is closed on every exit
    path, including exceptions and KeyboardInterrupt.
    """

    def __init__(self, sock: socket.socket, client_timeout: Optional[float] = None):
        """
        Args:
            sock: A socket that is already bound and listening.
            client_timeout: Timeout applied to every accepted connection.
        """
        self._socket: Optional[socket.socket] = sock
        self.client_timeout = client_timeout
        self.host, self.port = sock.getsockname()[:2]

    @property
    def is_open(self) -> bool:
        return self._socket is not None

    def accept_one(self) -> Connection:
        """
        Wait for exactly one client and return its connection.

        Blocks the calling thread until a client connects. Does not loop.

        Raises:
            AcceptError: If the endpoint is closed or accept() fails.
        """
        if self._socket is None:
            raise AcceptError("accept() failed (listening socket is closed)")

        try:
            client_socket, client_address = self._socket.accept()
        except OSError as e:
            raise AcceptError(f"accept() failed ({e})") from e

        logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

        return Connection(
            socket=client_socket,
            address=client_address,
            timeout=self.client_timeout,
        )

    def close(self):
        """Close the listening socket. Idempotent."""
        if self._socket is None:
            return
        try:
            self._socket.close()
        except OSError:
            pass  # Already closed
        self._socket = None
        logger.info(f"Stopped listening on port {self.port}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def create_server(
    port: int,
    host: str = "0.0.0.0",
    backlog: int = 1,
    client_timeout: Optional[float] = None,
) -> ListeningEndpoint:
    """
    Create a TCP server socket bound on `host:port` and listening.

    Args:
        port: Port to bind (0 lets the OS pick; see endpoint.port).
        host: Interface to bind, all interfaces by default.
        backlog: listen() backlog; 1 because clients are served one by one.
        client_timeout: Socket timeout for accepted connections.

    Returns:
        The listening endpoint.

    Raises:
        BindError: Port in use, permission denied, invalid port, or any
                   other socket()/bind()/listen() failure.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as e:
        raise BindError(f"Failed to create the socket ({e})", port=port) from e

    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Common errors:
        # - Address already in use: another process has this port
        # - Permission denied: ports < 1024 require root
        sock.bind((host, port))
        sock.listen(backlog)
    except (OSError, OverflowError) as e:
        # OverflowError: port outside 0-65535
        sock.close()
        logger.error(f"Failed to bind to {host}:{port}: {e}")
        raise BindError(f"Failed to bind the socket to port {port} ({e})", port=port) from e

    endpoint = ListeningEndpoint(sock, client_timeout=client_timeout)
    logger.info(f"Listening on {endpoint.host}:{endpoint.port} (backlog {backlog})")
    return endpoint
