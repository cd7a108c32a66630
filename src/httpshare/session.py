"""
=============================================================================
SERVING SESSION
=============================================================================

One complete cycle of handing the file to one client: two connections,
two requests, two responses.

=============================================================================
SESSION STATE MACHINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   AWAIT_ROOT_REQUEST    read "GET / HTTP/1.1" on connection #1      │
    │          │                                                           │
    │          ▼                                                           │
    │   SEND_REDIRECT         302 Found, Location: /<file name>, close    │
    │          │                                                           │
    │          ▼                                                           │
    │   AWAIT_FILE_REQUEST    accept connection #2, read "GET /<name>"    │
    │          │                                                           │
    │          ▼                                                           │
    │   SEND_FILE_HEADER      open + fstat the file, 200 OK header        │
    │          │                                                           │
    │          ▼                                                           │
    │   STREAM_FILE_BODY      chunk by chunk, with progress               │
    │          │                                                           │
    │          ▼                                                           │
    │   COMPLETE              "File successfully sent."                   │
    │                                                                      │
    │   Any SessionError on the way  ──►  ABORTED (no success message)    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Why the redirect? The browser shows and saves the download under the
last segment of the URL. Sending "GET /" to "/report.pdf" first means
the operator only has to share "http://host:port" and the file still
arrives with its real name.

=============================================================================
RESOURCES
=============================================================================

Each connection and the file handle live in their own `with` block, so
they are released on every exit path: success, SessionError, or Ctrl+C.
Buffers are local to each call; nothing is shared between sessions.

=============================================================================
"""

import os
import sys
import logging
from enum import Enum
from typing import Optional, TextIO

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_REQUEST_SIZE
from .core.connection import Connection
from .core.socket_server import ListeningEndpoint
from .errors import FileAccessError, SessionError
from .http.request import RequestLine, RequestLineParser
from .http.response import DEFAULT_SERVER_NAME, file_header_response, redirect_response


logger = logging.getLogger(__name__)


class SessionState(Enum):
    AWAIT_ROOT_REQUEST = "await_root_request"
    SEND_REDIRECT = "send_redirect"
    AWAIT_FILE_REQUEST = "await_file_request"
    SEND_FILE_HEADER = "send_file_header"
    STREAM_FILE_BODY = "stream_file_body"
    COMPLETE = "complete"
    ABORTED = "aborted"


class ProgressReporter:
    """
    Prints "Sending file... N%" as the transfer advances.

    N is floor(100 * sent / total). A line is printed only when N differs
    from the last printed value, so a 4 GB file produces 101 console
    writes, not a million. The line ends with a carriage return and
    overwrites itself in a terminal.
    """

    def __init__(self, total: int, stream: Optional[TextIO] = None):
        self.total = total
        self.stream = stream if stream is not None else sys.stdout
        self.last_percentage = -1  # Below 0 so the first value is always shown

    @property
    def started(self) -> bool:
        return self.last_percentage >= 0

    def percentage(self, sent: int) -> int:
        if self.total == 0:
            return 100  # Nothing to send is fully sent
        return (100 * sent) // self.total

    def update(self, sent: int) -> bool:
        """
        Report `sent` bytes. Returns True if a line was printed.
        """
        percentage = self.percentage(sent)
        if percentage == self.last_percentage:
            return False

        print(f"Sending file... {percentage}%", end="\r", file=self.stream, flush=True)
        self.last_percentage = percentage
        return True

    def finish(self):
        """Move off the progress line."""
        if self.started:
            print(file=self.stream, flush=True)


class ServingSession:
    """
    Serves the file to one client over the two-phase exchange.

    Attributes:
        file_path: The served file (same for every session).
        file_size: Size announced in Content-Length, from a fresh fstat.
                   None until SEND_FILE_HEADER.
        bytes_sent: File bytes written to the client so far.
        state: Current SessionState.
        root_request / file_request: The two parsed request lines.

    Usage:
        session = ServingSession(path, endpoint)
        session.run()          # raises SessionError if the session aborts
        session.succeeded      # True only if every byte went out
    """

    def __init__(
        self,
        file_path: str,
        endpoint: ListeningEndpoint,
        parser: Optional[RequestLineParser] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_request_size: int = DEFAULT_MAX_REQUEST_SIZE,
        server_name: str = DEFAULT_SERVER_NAME,
        out: Optional[TextIO] = None,
    ):
        self.file_path = file_path
        self.endpoint = endpoint
        self.parser = parser or RequestLineParser()
        self.chunk_size = chunk_size
        self.max_request_size = max_request_size
        self.server_name = server_name
        self.out = out if out is not None else sys.stdout

        self.file_size: Optional[int] = None
        self.bytes_sent = 0
        self.state = SessionState.AWAIT_ROOT_REQUEST
        self.root_request: Optional[RequestLine] = None
        self.file_request: Optional[RequestLine] = None

    @property
    def succeeded(self) -> bool:
        return (
            self.state == SessionState.COMPLETE
            and self.file_size is not None
            and self.bytes_sent == self.file_size
        )

    # =========================================================================
    # DRIVER
    # =========================================================================

    def run(self) -> None:
        """
        Run the whole exchange, starting with accepting the first client.

        Raises:
            SessionError: The session was aborted (state is ABORTED).
            AcceptError: accept() failed; fatal to the server.
        """
        try:
            # ── Phase 1: redirect ─────────────────────────────────────────
            with self.endpoint.accept_one() as conn:
                print("Client connected.", file=self.out, flush=True)
                self.root_request = self._await_request(conn)
                self.state = SessionState.SEND_REDIRECT
                self._send_redirect(conn)

            # ── Phase 2: the file ─────────────────────────────────────────
            # The browser opens a fresh connection for the redirected URL
            self.state = SessionState.AWAIT_FILE_REQUEST
            with self.endpoint.accept_one() as conn:
                self.file_request = self._await_request(conn)
                self.state = SessionState.SEND_FILE_HEADER
                self._send_file(conn)
        except SessionError:
            self.state = SessionState.ABORTED
            raise

        self.state = SessionState.COMPLETE
        if self.succeeded:
            print("File successfully sent.", file=self.out, flush=True)

    # =========================================================================
    # PHASES
    # =========================================================================

    def _await_request(self, conn: Connection) -> RequestLine:
        raw = conn.read_request(self.max_request_size)
        request = self.parser.parse(raw)
        logger.info(f"[{conn.id}] {conn.client_ip}:{conn.client_port} \"{request}\"")
        return request

    def _send_redirect(self, conn: Connection):
        response = redirect_response(self.file_path, self.server_name)
        conn.send_all(response.to_bytes(self.server_name))
        logger.debug(f"[{conn.id}] Redirected to {response.headers['Location']}")

    def _send_file(self, conn: Connection):
        try:
            file = open(self.file_path, "rb")
        except OSError as e:
            raise FileAccessError(
                f"Failed to open the file '{self.file_path}' ({e.strerror or e})",
                path=self.file_path,
            ) from e

        with file:
            # Size comes from the open handle: it is what we will read,
            # even if the path was replaced since the last session.
            try:
                self.file_size = os.fstat(file.fileno()).st_size
            except OSError as e:
                raise FileAccessError(
                    f"stat() failed on '{self.file_path}' ({e.strerror or e})",
                    path=self.file_path,
                ) from e

            header = file_header_response(self.file_size, self.server_name)
            conn.send_all(header.to_bytes(self.server_name))

            self.state = SessionState.STREAM_FILE_BODY
            self._stream_body(conn, file)

    def _stream_body(self, conn: Connection, file):
        """
        Copy exactly file_size bytes from `file` to the connection.

        Never sends more than Content-Length announced, so a file that grew
        after the fstat still yields a valid response.
        """
        progress = ProgressReporter(self.file_size, self.out)
        remaining = self.file_size

        try:
            if remaining == 0:
                progress.update(0)

            while remaining > 0:
                try:
                    chunk = file.read(min(self.chunk_size, remaining))
                except OSError as e:
                    raise FileAccessError(
                        f"Error when reading the file content ({e.strerror or e})",
                        path=self.file_path,
                    ) from e

                if not chunk:
                    raise FileAccessError(
                        f"The file shrank during the transfer "
                        f"({self.bytes_sent} of {self.file_size} bytes sent)",
                        path=self.file_path,
                    )

                conn.send_all(chunk)
                self.bytes_sent += len(chunk)
                remaining -= len(chunk)
                progress.update(self.bytes_sent)
        finally:
            progress.finish()
