"""
=============================================================================
FILE SHARING SERVER
=============================================================================

The orchestrator: binds the listening socket once, then runs serving
sessions one after another until the first one ends (default) or
forever (keep-serving mode).

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    FILE SHARING ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                      ┌──────────────────┐                           │
    │                      │ FileShareServer  │                           │
    │                      │  (Orchestrator)  │                           │
    │                      └────────┬─────────┘                           │
    │                               │                                      │
    │          ┌────────────────────┼────────────────────┐                │
    │          │                    │                    │                │
    │          ▼                    ▼                    ▼                │
    │  ┌──────────────┐   ┌──────────────────┐   ┌──────────────┐        │
    │  │   Address    │   │ ListeningEndpoint│   │ServingSession│        │
    │  │   Resolver   │   │   (Acceptor)     │   │ (per client) │        │
    │  └──────────────┘   └──────────────────┘   └──────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
RUN LOOP
=============================================================================

    bind 0.0.0.0:PORT (once)
    │
    └──► loop:
            resolve outbound IPv4  ──► print "Downloading URL : http://ip:port"
            print "Waiting for a client..."
            ServingSession.run()
              ├── completed          ──► next iteration if keep-serving
              └── SessionError       ──► logged, next iteration if keep-serving
            without keep-serving: return after the first session

Run-level failures (AddressResolutionError, BindError, AcceptError) are
not caught here: they end run() and the CLI exits with status 1.

=============================================================================
FAILURE POLICY
=============================================================================

A failed write in the middle of the file (the browser cancelled the
download, the network dropped) only aborts the current session. In
keep-serving mode the next person can still download the file.

=============================================================================
"""

import logging
import os
import sys
from typing import Callable, Optional, TextIO

from .config import ShareConfig
from .core import create_server, resolve_outbound_ipv4
from .core.socket_server import ListeningEndpoint
from .errors import ProtocolError, SessionError
from .http import RequestLineParser, display_name, format_download_url
from .session import ServingSession


logger = logging.getLogger(__name__)


class FileShareServer:
    """
    Publishes one file over HTTP until it has been downloaded.

    =========================================================================
    USAGE
    =========================================================================

        config = ShareConfig(file_path="report.pdf", port=8080)
        server = FileShareServer(config)
        sent = server.run()      # blocks; True if the file went out

        # Serve everyone who asks, until Ctrl+C
        FileShareServer(ShareConfig(file_path="report.pdf", keep_serving=True)).run()

    =========================================================================
    """

    def __init__(
        self,
        config: ShareConfig,
        resolver: Callable[[], str] = resolve_outbound_ipv4,
        out: Optional[TextIO] = None,
    ):
        """
        Initialize the server.

        Args:
            config: Sharing configuration; validated here (fail-fast).
            resolver: Returns the IPv4 address shown in the download URL.
            out: Stream for operator messages (default: stdout).

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self.config = config
        self.config.validate()

        self._resolver = resolver
        self._out = out if out is not None else sys.stdout
        self._parser = RequestLineParser(max_uri_length=self.config.max_uri_length)

        self.endpoint: Optional[ListeningEndpoint] = None
        self.sessions_completed = 0
        self.sessions_aborted = 0

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self) -> bool:
        """
        Serve the file (blocking).

        Returns only when keep-serving is off, after exactly one session.

        Returns:
            True if the last session sent the whole file, False if it was
            aborted.

        Raises:
            AddressResolutionError, BindError, AcceptError: fatal errors.
            KeyboardInterrupt: Ctrl+C; every socket and file is closed first.
        """
        self._setup_logging()
        self._print_startup_banner()

        with create_server(
            self.config.port,
            host=self.config.host,
            backlog=self.config.backlog,
            client_timeout=self.config.timeout,
        ) as endpoint:
            self.endpoint = endpoint
            try:
                while True:
                    sent = self._serve_once(endpoint)
                    if not self.config.keep_serving:
                        return sent
            finally:
                self.endpoint = None

    def _serve_once(self, endpoint: ListeningEndpoint) -> bool:
        """
        Run one serving session.

        Returns:
            True if the file was fully sent, False if the session aborted.
        """
        address = self._resolver()
        url = format_download_url(address, endpoint.port)
        print(f"Downloading URL : {url}", file=self._out, flush=True)
        print("Waiting for a client...", file=self._out, flush=True)

        session = ServingSession(
            self.config.file_path,
            endpoint,
            parser=self._parser,
            chunk_size=self.config.chunk_size,
            max_request_size=self.config.max_request_size,
            server_name=self.config.server_name,
            out=self._out,
        )

        try:
            session.run()
        except ProtocolError as e:
            # Usually a browser probe or a stray client, not worth an ERROR
            logger.warning(f"Session aborted in state {session.state.value}: {e}")
            self.sessions_aborted += 1
            return False
        except SessionError as e:
            logger.error(f"Session aborted in state {session.state.value}: {e}")
            self.sessions_aborted += 1
            return False

        self.sessions_completed += 1
        return session.succeeded

    def _print_startup_banner(self):
        """Print what is being shared."""
        name = display_name(self.config.file_path)
        try:
            size = f"{os.path.getsize(self.config.file_path)} bytes"
        except OSError:
            size = "size unknown"

        print("+--------------------------------+", file=self._out)
        print("|       HTTP file sharing        |", file=self._out)
        print("+--------------------------------+", file=self._out)
        # repr() keeps undecodable file name bytes printable
        print(f"Sharing {name!r} ({size})", file=self._out)
        if self.config.keep_serving:
            print("Keep serving enabled, press Ctrl+C to stop.", file=self._out)
        print(file=self._out, flush=True)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.WARNING)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("httpshare").setLevel(level)
