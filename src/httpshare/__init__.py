"""
=============================================================================
HTTPSHARE - Share One File Over HTTP, Straight From Raw Sockets
=============================================================================

Publish a single local file for download by anyone who opens a browser at
a printed URL. No web server to install and configure: run the tool, send
the URL, done.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP FILE SHARING EXCHANGE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Browser                                           httpshare       │
    │      │                                                  │           │
    │      │  GET / HTTP/1.1                                  │           │
    │      │ ───────────────────────────────────────────────► │           │
    │      │                 302 Found, Location: /report.pdf │           │
    │      │ ◄─────────────────────────────────────────────── │           │
    │      │                               (connection closed)│           │
    │      │                                                  │           │
    │      │  GET /report.pdf HTTP/1.1      (new connection)  │           │
    │      │ ───────────────────────────────────────────────► │           │
    │      │         200 OK, Content-Length: <size>, <bytes>  │           │
    │      │ ◄─────────────────────────────────────────────── │           │
    │      │                                                  │           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpshare/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httpshare)
    ├── server.py            # FileShareServer - the run loop
    ├── session.py           # ServingSession - the two-phase exchange
    ├── config.py            # ShareConfig dataclass
    ├── errors.py            # Error taxonomy
    ├── core/                # Low-level networking
    │   ├── address.py       # Outbound IPv4 discovery
    │   ├── socket_server.py # Listening endpoint
    │   └── connection.py    # Client connection wrapper
    └── http/                # HTTP wire format
        ├── request.py       # Request line parsing
        ├── response.py      # 302 / 200 responses
        └── status_codes.py  # HTTP status enum

=============================================================================
QUICK START
=============================================================================

    from httpshare import FileShareServer, ShareConfig

    server = FileShareServer(ShareConfig(file_path="report.pdf", port=8080))
    server.run()   # blocks until the file has been downloaded once

Or from a shell:

    python -m httpshare -p 8080 report.pdf
    python -m httpshare -k report.pdf        # keep serving until Ctrl+C

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileShareServer
from .config import ShareConfig
from .errors import (
    ShareError,
    ConfigError,
    AddressResolutionError,
    BindError,
    AcceptError,
    SessionError,
    FileAccessError,
    ProtocolError,
    TransportError,
)

__all__ = [
    "FileShareServer",
    "ShareConfig",
    "ShareError",
    "ConfigError",
    "AddressResolutionError",
    "BindError",
    "AcceptError",
    "SessionError",
    "FileAccessError",
    "ProtocolError",
    "TransportError",
    "__version__",
]
