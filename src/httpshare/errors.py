"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the file sharing server can hit is one of these exceptions.
They split into two families, and the split decides how far an error
travels:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ERROR HIERARCHY                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ShareError                                                         │
    │   ├── ConfigError              bad port, missing/unreadable file     │
    │   ├── AddressResolutionError   cannot discover our IPv4 address      │
    │   ├── BindError                socket/bind/listen failed             │
    │   ├── AcceptError              accept() failed                       │
    │   └── SessionError             ── only ends the current session ──   │
    │       ├── FileAccessError      open/stat/read of the shared file     │
    │       ├── ProtocolError        malformed or non-GET request          │
    │       └── TransportError       client read/write failure             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

SessionError subclasses are caught by the server loop, logged, and the
session is abandoned (keep-serving mode then waits for the next client).
Everything else propagates out of FileShareServer.run() and the CLI exits
with status 1.

The message of each exception already contains the OS error text where
there is one, so callers can print str(error) as-is.
"""

from typing import Optional


class ShareError(Exception):
    """Base class for all file sharing errors."""


class ConfigError(ShareError):
    """Invalid configuration, reported before any network activity."""


class AddressResolutionError(ShareError):
    """The outbound IPv4 address could not be determined."""


class BindError(ShareError):
    """The listening socket could not be created, bound or put in listen mode."""

    def __init__(self, message: str, port: Optional[int] = None):
        super().__init__(message)
        self.port = port


class AcceptError(ShareError):
    """accept() failed on the listening socket."""


class SessionError(ShareError):
    """
    An error that aborts one serving session but not the whole server.
    """


class FileAccessError(SessionError):
    """The shared file could not be opened, stat'ed or read."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ProtocolError(SessionError):
    """
    The client sent something we refuse to answer.

    Raised for a non-GET method, a malformed request line, an over-long
    URI, a request that fills the whole read ceiling, or a client that
    closed the connection without sending anything.
    """


class TransportError(SessionError):
    """Reading from or writing to the client socket failed."""
