"""
=============================================================================
HTTP REQUEST LINE PARSER
=============================================================================

Extracts the method and URI from the first line of a raw HTTP request.

=============================================================================
WHAT WE LOOK AT (AND WHAT WE DON'T)
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     INCOMING REQUEST                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ── parsed ───────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    GET /report.pdf HTTP/1.1\r\n                                │ │
    │  │    ─┬─ ─────┬───── ────┬───                                    │ │
    │  │     │       │          │                                        │ │
    │  │   Method   URI      Version (kept, never checked)               │ │
    │  │   == GET                                                        │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ── ignored ───────────────────────────────────────────┐ │
    │  │    Host: 192.168.1.20:8080\r\n                                 │ │
    │  │    User-Agent: Mozilla/5.0 ...\r\n                             │ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

We serve exactly one file, so the URI is informational: any well-formed
GET gets the same answer. Everything after the request line is skipped.

=============================================================================
REJECTED INPUT
=============================================================================

    "POST / HTTP/1.1"         method is not GET
    "GET"                     no space after the method
    "GET /report.pdf"         no space after the URI
    "GET  HTTP/1.1"           empty URI
    "GET /aaaa...(9000)... "  URI longer than max_uri_length

All of these raise ProtocolError, which aborts the session without
sending any response.

=============================================================================
"""

from dataclasses import dataclass

from ..config import DEFAULT_MAX_URI_LENGTH
from ..errors import ProtocolError


@dataclass(frozen=True)
class RequestLine:
    """
    The parsed first line of one incoming request.

    Attributes:
        method: Always "GET" (anything else is rejected during parsing).
        uri: The raw request target, e.g. "/" or "/report.pdf".
        version: The protocol token after the URI, e.g. "HTTP/1.1".
                 Empty when the client omitted it.
    """

    method: str
    uri: str
    version: str = ""

    @property
    def is_root(self) -> bool:
        """True for "GET /", the request that starts a session."""
        return self.uri == "/"

    def __str__(self) -> str:
        return f"{self.method} {self.uri} {self.version}".rstrip()


class RequestLineParser:
    """
    Parses raw request bytes into a RequestLine.

    Only the bytes up to the first line break are decoded. The parser is
    stateless, so one instance can be shared by every session.
    """

    METHOD = "GET"

    def __init__(self, max_uri_length: int = DEFAULT_MAX_URI_LENGTH):
        """
        Args:
            max_uri_length: Longest request URI accepted, in characters.
        """
        self.max_uri_length = max_uri_length

    def parse(self, data: bytes) -> RequestLine:
        """
        Parse the request line out of raw request bytes.

        Args:
            data: Bytes read from the client (at least the first line).

        Returns:
            The parsed RequestLine.

        Raises:
            ProtocolError: If the line is empty, malformed, not a GET, or
                           carries an over-long URI.
        """
        if not data:
            raise ProtocolError("Empty request")

        # ─────────────────────────────────────────────────────────────────
        # ISOLATE THE FIRST LINE
        # ─────────────────────────────────────────────────────────────────
        # Browsers end it with CRLF; a bare LF is tolerated.
        line_end = data.find(b"\n")
        raw_line = data if line_end == -1 else data[:line_end]
        line = raw_line.rstrip(b"\r").decode("latin-1")

        # ─────────────────────────────────────────────────────────────────
        # METHOD: exactly "GET", followed by a single space
        # ─────────────────────────────────────────────────────────────────
        method, sep, rest = line.partition(" ")
        if not sep:
            raise ProtocolError(f"Invalid request line: {line[:80]!r}")
        if method != self.METHOD:
            raise ProtocolError(f"Unsupported method: {method[:32]!r}")

        # ─────────────────────────────────────────────────────────────────
        # URI: everything up to the next space
        # ─────────────────────────────────────────────────────────────────
        uri, sep, version = rest.partition(" ")
        if len(uri) > self.max_uri_length:
            raise ProtocolError(
                f"Request URI too long: {len(uri)} characters "
                f"(limit {self.max_uri_length})"
            )
        if not sep:
            raise ProtocolError(f"Invalid request line: no space after URI in {line[:80]!r}")
        if not uri:
            raise ProtocolError("Invalid request line: empty URI")

        return RequestLine(method=method, uri=uri, version=version.strip())


def parse_request_line(data: bytes, max_uri_length: int = DEFAULT_MAX_URI_LENGTH) -> RequestLine:
    """
    Convenience function to parse a request line in one call.

    Use RequestLineParser directly when parsing many requests with the
    same settings.
    """
    return RequestLineParser(max_uri_length=max_uri_length).parse(data)
