"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The file sharing exchange only ever answers with two status codes:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  302   │ Found - sent for "GET /", Location carries the file name │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  200   │ OK    - sent for "GET /<name>", body is the raw file     │
    └────────┴───────────────────────────────────────────────────────────┘

Malformed or non-GET requests get no response at all; the connection is
simply closed.
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes with their reason phrases.

        >>> HTTPStatus.FOUND == 302
        True
        >>> HTTPStatus.FOUND.phrase
        'Found'
    """

    OK = 200        # File header + body
    FOUND = 302     # Redirect to /<file name>

    @property
    def phrase(self) -> str:
        """Reason phrase used in the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FOUND: "Found",
}
