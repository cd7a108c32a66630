"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds the two HTTP/1.0 responses of a file sharing session.

=============================================================================
THE TWO RESPONSES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  PHASE 1: answer to "GET /"                                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.0 302 Found\r\n                                           │
    │    Server: HTTP File Sharing\r\n                                    │
    │    Location: /report.pdf\r\n           ← file name goes in the URL  │
    │    Content-Type: text/html\r\n                                      │
    │    Content-Length: 117\r\n                                          │
    │    \r\n                                                              │
    │    <html>...</html>                    ← exactly 117 bytes          │
    │                                                                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │  PHASE 2: answer to "GET /report.pdf"                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.0 200 OK\r\n                                              │
    │    Server: HTTP File Sharing\r\n                                    │
    │    Content-Type: application/octet-stream\r\n                       │
    │    Content-Length: 52428800\r\n        ← fresh stat of the file     │
    │    \r\n                                                              │
    │    (file bytes are streamed separately by the session)              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Header ORDER matters here: the wire format is fixed, so headers are kept
in insertion order and Server always comes first. Browsers check the
body length against Content-Length, which is why the redirect body is a
constant with a known size.

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.FOUND)
        .header("Location", "/report.pdf")
        .html(REDIRECT_BODY)
        .build())

    response.to_bytes()   → bytes ready for Connection.send_all()

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import quote

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "HTTP File Sharing"

# The body of the redirect. Its length is part of the wire contract.
REDIRECT_BODY = (
    b"<html>\n"
    b"  <head>HTTP File Sharing by Adrien RICCIARDI</head>\n"
    b"  <body>\n"
    b"    <p>Downloading file...</p>\n"
    b"  </body>\n"
    b"</html>"
)


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    `body` may be left empty while `Content-Length` announces a size: the
    file response is sent as a header block and the file bytes follow
    from the session's streaming loop.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.0"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.0 302 Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_length(self) -> int:
        """Declared body size (falls back to the in-memory body size)."""
        return int(self.headers.get("Content-Length", len(self.body)))

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        The Server header is placed first, the remaining headers follow
        in insertion order and Content-Length is appended when missing.

        Args:
            server_name: Value for the Server header if none was set.

        Returns:
            Status line, headers, blank line and body.
        """
        response_headers = {"Server": self.headers.get("Server", server_name)}
        for name, value in self.headers.items():
            if name != "Server":
                response_headers[name] = value

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for the responses of a sharing session.

    Each method returns `self` except build().
    """

    def __init__(self, server_name: str = DEFAULT_SERVER_NAME):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {"Server": server_name}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def html(self, body: bytes) -> "ResponseBuilder":
        """
        Set an HTML body and its Content-Length.

        No charset parameter is added: the redirect's header block must
        stay byte-identical to the documented wire format.
        """
        self._body = body
        self.content_type("text/html")
        return self.header("Content-Length", str(len(body)))

    def octet_stream(self, size: int) -> "ResponseBuilder":
        """
        Announce a binary body of `size` bytes that will be streamed
        after the header block.
        """
        self.content_type("application/octet-stream")
        return self.header("Content-Length", str(size))

    def redirect(self, location: str) -> "ResponseBuilder":
        """Temporary (302) redirect to `location`."""
        self._status = HTTPStatus.FOUND
        return self.header("Location", location)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# SESSION RESPONSES
# =============================================================================

def display_name(file_path: str) -> str:
    """
    The name shown in the browser's URL bar for a served file.

    It is the part of the path after the last path separator, or the whole
    path when there is none:

        >>> display_name("/a/b/report.pdf")
        'report.pdf'
        >>> display_name("report.pdf")
        'report.pdf'
    """
    separators = {"/", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    last = max(file_path.rfind(sep) for sep in separators)
    return file_path[last + 1:]


def redirect_location(file_path: str) -> str:
    """
    The Location path for a served file, percent-encoded.

        >>> redirect_location("/a/b/notes v2.txt")
        '/notes%20v2.txt'
    """
    return "/" + quote(os.fsencode(display_name(file_path)), safe="")


def redirect_response(file_path: str, server_name: str = DEFAULT_SERVER_NAME) -> HTTPResponse:
    """
    The 302 answer to "GET /", pointing the browser at "/<display name>".

    The name is percent-encoded from its file system bytes, so names that
    are not valid UTF-8 or that contain CR/LF still yield one header line.
    "report.pdf" stays "report.pdf".
    """
    return (ResponseBuilder(server_name)
        .redirect(redirect_location(file_path))
        .html(REDIRECT_BODY)
        .build())


def file_header_response(size: int, server_name: str = DEFAULT_SERVER_NAME) -> HTTPResponse:
    """
    The 200 header block announcing `size` bytes of file content.
    """
    return (ResponseBuilder(server_name)
        .status(HTTPStatus.OK)
        .octet_stream(size)
        .build())


def format_download_url(address: str, port: int) -> str:
    """
    Build the URL printed for the operator, e.g. "http://192.168.1.20:8080".
    """
    return f"http://{address}:{port}"
