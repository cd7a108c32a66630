"""
=============================================================================
HTTP WIRE LAYER
=============================================================================

The protocol half of the file sharing server: turning the first line of
a browser request into a RequestLine, and turning the session's two
answers (302 redirect, 200 file header) into bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST LINE PARSER (request.py)                                    │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET /report.pdf HTTP/1.1\r\nHost: ...\r\n\r\n"          │
    │ Output:  RequestLine(method="GET", uri="/report.pdf", ...)          │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE BUILDER (response.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   redirect_response("/a/b/report.pdf")                       │
    │ Output:  b"HTTP/1.0 302 Found\r\n...Location: /report.pdf\r\n..."   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import RequestLine, RequestLineParser, parse_request_line
from .response import (
    HTTPResponse,
    ResponseBuilder,
    REDIRECT_BODY,
    display_name,
    redirect_location,
    redirect_response,      # 302 Found -> /<file name>
    file_header_response,   # 200 OK, application/octet-stream
    format_download_url,
)
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "RequestLine",
    "RequestLineParser",
    "parse_request_line",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "REDIRECT_BODY",
    "display_name",
    "redirect_location",
    "redirect_response",
    "file_header_response",
    "format_download_url",

    # Status codes
    "HTTPStatus",
]
