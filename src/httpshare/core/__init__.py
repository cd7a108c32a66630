"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

Low-level networking for the file sharing server:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   address.py        resolve_outbound_ipv4() - IP for the URL        │
    │   socket_server.py  create_server() / ListeningEndpoint.accept_one()│
    │   connection.py     Connection - read one request, send, close      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .address import resolve_outbound_ipv4
from .connection import Connection, ConnectionState
from .socket_server import ListeningEndpoint, create_server

__all__ = [
    "resolve_outbound_ipv4",
    "Connection",
    "ConnectionState",
    "ListeningEndpoint",
    "create_server",
]
