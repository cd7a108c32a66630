"""
=============================================================================
OUTBOUND ADDRESS DISCOVERY
=============================================================================

Finds the local IPv4 address other machines should use to reach us, so
the printed download URL is something a colleague can actually open.

=============================================================================
THE UDP "CONNECT" TRICK
=============================================================================

connect() on a UDP socket sends nothing. It only makes the kernel pick
the route, and therefore the local interface, that traffic to the given
destination would use. getsockname() then reports that interface's
address:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   sock = socket(AF_INET, SOCK_DGRAM)                                │
    │   sock.connect(("192.0.2.0", 80))   ← route lookup only, no packet  │
    │   sock.getsockname()                ← ("192.168.1.20", 53012)       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

192.0.2.0/24 is TEST-NET-1 (RFC 5737): reserved for documentation and
never assigned, so nothing on the internet is ever contacted, and the
answer does not depend on a reachable gateway or DNS.

=============================================================================
"""

import socket
import logging

from ..errors import AddressResolutionError


logger = logging.getLogger(__name__)


# RFC 5737 documentation address, never routed to a real host
PROBE_ADDRESS = ("192.0.2.0", 80)


def resolve_outbound_ipv4() -> str:
    """
    Return the IPv4 address of the interface used for outbound traffic.

    Returns:
        Dotted-quad address, e.g. "192.168.1.20".

    Raises:
        AddressResolutionError: If socket creation, the pseudo-connect or
                                the local address query fails.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(PROBE_ADDRESS)
            address = sock.getsockname()[0]
    except OSError as e:
        raise AddressResolutionError(f"Failed to determine the server IP address ({e})") from e

    logger.debug(f"Outbound IPv4 address is {address}")
    return address
