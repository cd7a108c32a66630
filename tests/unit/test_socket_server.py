"""
Unit tests for the listening endpoint.
"""

import socket

import pytest

from httpshare.core.socket_server import ListeningEndpoint, create_server
from httpshare.errors import AcceptError, BindError


class TestCreateServer:
    """Tests for create_server()."""

    def test_binds_requested_port(self, free_port):
        with create_server(free_port, host="127.0.0.1") as endpoint:
            assert endpoint.port == free_port
            assert endpoint.is_open

    def test_port_zero_picks_free_port(self):
        with create_server(0, host="127.0.0.1") as endpoint:
            assert endpoint.port > 0

    def test_reuse_address_is_set(self):
        with create_server(0, host="127.0.0.1") as endpoint:
            assert endpoint._socket.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR)

    def test_port_in_use(self):
        with create_server(0, host="127.0.0.1") as endpoint:
            with pytest.raises(BindError) as exc_info:
                create_server(endpoint.port, host="127.0.0.1")

        assert exc_info.value.port == endpoint.port
        assert "Failed to bind the socket" in str(exc_info.value)

    def test_port_out_of_range(self):
        with pytest.raises(BindError):
            create_server(70000, host="127.0.0.1")


class TestListeningEndpoint:
    """Tests for ListeningEndpoint."""

    def test_accept_one(self):
        with create_server(0, host="127.0.0.1", client_timeout=2.0) as endpoint:
            client = socket.create_connection(("127.0.0.1", endpoint.port), timeout=2.0)
            try:
                conn = endpoint.accept_one()
                assert conn.client_ip == "127.0.0.1"
                assert conn.timeout == 2.0
                conn.socket.close()
            finally:
                client.close()

    def test_accept_after_close(self):
        endpoint = create_server(0, host="127.0.0.1")
        endpoint.close()
        endpoint.close()

        assert not endpoint.is_open
        with pytest.raises(AcceptError):
            endpoint.accept_one()

    def test_wraps_existing_socket(self):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        sock.listen(1)

        with ListeningEndpoint(sock) as endpoint:
            assert endpoint.host == "127.0.0.1"
            assert endpoint.port == sock.getsockname()[1]

        assert sock.fileno() == -1
