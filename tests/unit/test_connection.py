"""
Unit tests for the client connection wrapper.
"""

import socket
import threading
import time

import pytest

from httpshare.core import connection as connection_module
from httpshare.core.connection import Connection, ConnectionState
from httpshare.errors import ProtocolError, TransportError


@pytest.fixture
def socket_pair():
    """(server side, client side) of a connected stream socket pair."""
    server_sock, client_sock = socket.socketpair()
    yield server_sock, client_sock
    server_sock.close()
    client_sock.close()


def keep_sending(sock, payload: bytes, interval: float, stop: threading.Event):
    """Write `payload` every `interval` seconds until stopped or the peer closes."""
    while not stop.is_set():
        try:
            sock.sendall(payload)
        except OSError:
            return
        if interval:
            stop.wait(interval)


def make_connection(sock, timeout=2.0) -> Connection:
    return Connection(socket=sock, address=("127.0.0.1", 54321), timeout=timeout)


class TestReadRequest:
    """Tests for Connection.read_request()."""

    def test_reads_until_blank_line(self, socket_pair, sample_root_request):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        client_sock.sendall(sample_root_request)

        assert conn.read_request() == sample_root_request
        assert conn.state == ConnectionState.READING

    def test_request_split_across_sends(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"GET /rep")
        client_sock.sendall(b"ort.pdf HTTP/1.1\r\n\r\n")

        assert conn.read_request().startswith(b"GET /report.pdf HTTP/1.1")

    def test_client_stops_sending(self, socket_pair):
        """No blank line, but the client shut down its side."""
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"GET / HTTP/1.0\r\n")
        client_sock.shutdown(socket.SHUT_WR)

        assert conn.read_request() == b"GET / HTTP/1.0\r\n"

    def test_nothing_sent(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        client_sock.shutdown(socket.SHUT_WR)

        with pytest.raises(ProtocolError) as exc_info:
            conn.read_request()

        assert str(exc_info.value) == "The browser did not send an HTTP GET request"

    def test_ceiling_reached(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        client_sock.sendall(b"A" * 100)

        with pytest.raises(ProtocolError) as exc_info:
            conn.read_request(ceiling=64)

        assert "too long" in str(exc_info.value)

    def test_request_exactly_at_ceiling(self, socket_pair):
        """Filling the ceiling exactly counts as too long."""
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)
        request = b"GET / HTTP/1.1\r\n\r\n"

        client_sock.sendall(request)

        with pytest.raises(ProtocolError):
            conn.read_request(ceiling=len(request))

    def test_request_below_ceiling(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)
        request = b"GET / HTTP/1.1\r\n\r\n"

        client_sock.sendall(request)

        assert conn.read_request(ceiling=len(request) + 1) == request

    def test_timeout(self, socket_pair):
        server_sock, _ = socket_pair
        conn = make_connection(server_sock, timeout=0.1)

        with pytest.raises(TransportError):
            conn.read_request()


class TestSendAndClose:
    """Tests for send_all() and close()."""

    def test_send_all_counts_bytes(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        conn.send_all(b"hello ")
        conn.send_all(b"world")

        assert conn.bytes_sent == 11
        assert client_sock.recv(64) == b"hello world"

    def test_send_to_closed_peer(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)

        client_sock.close()

        with pytest.raises(TransportError):
            conn.send_all(b"x" * 65536)

    def test_close_sends_eof_and_is_idempotent(self, socket_pair):
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)
        conn.send_all(b"bye")
        client_sock.shutdown(socket.SHUT_WR)

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert client_sock.recv(64) == b"bye"
        assert client_sock.recv(64) == b""

    def test_context_manager_closes(self, socket_pair):
        server_sock, client_sock = socket_pair
        client_sock.shutdown(socket.SHUT_WR)

        with make_connection(server_sock) as conn:
            pass

        assert conn.state == ConnectionState.CLOSED
        assert server_sock.fileno() == -1

    def test_client_address(self, socket_pair):
        conn = make_connection(socket_pair[0])

        assert conn.client_ip == "127.0.0.1"
        assert conn.client_port == 54321
        assert len(conn.id) == 8


class TestDrainBounds:
    """close() returns even when the client never stops sending."""

    def _close_while_sending(self, socket_pair, payload, interval) -> float:
        server_sock, client_sock = socket_pair
        conn = make_connection(server_sock)
        stop = threading.Event()
        sender = threading.Thread(
            target=keep_sending, args=(client_sock, payload, interval, stop), daemon=True
        )
        sender.start()
        try:
            started = time.monotonic()
            conn.close()
            return time.monotonic() - started
        finally:
            stop.set()
            sender.join(timeout=2.0)

    def test_trickling_client(self, socket_pair):
        elapsed = self._close_while_sending(socket_pair, b"x", interval=0.02)

        assert elapsed < connection_module.DRAIN_TIMEOUT + 1.0

    def test_flooding_client_stops_at_byte_limit(self, socket_pair, monkeypatch):
        monkeypatch.setattr(connection_module, "DRAIN_TIMEOUT", 30.0)

        elapsed = self._close_while_sending(socket_pair, b"x" * 4096, interval=0)

        assert elapsed < 5.0
