"""
Brief: Tests for tcp_query framing and error mapping against a local listener.

Inputs:
  - None

Outputs:
  - None
"""

import socket
import threading

import pytest

from oaresolver.errors import TransportError
from oaresolver.transports.tcp import _recv_exact, tcp_query


class _TCPServer:
    """One-shot framed TCP server; handler maps request body to raw reply bytes."""

    def __init__(self, handler):
        self.sock = socket.socket()
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.port = self.sock.getsockname()[1]
        self.handler = handler
        self.thread = threading.Thread(target=self._serve, daemon=True)
        self.thread.start()

    def _serve(self):
        conn, _ = self.sock.accept()
        with conn:
            hdr = _recv_exact(conn, 2)
            body = _recv_exact(conn, int.from_bytes(hdr, "big"))
            reply = self.handler(body)
            if reply:
                conn.sendall(reply)

    def close(self):
        self.thread.join(2)
        self.sock.close()


def _framed(data):
    return len(data).to_bytes(2, "big") + data


def test_tcp_query_returns_reply_body():
    """
    Brief: tcp_query sends a length-prefixed query and returns the reply body.

    Inputs:
      - Server echoing the body reversed

    Outputs:
      - None: Asserts reply payload
    """
    server = _TCPServer(lambda body: _framed(body[::-1]))
    try:
        assert tcp_query("127.0.0.1", server.port, b"abcd") == b"dcba"
    finally:
        server.close()


@pytest.mark.parametrize(
    "reply",
    [
        b"",
        b"\x00",
        b"\x00\x10short",
    ],
)
def test_tcp_query_short_reads_raise(reply):
    server = _TCPServer(lambda body: reply)
    try:
        with pytest.raises(TransportError):
            tcp_query("127.0.0.1", server.port, b"abcd", read_timeout_ms=500)
    finally:
        server.close()


def test_tcp_query_connect_failure_raises():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    with pytest.raises(TransportError):
        tcp_query("127.0.0.1", port, b"abcd", connect_timeout_ms=200)


def test_recv_exact_stops_at_eof():
    a, b = socket.socketpair()
    try:
        a.sendall(b"xyz")
        a.close()
        assert _recv_exact(b, 10) == b"xyz"
    finally:
        b.close()
