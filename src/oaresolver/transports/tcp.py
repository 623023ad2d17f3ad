"""DNS over TCP, one query per connection."""

import socket

from ..errors import TransportError


def tcp_query(
    host: str,
    port: int,
    query: bytes,
    *,
    connect_timeout_ms: int = 1000,
    read_timeout_ms: int = 2000,
) -> bytes:
    """
    Send one wire-format query over a fresh TCP connection (RFC 7766 framing).

    Inputs:
      - host: Forwarder or system nameserver IP.
      - port: TCP port (53 typically).
      - query: Wire-format DNS query bytes.
      - connect_timeout_ms: Connect timeout.
      - read_timeout_ms: Timeout applied to every send/recv after connect.
    Outputs:
      - bytes: Wire-format DNS response.

    Raises:
      - TransportError: on connect, I/O or framing failure.

    Example:
      >>> resp = tcp_query('80.67.169.40', 53, b'\x12\x34...')
    """
    try:
        conn = socket.create_connection(
            (host, int(port)), timeout=connect_timeout_ms / 1000.0
        )
    except OSError as e:
        raise TransportError(f"connect to {host}:{port} failed: {e}") from e
    with conn:
        try:
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            conn.settimeout(read_timeout_ms / 1000.0)
            conn.sendall(len(query).to_bytes(2, "big") + query)
            return _read_frame(conn)
        except OSError as e:
            raise TransportError(f"TCP exchange with {host}:{port} failed: {e}") from e


def _read_frame(conn: socket.socket) -> bytes:
    hdr = _recv_exact(conn, 2)
    if len(hdr) != 2:
        raise TransportError("connection closed before length prefix")
    expected = int.from_bytes(hdr, "big")
    body = _recv_exact(conn, expected)
    if len(body) != expected:
        raise TransportError(f"truncated TCP frame: {len(body)} of {expected} bytes")
    return body


def _recv_exact(sock: socket.socket, n: int) -> bytes:
    """Read n bytes, returning fewer only when the peer closes first."""
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)
