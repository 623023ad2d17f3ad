import ipaddress
import logging
import socket
import time

from ..errors import TransportError

logger = logging.getLogger("oaresolver.transports")


def _same_endpoint(addr, host: str, port: int) -> bool:
    if int(addr[1]) != int(port):
        return False
    try:
        return ipaddress.ip_address(addr[0].split("%", 1)[0]) == ipaddress.ip_address(
            host
        )
    except ValueError:
        return addr[0] == host


def udp_query(
    host: str,
    port: int,
    query: bytes,
    *,
    timeout_ms: int = 2000,
) -> bytes:
    """
    Brief: Perform a single UDP DNS query.

    Inputs:
    - host: nameserver IP (IPv4 or IPv6)
    - port: UDP port
    - query: wire-format DNS query bytes
    - timeout_ms: overall deadline in milliseconds

    Outputs:
    - bytes: wire-format DNS response (possibly truncated; callers check TC)

    Datagrams from any address other than host:port are dropped and reading
    continues until the deadline.
    """
    family = socket.AF_INET
    try:
        if ipaddress.ip_address(host).version == 6:
            family = socket.AF_INET6
    except ValueError:
        pass
    try:
        s = socket.socket(family, socket.SOCK_DGRAM)
    except OSError as e:
        raise TransportError(f"UDP error: {e}") from e
    try:
        deadline = time.monotonic() + timeout_ms / 1000.0
        s.sendto(query, (host, int(port)))
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TransportError(f"UDP timeout waiting for {host}:{port}")
            s.settimeout(remaining)
            data, addr = s.recvfrom(65535)
            if _same_endpoint(addr, host, port):
                return data
            logger.debug("Dropped UDP datagram from %s, expected %s:%s", addr, host, port)
    except OSError as e:
        raise TransportError(f"UDP error: {e}") from e
    finally:
        s.close()
