"""Blocking DNS transports used by the validating context."""

from .tcp import tcp_query
from .udp import udp_query

__all__ = ["tcp_query", "udp_query"]
