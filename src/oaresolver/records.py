"""Record types, query/result values and raw rdata decoders.

The decoders receive the rdata wire payload of a single record exactly as the
validating context hands it over (4 bytes for A, 16 for AAAA, the
length-prefixed character-strings for TXT) and turn it into text.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

import dns.rdataclass
import dns.rdatatype

logger = logging.getLogger("oaresolver.records")


class RecordType(enum.IntEnum):
    """Record types the resolver adapter supports."""

    A = int(dns.rdatatype.A)
    AAAA = int(dns.rdatatype.AAAA)
    TXT = int(dns.rdatatype.TXT)

    @classmethod
    def parse(cls, value) -> "RecordType":
        """Brief: Coerce 'txt', 'TXT', 16 or a RecordType into a RecordType.

        Inputs:
          - value: str, int or RecordType.

        Outputs:
          - RecordType member.

        Raises:
          - ValueError: for unsupported types.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"unsupported record type {value!r}") from None
        return cls(int(value))


@dataclass(frozen=True)
class RecordQuery:
    name: str
    rdtype: RecordType
    rdclass: int = int(dns.rdataclass.IN)


@dataclass(frozen=True)
class RecordResult:
    """Decoded records for one query plus its DNSSEC status.

    Fields:
      - records: decoded strings in server response order.
      - dnssec_available: the engine attempted validation (secure or bogus).
      - dnssec_valid: validation succeeded (secure and not bogus).
    """

    records: Tuple[str, ...] = field(default_factory=tuple)
    dnssec_available: bool = False
    dnssec_valid: bool = False

    @classmethod
    def empty(cls) -> "RecordResult":
        return cls()

    @property
    def trusted(self) -> bool:
        return self.dnssec_available and self.dnssec_valid


def ipv4_to_string(data: bytes) -> Optional[str]:
    """
    Brief: Render A rdata as dotted-quad text.

    Inputs:
      - data: raw rdata bytes (at least 4).

    Outputs:
      - 'b0.b1.b2.b3' or None when fewer than 4 bytes are given.

    Example:
      >>> ipv4_to_string(bytes([192, 0, 2, 1]))
      '192.0.2.1'
    """
    if len(data) < 4:
        logger.error("Invalid IPv4 address: %r", data)
        return None
    return ".".join(str(b) for b in data[:4])


def ipv6_to_string(data: bytes) -> Optional[str]:
    """
    Brief: Render AAAA rdata in the legacy eight-decimal-group form.

    Inputs:
      - data: raw rdata bytes (at least 8).

    Outputs:
      - first 8 bytes as unsigned decimals joined by ':', or None when fewer
        than 8 bytes are given.

    Notes:
      - This is not RFC 5952 text form; the layout is kept because existing
        consumers compare against it.
    """
    if len(data) < 8:
        logger.error("Invalid IPv6 address: %r", data)
        return None
    return ":".join(str(b) for b in data[:8])


def txt_to_string(data: bytes) -> Optional[str]:
    """
    Brief: Strip the leading length octet from TXT rdata and decode the rest.

    Inputs:
      - data: raw TXT rdata.

    Outputs:
      - str, or None for an empty payload.

    Example:
      >>> txt_to_string(b"\\x03abc")
      'abc'
    """
    if len(data) == 0:
        return None
    return data[1:].decode("utf-8", errors="replace")


_DECODERS: Dict[RecordType, Callable[[bytes], Optional[str]]] = {
    RecordType.A: ipv4_to_string,
    RecordType.AAAA: ipv6_to_string,
    RecordType.TXT: txt_to_string,
}


def decoder_for(rdtype: RecordType) -> Callable[[bytes], Optional[str]]:
    return _DECODERS[RecordType.parse(rdtype)]
