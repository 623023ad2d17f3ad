"""Validating resolver context: forwarders, transport policy and trust anchors.

A ValidatingContext sends DO-bit queries to its forwarders (or the system
nameservers when none are configured) and classifies each answer with a
ChainValidator. Configuration is frozen into an immutable snapshot before each
query, so resolve() may be called from many threads at once.
"""

from __future__ import annotations

import ipaddress
import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import dns.resolver
import dns.rrset

from ..errors import ResolverUnavailable, TransportError
from ..transports import tcp_query, udp_query
from . import dnssec_validate as dval
from . import trust_anchors as _ta

logger = logging.getLogger("oaresolver.dnssec.context")

EDNS_PAYLOAD = 1232

_OPTION_KEYS = {"do-udp": "do_udp", "do-tcp": "do_tcp"}
_BOOL_VALUES = {"yes": True, "no": False}


@dataclass
class ResolveResult:
    """Outcome of one ValidatingContext.resolve() call.

    Fields:
      - qname/qtype/qclass: The question as sent.
      - data: rdata wire payloads of the answer RRset in response order.
      - rcode: Response code.
      - havedata: True when data is non-empty.
      - nxdomain: True for an NXDOMAIN response.
      - secure: The answer validated against the trust anchors.
      - bogus: Validation was attempted and failed.
    """

    qname: str
    qtype: int
    qclass: int
    data: List[bytes] = field(default_factory=list)
    rcode: int = dns.rcode.NOERROR
    havedata: bool = False
    nxdomain: bool = False
    secure: bool = False
    bogus: bool = False


@dataclass(frozen=True)
class _Snapshot:
    nameservers: Tuple[str, ...]
    port: int
    timeout_ms: int
    do_udp: bool
    do_tcp: bool
    validator: dval.ChainValidator


class ValidatingContext:
    """
    Brief: Long-lived validating resolver handle.

    Inputs:
      - port: Nameserver port (53).
      - timeout_ms: Per-exchange socket timeout.
      - use_system_nameservers: Load /etc/resolv.conf nameservers through
        dnspython for use when no forwarder is set.

    Outputs:
      - Instance exposing add_ta/set_fwd/set_option/resolve/close.

    Raises:
      - ResolverUnavailable: when system nameservers are required but cannot
        be read.
    """

    def __init__(
        self,
        *,
        port: int = 53,
        timeout_ms: int = 2000,
        use_system_nameservers: bool = True,
    ) -> None:
        self._lock = threading.Lock()
        self._port = int(port)
        self._timeout_ms = int(timeout_ms)
        self._forwarders: List[str] = []
        self._anchors: List[dns.rrset.RRset] = []
        self._do_udp = True
        self._do_tcp = True
        self._closed = False
        self._system_nameservers: List[str] = []
        if use_system_nameservers:
            try:
                system = dns.resolver.Resolver(configure=True)
            except dns.exception.DNSException as e:
                raise ResolverUnavailable(
                    f"cannot read system resolver configuration: {e}"
                ) from e
            self._system_nameservers = [str(ns) for ns in system.nameservers]
        self._validator = dval.ChainValidator(self._exchange_current, [])

    @property
    def forwarders(self) -> List[str]:
        with self._lock:
            return list(self._forwarders)

    @property
    def closed(self) -> bool:
        return self._closed

    def add_ta(self, anchor_text: str) -> None:
        """Install a DS trust anchor given in presentation form.

        Raises:
          - ValueError: when the anchor cannot be parsed.
        """

        rrset = _ta.parse_ds_anchor(anchor_text)
        with self._lock:
            self._anchors.append(rrset)
            self._validator = dval.ChainValidator(
                self._exchange_current, list(self._anchors)
            )

    def set_fwd(self, address: str) -> None:
        """Forward all queries to address (an IP literal).

        Raises:
          - ValueError: when address is not an IP address.
        """

        ip = str(ipaddress.ip_address(address.strip()))
        with self._lock:
            self._forwarders.append(ip)

    def set_option(self, key: str, value: str) -> None:
        """Set a transport option, e.g. set_option('do-udp:', 'no').

        Raises:
          - ValueError: for unknown keys or values other than yes/no.
        """

        attr = _OPTION_KEYS.get(key.strip().rstrip(":").lower())
        flag = _BOOL_VALUES.get(str(value).strip().lower())
        if attr is None or flag is None:
            raise ValueError(f"unsupported option {key!r}={value!r}")
        with self._lock:
            setattr(self, "_" + attr, flag)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._forwarders.clear()
            self._anchors.clear()

    def _snapshot(self) -> _Snapshot:
        with self._lock:
            if self._closed:
                raise ResolverUnavailable("resolver context has been closed")
            return _Snapshot(
                nameservers=tuple(self._forwarders or self._system_nameservers),
                port=self._port,
                timeout_ms=self._timeout_ms,
                do_udp=self._do_udp,
                do_tcp=self._do_tcp,
                validator=self._validator,
            )

    def _exchange_current(self, name: dns.name.Name, rdtype: int) -> dns.message.Message:
        return self._exchange(self._snapshot(), name, rdtype)

    def _exchange(
        self, snap: _Snapshot, name: dns.name.Name, rdtype: int
    ) -> dns.message.Message:
        """Send one DO/CD query, trying each nameserver in order.

        Raises:
          - TransportError: when every nameserver failed.
        """

        if not snap.nameservers:
            raise TransportError("no nameservers configured")
        if not (snap.do_udp or snap.do_tcp):
            raise TransportError("both UDP and TCP are disabled")

        query = dns.message.make_query(
            name, rdtype, want_dnssec=True, payload=EDNS_PAYLOAD
        )
        query.flags |= dns.flags.CD
        wire = query.to_wire()
        last_error: Optional[Exception] = None
        for ns in snap.nameservers:
            try:
                resp_wire = None
                if snap.do_udp:
                    resp_wire = udp_query(
                        ns, snap.port, wire, timeout_ms=snap.timeout_ms
                    )
                    flags = int.from_bytes(resp_wire[2:4], "big")
                    if flags & dns.flags.TC and snap.do_tcp:
                        resp_wire = None
                if resp_wire is None:
                    resp_wire = tcp_query(
                        ns,
                        snap.port,
                        wire,
                        connect_timeout_ms=snap.timeout_ms,
                        read_timeout_ms=snap.timeout_ms,
                    )
                response = dns.message.from_wire(resp_wire)
                if not query.is_response(response):
                    raise TransportError(f"mismatched response from {ns}")
                return response
            except (TransportError, dns.exception.DNSException) as e:
                logger.debug("Query %s/%s via %s failed: %s", name, rdtype, ns, e)
                last_error = e
        raise TransportError(f"all nameservers failed for {name}: {last_error}")

    def resolve(
        self,
        name: str,
        rdtype: int,
        rdclass: int = dns.rdataclass.IN,
    ) -> ResolveResult:
        """
        Brief: Resolve one name/type and report its DNSSEC status.

        Inputs:
          - name: Domain name text.
          - rdtype: Numeric record type.
          - rdclass: Record class (IN).

        Outputs:
          - ResolveResult.

        Raises:
          - ResolverUnavailable: when the context has been closed.
          - TransportError: when no nameserver answered.
          - ValueError: for names dnspython cannot parse.
        """

        snap = self._snapshot()
        qname = dns.name.from_text(name)
        msg = self._exchange(snap, qname, int(rdtype))
        result = ResolveResult(qname=name, qtype=int(rdtype), qclass=int(rdclass))
        result.rcode = msg.rcode()
        result.nxdomain = result.rcode == dns.rcode.NXDOMAIN

        final, _ = dval.collect_answer_chain(msg, qname, int(rdtype))
        if final is not None:
            result.data = [rd.to_wire() for rd in final]
            result.havedata = bool(result.data)

        status = snap.validator.classify(qname, int(rdtype), msg)
        result.secure = status == dval.SECURE
        result.bogus = status == dval.BOGUS
        return result
