"""Validating resolver adapter.

DNSResolver owns one ValidatingContext configured with the forwarders from
DNS_PUBLIC (or an explicit override), the transport policy (TCP only by
default) and the built-in root trust anchor, and turns raw answers into
decoded RecordResult values.
"""

from __future__ import annotations

import atexit
import logging
import threading
from typing import Callable, List, Mapping, Optional

import dns.exception

from .config.config_parser import dns_public_from_env, parse_dns_public
from .config.config_schema import ResolverSettings
from .dnssec.context import ValidatingContext
from .dnssec.trust_anchors import BUILTIN_DS_ANCHORS
from .errors import OAResolverError, ResolverUnavailable, TransportError
from .records import RecordQuery, RecordResult, RecordType, decoder_for

logger = logging.getLogger("oaresolver.resolver")

ContextFactory = Callable[..., ValidatingContext]


class DNSResolver:
    """
    Brief: Blocking, thread-safe TXT/A/AAAA lookups with DNSSEC status.

    Inputs:
      - settings: Optional ResolverSettings (port, timeout, transports, extra
        trust anchors, dns_public override).
      - dns_public: Optional override string; takes precedence over
        settings.dns_public and the DNS_PUBLIC environment variable.
      - environ: Environment mapping used when no override is given.
      - context_factory: Callable building the ValidatingContext.

    Outputs:
      - Instance; when the context cannot be built every resolve() raises
        ResolverUnavailable.

    resolve() takes no lock: the context snapshots its configuration per
    query and its key caches are lock-protected.
    """

    _instance: Optional["DNSResolver"] = None
    _instance_lock = threading.Lock()
    _atexit_registered = False

    def __init__(
        self,
        settings: Optional[ResolverSettings] = None,
        *,
        dns_public: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        context_factory: ContextFactory = ValidatingContext,
    ) -> None:
        settings = settings or ResolverSettings()
        override = dns_public if dns_public is not None else settings.dns_public
        if override:
            forwarders = parse_dns_public(override)
        else:
            forwarders = dns_public_from_env(environ)
        self._forwarders: List[str] = []
        self._context: Optional[ValidatingContext] = None

        try:
            ctx = context_factory(
                port=settings.port,
                timeout_ms=settings.timeout_ms,
                use_system_nameservers=not forwarders,
            )
        except (OAResolverError, OSError) as e:
            logger.error("Failed to create validating resolver context: %s", e)
            return

        for ip in forwarders:
            try:
                ctx.set_fwd(ip)
                self._forwarders.append(ip)
            except ValueError as e:
                logger.error("Failed to add forwarder %s: %s", ip, e)

        ctx.set_option("do-udp:", "yes" if settings.do_udp else "no")
        ctx.set_option("do-tcp:", "yes" if settings.do_tcp else "no")

        for anchor in list(BUILTIN_DS_ANCHORS) + list(settings.trust_anchors):
            logger.info("adding trust anchor: %s", anchor)
            try:
                ctx.add_ta(anchor)
            except ValueError as e:
                logger.error("Failed to add trust anchor %r: %s", anchor, e)

        self._context = ctx

    @property
    def forwarders(self) -> List[str]:
        return list(self._forwarders)

    @property
    def available(self) -> bool:
        return self._context is not None and not self._context.closed

    @staticmethod
    def check_address_syntax(name: str) -> bool:
        # Names without a dot are not treated as domains.
        return "." in name

    def resolve(self, name: str, rdtype=RecordType.TXT) -> RecordResult:
        """
        Brief: Look up one name/type and decode the answer.

        Inputs:
          - name: Domain name.
          - rdtype: RecordType (or 'A'/'AAAA'/'TXT').

        Outputs:
          - RecordResult; empty when the name has no dot, the query failed or
            the answer held no usable records.

        Raises:
          - ResolverUnavailable: when the context could not be built or has
            been closed.
        """
        ctx = self._context
        if ctx is None:
            raise ResolverUnavailable("validating resolver context is unavailable")
        query = RecordQuery(name, RecordType.parse(rdtype))
        rtype = query.rdtype
        if not self.check_address_syntax(name):
            return RecordResult.empty()

        try:
            res = ctx.resolve(query.name, int(rtype), query.rdclass)
        except (TransportError, ValueError, dns.exception.DNSException) as e:
            logger.debug("%s lookup for %s failed: %s", rtype.name, name, e)
            return RecordResult.empty()

        decode = decoder_for(rtype)
        records: List[str] = []
        if res.havedata:
            for data in res.data:
                text = decode(data)
                if text is not None:
                    logger.info('Found "%s" in %s record for %s', text, rtype.name, name)
                    records.append(text)

        return RecordResult(
            records=tuple(records),
            dnssec_available=bool(res.secure or res.bogus),
            dnssec_valid=bool(res.secure and not res.bogus),
        )

    def get_ipv4(self, name: str) -> RecordResult:
        return self.resolve(name, RecordType.A)

    def get_ipv6(self, name: str) -> RecordResult:
        return self.resolve(name, RecordType.AAAA)

    def get_txt_record(self, name: str) -> RecordResult:
        return self.resolve(name, RecordType.TXT)

    def close(self) -> None:
        """Release the underlying context; safe to call more than once."""
        ctx, self._context = self._context, None
        if ctx is not None:
            ctx.close()

    def __enter__(self) -> "DNSResolver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @classmethod
    def create(cls, **kwargs) -> "DNSResolver":
        """Build an independent resolver not shared with instance()."""
        return cls(**kwargs)

    @classmethod
    def instance(cls) -> "DNSResolver":
        """
        Brief: Return the process-wide resolver, building it on first use.

        Outputs:
          - DNSResolver shared by every caller; torn down at interpreter exit.
        """
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
                if not cls._atexit_registered:
                    atexit.register(cls.shutdown_instance)
                    cls._atexit_registered = True
            return cls._instance

    @classmethod
    def shutdown_instance(cls) -> None:
        with cls._instance_lock:
            inst, cls._instance = cls._instance, None
        if inst is not None:
            inst.close()
