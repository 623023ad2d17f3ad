"""Local DNSSEC validation of responses fetched through a ValidatingContext.

Brief:
  Responses are classified as 'secure', 'insecure' or 'bogus'. The key chain
  for a zone is built top-down from the configured DS trust anchors: each
  zone's DS RRset must verify under its parent's DNSKEYs, and each zone's
  DNSKEY RRset must contain a key matching that DS and be self-signed by it.
  Zone keys are cached per validator with a bounded TTL.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import dns.dnssec
import dns.message
import dns.name
import dns.rcode
import dns.rdataclass
import dns.rdatatype
import dns.rrset
from cachetools import TTLCache, cachedmethod

from . import trust_anchors as _ta

logger = logging.getLogger("oaresolver.dnssec")

SECURE = "secure"
INSECURE = "insecure"
BOGUS = "bogus"

# Validated zone keys are kept for at most this long regardless of RRset TTL.
_KEY_CACHE_TTL_SECONDS = 900
_MAX_CNAME_CHAIN = 8

QueryFn = Callable[[dns.name.Name, int], dns.message.Message]
ZoneKeys = Tuple[str, Optional[dns.rrset.RRset]]


def _find_sig(
    section: Iterable[dns.rrset.RRset], rrset: dns.rrset.RRset
) -> Optional[dns.rrset.RRset]:
    """Return the RRSIG RRset covering rrset within section, if any."""

    for cand in section:
        if (
            cand.rdtype == dns.rdatatype.RRSIG
            and cand.covers == rrset.rdtype
            and cand.name == rrset.name
        ):
            return cand
    return None


def _find_rrset(
    section: Iterable[dns.rrset.RRset], name: dns.name.Name, rdtype: int
) -> Optional[dns.rrset.RRset]:
    for cand in section:
        if cand.name == name and cand.rdtype == rdtype:
            return cand
    return None


def collect_answer_chain(
    msg: dns.message.Message, qname: dns.name.Name, rdtype: int
) -> Tuple[Optional[dns.rrset.RRset], List[dns.rrset.RRset]]:
    """Follow CNAMEs in the answer section from qname to the requested type.

    Inputs:
      - msg: Parsed response.
      - qname: Query name.
      - rdtype: Requested RR type.

    Outputs:
      - (final_rrset, hops): final_rrset is the RRset of rdtype at the end of
        the chain (None when absent); hops lists every RRset traversed
        including CNAMEs and the final RRset.
    """

    hops: List[dns.rrset.RRset] = []
    current = qname
    for _ in range(_MAX_CNAME_CHAIN):
        direct = _find_rrset(msg.answer, current, rdtype)
        if direct is not None:
            hops.append(direct)
            return direct, hops
        cname = _find_rrset(msg.answer, current, dns.rdatatype.CNAME)
        if cname is None or not len(cname):
            return None, hops
        hops.append(cname)
        current = cname[0].target
    return None, hops


class ChainValidator:
    """Classify responses against a fixed set of DS trust anchors.

    Inputs:
      - query: Callable (name, rdtype) -> dns.message.Message used to fetch
        DS and DNSKEY material. It must request DNSSEC records.
      - anchors: DS RRsets used as trust anchors (normally the root).

    Outputs:
      - Instance whose classify() returns SECURE, INSECURE or BOGUS.

    With no anchors every response is INSECURE.
    """

    def __init__(self, query: QueryFn, anchors: Iterable[dns.rrset.RRset]) -> None:
        self._query = query
        self._anchors: Dict[dns.name.Name, dns.rrset.RRset] = {}
        for anchor in anchors:
            existing = self._anchors.get(anchor.name)
            if existing is None:
                self._anchors[anchor.name] = anchor
            else:
                existing.update(anchor)
        self._lock = threading.Lock()
        self._keys: TTLCache = TTLCache(maxsize=1024, ttl=_KEY_CACHE_TTL_SECONDS)

    @property
    def has_anchors(self) -> bool:
        return bool(self._anchors)

    @cachedmethod(lambda self: self._keys, lock=lambda self: self._lock)
    def zone_keys(self, zone: dns.name.Name) -> ZoneKeys:
        """Return (status, dnskey_rrset) for zone.

        Inputs:
          - zone: Zone apex name (typically an RRSIG signer name).

        Outputs:
          - (SECURE, rrset) when the zone's DNSKEY RRset chains to an anchor.
          - (INSECURE, None) when the chain ends at an unsigned delegation or
            no anchor covers the zone.
          - (BOGUS, None) when chain material is missing or fails to verify.

        Raises:
          - Whatever the query callable raises. Such failures are not cached;
            classify() reports them as BOGUS for the current query only.
        """

        if zone in self._anchors:
            return self._keys_from_ds(zone, self._anchors[zone])
        if zone == dns.name.root:
            return INSECURE, None
        return self._keys_from_parent(zone)

    def _keys_from_ds(
        self, zone: dns.name.Name, ds_rrset: dns.rrset.RRset
    ) -> ZoneKeys:
        msg = self._query(zone, dns.rdatatype.DNSKEY)
        dnskeys = _find_rrset(msg.answer, zone, dns.rdatatype.DNSKEY)
        if dnskeys is None:
            logger.debug("No DNSKEY RRset for %s", zone)
            return BOGUS, None
        sig = _find_sig(msg.answer, dnskeys)
        if sig is None:
            logger.debug("DNSKEY RRset for %s is unsigned", zone)
            return BOGUS, None
        anchored = _ta.anchored_keys(zone, ds_rrset, dnskeys)
        if not anchored:
            logger.debug("No DNSKEY for %s matches its DS set", zone)
            return BOGUS, None
        trusted = dns.rrset.RRset(zone, dns.rdataclass.IN, dns.rdatatype.DNSKEY)
        for key in anchored:
            trusted.add(key)
        try:
            dns.dnssec.validate(dnskeys, sig, {zone: trusted})
        except dns.dnssec.ValidationFailure as e:
            logger.debug("DNSKEY self-signature for %s invalid: %s", zone, e)
            return BOGUS, None
        return SECURE, dnskeys

    def _keys_from_parent(self, zone: dns.name.Name) -> ZoneKeys:
        msg = self._query(zone, dns.rdatatype.DS)
        ds_rrset = _find_rrset(msg.answer, zone, dns.rdatatype.DS)
        if ds_rrset is None:
            # No DS: an unsigned delegation, provided the denial checks out.
            status = self._validate_signed_section(msg.authority)
            return (BOGUS, None) if status == BOGUS else (INSECURE, None)
        sig = _find_sig(msg.answer, ds_rrset)
        if sig is None:
            return BOGUS, None
        parent = sig[0].signer
        if parent == zone or not zone.is_subdomain(parent):
            return BOGUS, None
        status, parent_keys = self.zone_keys(parent)
        if status != SECURE:
            return status, None
        try:
            dns.dnssec.validate(ds_rrset, sig, {parent: parent_keys})
        except dns.dnssec.ValidationFailure as e:
            logger.debug("DS for %s does not verify under %s: %s", zone, parent, e)
            return BOGUS, None
        return self._keys_from_ds(zone, ds_rrset)

    def _validate_signed_section(self, section: List[dns.rrset.RRset]) -> str:
        """Verify every signed non-RRSIG RRset of a section.

        Outputs:
          - SECURE when at least one RRset is signed and all signed ones
            verify, INSECURE when nothing is signed or the signer zone is
            itself insecure, BOGUS otherwise.
        """

        signed = []
        for rrset in section:
            if rrset.rdtype == dns.rdatatype.RRSIG:
                continue
            sig = _find_sig(section, rrset)
            if sig is not None:
                signed.append((rrset, sig))
        if not signed:
            return INSECURE
        for rrset, sig in signed:
            signer = sig[0].signer
            if not rrset.name.is_subdomain(signer):
                return BOGUS
            status, keys = self.zone_keys(signer)
            if status != SECURE:
                return status
            try:
                dns.dnssec.validate(rrset, sig, {signer: keys})
            except dns.dnssec.ValidationFailure:
                return BOGUS
        return SECURE

    def _enclosing_zone_status(self, name: dns.name.Name) -> str:
        """Status of the zone that owns name, found through its SOA."""

        msg = self._query(name, dns.rdatatype.SOA)
        for section in (msg.answer, msg.authority):
            for rrset in section:
                if rrset.rdtype == dns.rdatatype.SOA:
                    return self.zone_keys(rrset.name)[0]
        return INSECURE

    def classify(
        self, qname: dns.name.Name, rdtype: int, msg: dns.message.Message
    ) -> str:
        """Classify a response as SECURE, INSECURE or BOGUS.

        Inputs:
          - qname: Query name.
          - rdtype: Query type.
          - msg: Parsed response carrying DNSSEC records (DO set).

        Outputs:
          - Status string.

        Notes:
          - Unsigned data from a zone whose chain validates is BOGUS.
          - Negative answers need a signed NSEC/NSEC3 proof to be SECURE; the
            proof's coverage of qname is not checked.
        """

        if not self._anchors:
            return INSECURE
        try:
            final, hops = collect_answer_chain(msg, qname, rdtype)
            if final is not None:
                for rrset in hops:
                    sig = _find_sig(msg.answer, rrset)
                    if sig is None:
                        zone_status = self._enclosing_zone_status(rrset.name)
                        return BOGUS if zone_status == SECURE else zone_status
                    signer = sig[0].signer
                    if not rrset.name.is_subdomain(signer):
                        return BOGUS
                    status, keys = self.zone_keys(signer)
                    if status != SECURE:
                        return status
                    dns.dnssec.validate(rrset, sig, {signer: keys})
                return SECURE

            if msg.rcode() not in (dns.rcode.NOERROR, dns.rcode.NXDOMAIN):
                return INSECURE
            status = self._validate_signed_section(msg.authority)
            if status == INSECURE:
                zone_status = self._enclosing_zone_status(qname)
                return BOGUS if zone_status == SECURE else zone_status
            if status == SECURE and not any(
                rrset.rdtype in (dns.rdatatype.NSEC, dns.rdatatype.NSEC3)
                for rrset in msg.authority
            ):
                return BOGUS
            return status
        except dns.dnssec.ValidationFailure as e:
            logger.debug("Signature check for %s failed: %s", qname, e)
            return BOGUS
        except Exception as e:
            logger.debug("DNSSEC classification of %s failed: %s", qname, e)
            return BOGUS
