"""Built-in DNSSEC trust anchors and helpers for matching them to DNSKEYs."""

from __future__ import annotations

import logging
from typing import Iterable, List

import dns.dnssec
import dns.name
import dns.rdataclass
import dns.rdatatype
import dns.rrset

logger = logging.getLogger("oaresolver.dnssec")

# Root zone KSK-2017 delegation signer record.
# Source: https://data.iana.org/root-anchors/root-anchors.xml
# key id 20326, algorithm 8 (RSASHA256), digest type 2 (SHA-256)
BUILTIN_DS_ANCHORS = (
    ". IN DS 20326 8 2 E06D44B80B8F1D39A95C0B0D7C65D08458E880409BBC683457104237C7F8EC8D",
)

_DIGESTS = {
    1: dns.dnssec.DSDigest.SHA1,
    2: dns.dnssec.DSDigest.SHA256,
    4: dns.dnssec.DSDigest.SHA384,
}


def parse_ds_anchor(text: str) -> dns.rrset.RRset:
    """Parse a DS trust anchor in presentation form.

    Inputs:
      - text: e.g. '. IN DS 20326 8 2 E06D...'. A TTL may be present or not.

    Outputs:
      - dns.rrset.RRset of type DS.

    Raises:
      - ValueError: when the text is not a DS record.
    """

    parts = text.strip().split()
    try:
        idx = [p.upper() for p in parts].index("DS")
    except ValueError:
        raise ValueError(f"not a DS trust anchor: {text!r}") from None
    if idx < 1:
        raise ValueError(f"trust anchor has no owner name: {text!r}")
    owner = dns.name.from_text(parts[0])
    rdata_text = " ".join(parts[idx + 1 :])
    try:
        return dns.rrset.from_text_list(
            owner, 0, dns.rdataclass.IN, dns.rdatatype.DS, [rdata_text]
        )
    except Exception as e:
        raise ValueError(f"invalid DS trust anchor {text!r}: {e}") from e


def builtin_anchors() -> List[dns.rrset.RRset]:
    return [parse_ds_anchor(t) for t in BUILTIN_DS_ANCHORS]


def ds_matches_dnskey(
    owner: dns.name.Name, ds_rrset: Iterable, dnskey: dns.rdata.Rdata
) -> bool:
    """Return True when any DS in ds_rrset is the digest of dnskey.

    Inputs:
      - owner: Zone name the DNSKEY belongs to.
      - ds_rrset: DS rdatas (anchors or a delegation DS set).
      - dnskey: Candidate DNSKEY rdata.

    Outputs:
      - bool
    """

    for ds in ds_rrset:
        algorithm = _DIGESTS.get(int(ds.digest_type))
        if algorithm is None:
            continue
        try:
            computed = dns.dnssec.make_ds(owner, dnskey, algorithm)
        except Exception as e:
            logger.debug("make_ds failed for %s: %s", owner, e)
            continue
        if computed.key_tag == ds.key_tag and computed.digest == ds.digest:
            return True
    return False


def anchored_keys(
    owner: dns.name.Name, ds_rrset: Iterable, dnskey_rrset: Iterable
) -> list:
    """Return the DNSKEY rdatas that one of the DS records vouches for."""

    return [k for k in dnskey_rrset if ds_matches_dnskey(owner, ds_rrset, k)]
