"""OpenAlias resolution: alias normalization, address extraction and the
update-record quorum lookup.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import Executor
from typing import Any, Callable, List, Optional, Sequence, Tuple

from . import consensus
from .errors import AddressNotFound
from .fetch import RecordFetcher
from .records import RecordType
from .resolver import DNSResolver

logger = logging.getLogger("oaresolver.openalias")

STANDARD_ADDRESS_LENGTH = 95
INTEGRATED_ADDRESS_LENGTH = 106

_RECIPIENT_KEY = "recipient_address="

ConfirmCallback = Callable[[str, List[str], bool], Any]


class AddressKind(enum.Enum):
    STANDARD = "standard"
    INTEGRATED = "integrated"


def address_kind(address: str) -> Optional[AddressKind]:
    """Classify an address token by its length; None for any other length."""
    if len(address) == STANDARD_ADDRESS_LENGTH:
        return AddressKind.STANDARD
    if len(address) == INTEGRATED_ADDRESS_LENGTH:
        return AddressKind.INTEGRATED
    return None


def get_dns_format_from_oa_address(alias: str) -> str:
    """
    Brief: Convert name@domain.tld to name.domain.tld.

    Inputs:
      - alias: OpenAlias address.

    Outputs:
      - str with the first '@' replaced by '.'; unchanged when there is none.

    Example:
      >>> get_dns_format_from_oa_address("donate@example.org")
      'donate.example.org'
    """
    return alias.replace("@", ".", 1)


def address_from_txt_record(text: str, asset: str = "xmr") -> Optional[str]:
    """
    Brief: Extract the recipient address from an OpenAlias TXT record.

    Inputs:
      - text: Decoded TXT record.
      - asset: Asset tag following 'oa1:'.

    Outputs:
      - The 95-character standard or 106-character integrated address, or
        None when the marker, the key or the terminating ';' is missing, or
        the value has any other length.
    """
    pos = text.find(f"oa1:{asset}")
    if pos < 0:
        return None
    pos = text.find(_RECIPIENT_KEY, pos)
    if pos < 0:
        return None
    pos += len(_RECIPIENT_KEY)
    end = text.find(";", pos)
    if end < 0:
        return None
    candidate = text[pos:end]
    if address_kind(candidate) is None:
        return None
    return candidate


def addresses_from_url(
    url: str,
    resolver: Optional[DNSResolver] = None,
    *,
    asset: str = "xmr",
) -> Tuple[List[str], bool]:
    """
    Brief: Resolve an OpenAlias to its addresses.

    Inputs:
      - url: 'name@domain.tld' or 'name.domain.tld'.
      - resolver: DNSResolver (defaults to DNSResolver.instance()).
      - asset: Asset tag to look for.

    Outputs:
      - (addresses, dnssec_valid): addresses in TXT record order, duplicates
        kept; dnssec_valid is True only when DNSSEC was available and valid.
    """
    resolver = resolver or DNSResolver.instance()
    oa_addr = get_dns_format_from_oa_address(url)
    result = resolver.resolve(oa_addr, RecordType.TXT)
    dnssec_valid = result.dnssec_available and result.dnssec_valid

    addresses = []
    for record in result.records:
        addr = address_from_txt_record(record, asset)
        if addr:
            addresses.append(addr)
    if not addresses:
        logger.info("No %s address found in TXT records for %s", asset, oa_addr)
    return addresses, dnssec_valid


def get_account_address_as_str_from_url(
    url: str,
    dns_confirm: ConfirmCallback,
    resolver: Optional[DNSResolver] = None,
    *,
    asset: str = "xmr",
):
    """
    Brief: Resolve an alias and let the caller confirm the result.

    Inputs:
      - url: OpenAlias address.
      - dns_confirm: Callable(url, addresses, dnssec_valid) deciding what to
        return; it owns the policy for invalid DNSSEC.
      - resolver: Optional DNSResolver.
      - asset: Asset tag.

    Outputs:
      - Whatever dns_confirm returns.

    Raises:
      - AddressNotFound: when no address was found.
    """
    addresses, dnssec_valid = addresses_from_url(url, resolver, asset=asset)
    if not addresses:
        logger.error("wrong address: %s", url)
        raise AddressNotFound(url)
    return dns_confirm(url, addresses, dnssec_valid)


def load_txt_records_from_dns(
    dns_urls: Sequence[str],
    resolver: Optional[DNSResolver] = None,
    executor: Optional[Executor] = None,
    rng=None,
) -> Tuple[List[str], bool]:
    """
    Brief: Fetch TXT records from every domain and keep the agreed set.

    Inputs:
      - dns_urls: Domains publishing the same records.
      - resolver / executor: Optional collaborators for the fetch.
      - rng: Optional random source for the consensus scan start.

    Outputs:
      - (records, ok): ok is False (and records empty) when no domains were
        given, nothing validated or no two domains agreed.
    """
    if not dns_urls:
        return [], False
    fetcher = RecordFetcher(resolver, executor)
    results = fetcher.fetch_many(dns_urls, RecordType.TXT)
    chosen = consensus.select_records(dns_urls, results, rng=rng)
    if chosen is None:
        return [], False
    return chosen, True
