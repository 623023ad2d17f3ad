"""oaresolver package"""

from .consensus import records_match, select_records
from .errors import (
    AddressNotFound,
    ConfigurationError,
    OAResolverError,
    ResolverUnavailable,
    TransportError,
)
from .fetch import RecordFetcher
from .openalias import (
    AddressKind,
    address_from_txt_record,
    address_kind,
    addresses_from_url,
    get_account_address_as_str_from_url,
    get_dns_format_from_oa_address,
    load_txt_records_from_dns,
)
from .records import RecordQuery, RecordResult, RecordType
from .resolver import DNSResolver

__all__ = [
    "AddressKind",
    "AddressNotFound",
    "ConfigurationError",
    "DNSResolver",
    "OAResolverError",
    "RecordFetcher",
    "RecordQuery",
    "RecordResult",
    "RecordType",
    "ResolverUnavailable",
    "TransportError",
    "address_from_txt_record",
    "address_kind",
    "addresses_from_url",
    "get_account_address_as_str_from_url",
    "get_dns_format_from_oa_address",
    "load_txt_records_from_dns",
    "records_match",
    "select_records",
]
