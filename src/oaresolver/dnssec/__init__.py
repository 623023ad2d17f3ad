"""DNSSEC validation engine: trust anchors, chain validation and the resolver context."""

from .context import ResolveResult, ValidatingContext
from .dnssec_validate import BOGUS, INSECURE, SECURE, ChainValidator
from .trust_anchors import BUILTIN_DS_ANCHORS

__all__ = [
    "BOGUS",
    "BUILTIN_DS_ANCHORS",
    "ChainValidator",
    "INSECURE",
    "ResolveResult",
    "SECURE",
    "ValidatingContext",
]
