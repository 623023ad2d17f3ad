"""Brief: Tests for DS trust anchor parsing and DS/DNSKEY matching.

Inputs:
  - None

Outputs:
  - None (pytest assertions)
"""

import dns.dnssec
import dns.name
import dns.rdatatype
import pytest
from signed_zones import make_key

from oaresolver.dnssec.trust_anchors import (
    BUILTIN_DS_ANCHORS,
    anchored_keys,
    builtin_anchors,
    ds_matches_dnskey,
    parse_ds_anchor,
)


def test_builtin_root_anchor_parses():
    """
    Brief: The shipped root DS anchor parses to KSK-2017.

    Inputs:
      - None

    Outputs:
      - None: Asserts owner, key tag, algorithm and digest type
    """
    (rrset,) = builtin_anchors()
    assert rrset.name == dns.name.root
    assert rrset.rdtype == dns.rdatatype.DS
    (ds,) = list(rrset)
    assert ds.key_tag == 20326
    assert int(ds.algorithm) == 8
    assert ds.digest_type == 2
    assert ds.digest.hex().upper() == BUILTIN_DS_ANCHORS[0].split()[-1]


def test_parse_ds_anchor_accepts_ttl():
    rrset = parse_ds_anchor("example.org. 3600 IN DS 12345 13 2 " + "AB" * 32)
    assert rrset.name == dns.name.from_text("example.org.")
    assert list(rrset)[0].key_tag == 12345


@pytest.mark.parametrize(
    "text",
    [
        "",
        ". IN DNSKEY 257 3 8 AwEAAa==",
        "DS 20326 8 2 E06D",
        ". IN DS not-a-number 8 2 E06D",
    ],
)
def test_parse_ds_anchor_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_ds_anchor(text)


def test_ds_matches_only_its_own_dnskey():
    """
    Brief: A DS computed for one key matches that key and no other.

    Inputs:
      - Two freshly generated ed25519 DNSKEYs

    Outputs:
      - None: Asserts match/mismatch and anchored_keys filtering
    """
    owner = dns.name.from_text("example.org.")
    _, key_a = make_key()
    _, key_b = make_key()
    ds = dns.dnssec.make_ds(owner, key_a, "SHA256")
    anchor = parse_ds_anchor(f"example.org. IN DS {ds.to_text()}")

    assert ds_matches_dnskey(owner, anchor, key_a) is True
    assert ds_matches_dnskey(owner, anchor, key_b) is False
    assert anchored_keys(owner, anchor, [key_b, key_a]) == [key_a]


def test_ds_with_unknown_digest_type_never_matches():
    owner = dns.name.from_text("example.org.")
    _, key = make_key()
    anchor = parse_ds_anchor("example.org. IN DS 1 15 99 ABCD")
    assert ds_matches_dnskey(owner, anchor, key) is False
