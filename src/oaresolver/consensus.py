"""Cross-domain agreement over DNSSEC-validated TXT record sets.

A record set is accepted only when two independently operated domains,
each answering with DNSSEC-valid data, publish identical sets. When a single
domain is configured its validated set is accepted on its own.

The pairwise scan stops at the first agreeing pair; it is meant for a small
number of domains (three or fewer) and is not a majority vote.
"""

from __future__ import annotations

import logging
import secrets
from typing import List, Optional, Sequence

from .records import RecordResult

logger = logging.getLogger("oaresolver.consensus")


def records_match(a: Sequence[str], b: Sequence[str]) -> bool:
    """Brief: Order-independent equality of two record lists.

    Inputs:
      - a, b: Decoded record strings.

    Outputs:
      - bool: same length and every record of a is present in b.

    Example:
      >>> records_match(["x", "y"], ["y", "x"])
      True
    """

    if len(a) != len(b):
        return False
    return all(record in b for record in a)


def filter_untrusted(
    domains: Sequence[str], results: Sequence[RecordResult], start: int = 0
) -> List[List[str]]:
    """Brief: Drop the records of every result that is not DNSSEC-valid.

    Inputs:
      - domains: Queried domains, index-aligned with results.
      - results: Fetch results.
      - start: Index the scan begins at (wrapping around).

    Outputs:
      - list of record lists, index-aligned with domains; untrusted entries
        are empty.
    """

    records = [list(r.records) for r in results]
    n = len(records)
    for step in range(n):
        idx = (start + step) % n
        result = results[idx]
        if not result.dnssec_available:
            records[idx] = []
            logger.debug("DNSSEC not available for hostname: %s, skipping.", domains[idx])
        if not result.dnssec_valid:
            records[idx] = []
            logger.debug(
                "DNSSEC validation failed for hostname: %s, skipping.", domains[idx]
            )
    return records


def select_records(
    domains: Sequence[str],
    results: Sequence[RecordResult],
    rng: Optional[secrets.SystemRandom] = None,
) -> Optional[List[str]]:
    """
    Brief: Choose the trusted record set, or None when there is no quorum.

    Inputs:
      - domains: Queried domains.
      - results: RecordResult per domain, index-aligned with domains.
      - rng: Random source for the filter scan start (SystemRandom default).

    Outputs:
      - list[str]: records of the first domain i that has a non-empty set
        equal to that of some later domain j, or the single domain's records
        when exactly one domain was queried.
      - None: nothing passed the DNSSEC filter or no two domains agree.
    """

    if len(domains) != len(results):
        raise ValueError("domains and results must be index-aligned")
    if not domains:
        return None

    rng = rng or secrets.SystemRandom()
    first_index = rng.randrange(len(domains))
    records = filter_untrusted(domains, results, first_index)

    if not any(records):
        logger.info("Unable to find valid DNS record")
        return None

    if len(domains) == 1:
        return records[0]

    for i in range(len(records) - 1):
        if not records[i]:
            continue
        for j in range(i + 1, len(records)):
            if records_match(records[i], records[j]):
                return records[i]

    logger.warning("No two DNS TXT records matched across %s", ", ".join(domains))
    return None
