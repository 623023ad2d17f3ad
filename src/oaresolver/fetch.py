"""Parallel record fetches across several domains."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from typing import List, Optional, Sequence

from .errors import ResolverUnavailable
from .records import RecordResult, RecordType
from .resolver import DNSResolver

logger = logging.getLogger("oaresolver.fetch")

_POOL: Optional[ThreadPoolExecutor] = None
_POOL_LOCK = threading.Lock()


def get_threadpool(max_workers: Optional[int] = None) -> ThreadPoolExecutor:
    """
    Get or create the process-wide fetch thread pool.

    Inputs:
      - max_workers: Pool size used only when the pool is first created.
    Outputs:
      - ThreadPoolExecutor instance
    """
    global _POOL
    with _POOL_LOCK:
        if _POOL is None:
            _POOL = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="oaresolver-fetch"
            )
        return _POOL


def shutdown_threadpool() -> None:
    global _POOL
    with _POOL_LOCK:
        pool, _POOL = _POOL, None
    if pool is not None:
        pool.shutdown(wait=True)


class RecordFetcher:
    """
    Brief: Dispatch one lookup per domain and collect results in input order.

    Inputs:
      - resolver: DNSResolver (defaults to DNSResolver.instance()).
      - executor: concurrent.futures.Executor (defaults to the shared pool).

    Outputs:
      - Instance exposing fetch_one() and fetch_many().
    """

    def __init__(
        self,
        resolver: Optional[DNSResolver] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._resolver = resolver
        self._executor = executor

    @property
    def resolver(self) -> DNSResolver:
        if self._resolver is None:
            self._resolver = DNSResolver.instance()
        return self._resolver

    def fetch_one(self, domain: str, rdtype=RecordType.TXT) -> RecordResult:
        return self.resolver.resolve(domain, rdtype)

    def _fetch_guarded(self, domain: str, rdtype) -> RecordResult:
        try:
            return self.fetch_one(domain, rdtype)
        except ResolverUnavailable:
            raise
        except Exception as e:
            logger.warning("Lookup for %s failed: %s", domain, e)
            return RecordResult.empty()

    def fetch_many(
        self, domains: Sequence[str], rdtype=RecordType.TXT
    ) -> List[RecordResult]:
        """
        Brief: Look up every domain concurrently.

        Inputs:
          - domains: Domain names.
          - rdtype: Record type for every lookup (TXT).

        Outputs:
          - list[RecordResult] index-aligned with domains. A failed lookup
            yields an empty result with both DNSSEC flags false.

        Raises:
          - ResolverUnavailable: when the resolver has no usable context.

        All lookups are submitted before any is awaited.
        """
        if not domains:
            return []
        resolver = self.resolver
        if not resolver.available:
            raise ResolverUnavailable("validating resolver context is unavailable")
        executor = self._executor or get_threadpool()
        futures = [executor.submit(self._fetch_guarded, d, rdtype) for d in domains]
        wait(futures)
        return [f.result() for f in futures]
