"""Brief: Tests for the parallel fetch orchestrator.

Inputs:
  - None

Outputs:
  - None (pytest assertions)
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from conftest import FakeResolver, valid

from oaresolver import fetch
from oaresolver.errors import ResolverUnavailable
from oaresolver.fetch import RecordFetcher
from oaresolver.records import RecordResult, RecordType


class _RecordingExecutor:
    """Brief: Executor wrapper counting submissions."""

    def __init__(self, inner):
        self.inner = inner
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        return self.inner.submit(fn, *args, **kwargs)


def test_fetch_one_delegates():
    resolver = FakeResolver({"a.example": valid("X")})
    out = RecordFetcher(resolver).fetch_one("a.example", RecordType.A)
    assert out == valid("X")
    assert resolver.calls == [("a.example", RecordType.A)]


def test_fetch_many_empty_does_not_touch_executor():
    executor = _RecordingExecutor(None)
    assert RecordFetcher(FakeResolver(), executor).fetch_many([]) == []
    assert executor.submitted == 0


def test_fetch_many_preserves_input_order_when_completion_reversed():
    """Brief: The second domain finishes first; output still follows input."""
    first_gate = threading.Event()
    resolver = FakeResolver(
        {"first.example": valid("1"), "second.example": valid("2")},
        delays={"first.example": first_gate},
    )
    done_order = []
    orig_resolve = resolver.resolve

    def resolve(name, rdtype=None):
        out = orig_resolve(name, rdtype)
        done_order.append(name)
        if name == "second.example":
            first_gate.set()
        return out

    resolver.resolve = resolve
    with ThreadPoolExecutor(max_workers=2) as pool:
        executor = _RecordingExecutor(pool)
        results = RecordFetcher(resolver, executor).fetch_many(
            ["first.example", "second.example"]
        )
    assert done_order == ["second.example", "first.example"]
    assert results == [valid("1"), valid("2")]
    assert executor.submitted == 2


def test_fetch_many_failure_does_not_abort_siblings():
    resolver = FakeResolver(
        {"ok.example": valid("X")},
        errors={"bad.example": RuntimeError("boom")},
    )
    with ThreadPoolExecutor(max_workers=2) as pool:
        results = RecordFetcher(resolver, pool).fetch_many(["bad.example", "ok.example"])
    assert results == [RecordResult.empty(), valid("X")]
    assert results[0].dnssec_available is False
    assert results[0].dnssec_valid is False


def test_fetch_many_uses_shared_pool_by_default():
    resolver = FakeResolver({"a.example": valid("X")})
    results = RecordFetcher(resolver).fetch_many(["a.example", "b.example"])
    assert results == [valid("X"), RecordResult.empty()]
    assert fetch.get_threadpool() is fetch.get_threadpool()


def test_fetch_many_unavailable_resolver_raises():
    resolver = FakeResolver()
    resolver.available = False
    with pytest.raises(ResolverUnavailable):
        RecordFetcher(resolver).fetch_many(["a.example"])
