"""
Brief: Global pytest configuration: src on sys.path, per-test 10s timeout,
shared fakes for the validating resolver.

Inputs:
  - None

Outputs:
  - None
"""

import os
import signal
import sys

import pytest

# Ensure 'src' is on sys.path so 'oaresolver' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from oaresolver.records import RecordResult  # noqa: E402


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


@pytest.fixture(autouse=True)
def reset_process_singletons():
    """
    Brief: Drop the shared resolver and fetch pool between tests.

    Inputs:
      - None

    Outputs:
      - None
    """
    from oaresolver import fetch
    from oaresolver.resolver import DNSResolver

    yield
    DNSResolver.shutdown_instance()
    fetch.shutdown_threadpool()


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        yield


class FakeResolver:
    """
    Brief: Stand-in for DNSResolver returning canned RecordResults.

    Inputs:
      - answers: mapping name -> RecordResult (missing names -> empty).
      - delays: optional mapping name -> threading.Event to wait on first.

    Outputs:
      - Object with resolve()/available matching DNSResolver.
    """

    def __init__(self, answers=None, delays=None, errors=None):
        self.answers = dict(answers or {})
        self.delays = dict(delays or {})
        self.errors = dict(errors or {})
        self.calls = []
        self.available = True

    def resolve(self, name, rdtype=None):
        self.calls.append((name, rdtype))
        gate = self.delays.get(name)
        if gate is not None:
            gate.wait(5)
        if name in self.errors:
            raise self.errors[name]
        return self.answers.get(name, RecordResult.empty())


def valid(*records):
    return RecordResult(records=tuple(records), dnssec_available=True, dnssec_valid=True)


@pytest.fixture
def fake_resolver_cls():
    return FakeResolver
