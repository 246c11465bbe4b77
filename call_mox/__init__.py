"""Expectation matching and call dispatch for Python test doubles.

Register expectations on a mock, make calls through its proxy and let the
controller verify call counts when the test finishes::

    with CallMox() as mox:
        db = mox.mock("db")
        db.should_receive("fetch").with_args("key").and_return(1).once()
        assert db.proxy.fetch("key") == 1
"""

from __future__ import annotations

from .call_record import Block, Call, CallRecord
from .comparators import (
    ANY,
    MISSING,
    Any,
    DuckType,
    Eq,
    HashSubset,
    IsA,
    Matcher,
    Predicate,
    Regex,
)
from .controller import CallMox, Phase
from .errors import (
    CallMoxError,
    CheckFailedError,
    ConfigurationError,
    LifecycleError,
    SpyAssertionError,
    Thrown,
    UsageError,
    VerificationFailedError,
)
from .expectations import CompositeExpectation, Expectation
from .pytest_plugin import call_mox as call_mox_fixture
from .responses import UNDEFINED, catch
from .signature import SignatureValidator
from .spies import ANY_ARGS, assert_spy_called, assert_spy_not_called
from .test_doubles import MockDouble, MockProxy

__all__ = [
    "ANY",
    "ANY_ARGS",
    "MISSING",
    "UNDEFINED",
    "Any",
    "Block",
    "Call",
    "CallMox",
    "CallMoxError",
    "CallRecord",
    "CheckFailedError",
    "CompositeExpectation",
    "ConfigurationError",
    "DuckType",
    "Eq",
    "Expectation",
    "HashSubset",
    "IsA",
    "LifecycleError",
    "Matcher",
    "MockDouble",
    "MockProxy",
    "Phase",
    "Predicate",
    "Regex",
    "SignatureValidator",
    "SpyAssertionError",
    "Thrown",
    "UsageError",
    "VerificationFailedError",
    "assert_spy_called",
    "assert_spy_not_called",
    "call_mox_fixture",
    "catch",
]
