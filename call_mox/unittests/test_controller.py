"""Unit tests for :mod:`call_mox.controller`."""

from __future__ import annotations

import pytest

from call_mox import (
    ANY_ARGS,
    Block,
    CallMox,
    CheckFailedError,
    ConfigurationError,
    LifecycleError,
    Phase,
    SpyAssertionError,
    VerificationFailedError,
    assert_spy_called,
    assert_spy_not_called,
)


class TestLifecycle:
    """Phases and the context-manager protocol."""

    def test_verify_moves_to_verified(self) -> None:
        """A successful verify ends the active phase."""
        mox = CallMox()
        assert mox.phase is Phase.ACTIVE
        mox.verify()
        assert mox.phase is Phase.VERIFIED
        with pytest.raises(LifecycleError):
            mox.verify()
        with pytest.raises(LifecycleError):
            mox.mock("late")

    def test_registration_after_verify_fails(self) -> None:
        """Existing mocks cannot gain expectations once verified."""
        mox = CallMox()
        db = mox.mock("db")
        mox.verify()
        with pytest.raises(LifecycleError):
            db.should_receive("query")

    def test_exit_verifies(self) -> None:
        """Leaving the block verifies every mock."""
        with pytest.raises(VerificationFailedError), CallMox() as mox:
            mox.mock("db").should_receive("query").once()

    def test_exit_does_not_mask_errors(self) -> None:
        """The in-flight exception wins over verification failures."""
        with pytest.raises(KeyError), CallMox() as mox:
            mox.mock("db").should_receive("query").once()
            raise KeyError

    def test_verify_on_exit_can_be_disabled(self) -> None:
        """Explicit verification mode skips the automatic check."""
        with CallMox(verify_on_exit=False) as mox:
            mox.mock("db").should_receive("query").once()
        assert mox.phase is Phase.ACTIVE

    def test_mock_is_reused_by_name(self) -> None:
        """Registering the same name twice returns the same mock."""
        mox = CallMox()
        assert mox.mock("db") is mox.mock("db")
        with pytest.raises(ConfigurationError):
            mox.mock("db", target=object())

    def test_journal_limit(self) -> None:
        """The cross-mock journal keeps the newest entries."""
        mox = CallMox(max_journal_entries=2)
        first, second = mox.mock("first"), mox.mock("second")
        first.should_receive("a")
        second.should_receive("b")
        first.proxy.a(1)
        second.proxy.b(2)
        first.proxy.a(3)
        assert [record.args for record in mox.journal] == [(2,), (3,)]
        assert len(first.calls) == 2
        with pytest.raises(ConfigurationError):
            CallMox(max_journal_entries=0)

    def test_failures_from_all_mocks_are_reported(self) -> None:
        """Verification aggregates mocks, most recent first."""
        mox = CallMox()
        mox.mock("first").should_receive("a").once()
        mox.mock("second").should_receive("b").once()
        with pytest.raises(VerificationFailedError) as exc:
            mox.verify()
        failures = exc.value.failures
        assert len(failures) == 2
        assert failures[0].startswith("in mock 'second'")
        assert failures[1].startswith("in mock 'first'")


class TestScopes:
    """Nested expectation scopes."""

    def test_inner_expectations_take_precedence(self) -> None:
        """Inner scopes are consulted first and discarded on exit."""
        mox = CallMox()
        db = mox.mock("db")
        db.should_receive("query").and_return("outer")
        with mox.scope():
            db.should_receive("query").and_return("inner")
            assert db.proxy.query() == "inner"
        assert db.proxy.query() == "outer"
        mox.verify()

    def test_unregistered_methods_fall_through(self) -> None:
        """Methods unknown to the inner scope use the outer director."""
        mox = CallMox()
        db = mox.mock("db")
        db.should_receive("close").and_return("closed")
        with mox.scope():
            db.should_receive("query")
            assert db.proxy.close() == "closed"

    def test_inner_mismatch_falls_through(self) -> None:
        """A call the inner scope rejects is served by an outer expectation."""
        mox = CallMox(verify_on_exit=False)
        db = mox.mock("db")
        db.should_receive("query").with_args(1).and_return("outer")
        with mox.scope():
            db.should_receive("query").with_args(2).and_return("inner")
            assert db.proxy.query(1) == "outer"
            assert db.proxy.query(2) == "inner"

    def test_scoped_expectations_are_added_to_outer_ones(self) -> None:
        """Both layers' expectations are satisfied from inside the scope."""
        mox = CallMox()
        obj = mox.mock("obj")
        obj.should_receive("foo").with_args(10).once()
        with mox.scope():
            obj.should_receive("foo").with_args(20).once()
            obj.proxy.foo(10)
            obj.proxy.foo(20)
        mox.verify()

    def test_exhausted_inner_expectation_yields_to_outer(self) -> None:
        """An eligible outer expectation beats an exhausted inner one."""
        mox = CallMox(verify_on_exit=False)
        db = mox.mock("db")
        db.should_receive("query").and_return("outer")
        with mox.scope():
            db.should_receive("query").and_return("inner").once()
            assert [db.proxy.query(), db.proxy.query()] == ["inner", "outer"]

    def test_unmatched_call_lists_every_layer(self) -> None:
        """The no-match message names expectations from all scopes."""
        mox = CallMox(verify_on_exit=False)
        obj = mox.mock("obj")
        obj.should_receive("foo").with_args(10).once()
        with mox.scope():
            obj.should_receive("foo").with_args(20)
            with pytest.raises(CheckFailedError) as exc:
                obj.proxy.foo(30)
        assert str(exc.value) == (
            "in mock 'obj': no matching handler found for foo(30)\n"
            "Defined expectations:\n"
            "  foo(20)\n"
            "  foo(10).once"
        )

    def test_scope_exit_verifies_inner_layer(self) -> None:
        """Unsatisfied inner expectations fail when the scope closes."""
        mox = CallMox(verify_on_exit=False)
        db = mox.mock("db")
        with pytest.raises(VerificationFailedError), mox.scope():
            db.should_receive("query").once()
        assert db.depth == 1

    def test_mocks_created_in_scope_are_discarded(self) -> None:
        """Scope-local mocks are verified and removed on exit."""
        mox = CallMox()
        with mox.scope():
            cache = mox.mock("cache")
            cache.should_receive("get").and_return(1)
            assert cache.proxy.get() == 1
        assert "cache" not in mox.mocks

    def test_verify_requires_closed_scopes(self) -> None:
        """Verification is refused while a scope is open."""
        mox = CallMox(verify_on_exit=False)
        with mox.scope(), pytest.raises(LifecycleError):
            mox.verify()


class TestRecorder:
    """Record mode."""

    def test_recorded_calls_become_expectations(self) -> None:
        """Calls on the recorder register matching expectations."""
        mox = CallMox()
        db = mox.mock("db")
        with db.should_expect() as rec:
            rec.fetch("key", Block(lambda key: key.upper()))
            rec.close().once()
        assert db.proxy.fetch("key") == "KEY"
        db.proxy.close()
        mox.verify()

    def test_recording_checks_arguments(self) -> None:
        """Recorded arguments are matched."""
        db = CallMox(verify_on_exit=False).mock("db")
        db.should_expect().f(1)
        with pytest.raises(CheckFailedError):
            db.proxy.f(2)

    def test_strict_mode_uses_equality(self) -> None:
        """Strict recording compares arguments by equality."""
        db = CallMox(verify_on_exit=False).mock("db")
        rec = db.should_expect().should_be_strict()
        rec.f(int)
        with pytest.raises(CheckFailedError):
            db.proxy.f(3)
        assert db.proxy.f(int) is None

    def test_strict_mode_requires_order(self) -> None:
        """Strict recording orders the recorded calls."""
        db = CallMox(verify_on_exit=False).mock("db")
        rec = db.should_expect().should_be_strict()
        rec.f()
        rec.g()
        db.proxy.g()
        with pytest.raises(CheckFailedError, match="called out of order"):
            db.proxy.f()


class TestSpies:
    """Spy assertions over received calls."""

    def test_called_and_not_called(self) -> None:
        """Matching calls satisfy the assertions."""
        mox = CallMox()
        spy = mox.mock("spy")
        spy.should_receive("foo")
        spy.proxy.foo(1, 2)
        spy.proxy.foo(Block(print))
        assert_spy_called(spy, "foo", 1, 2)
        assert_spy_called(spy, "foo", ANY_ARGS, times=2)
        assert_spy_called(spy, "foo", with_block=True)
        assert_spy_not_called(spy, "foo", 1, 3)

    def test_failure_lists_received_calls(self) -> None:
        """The failure message lists what was received."""
        spy = CallMox().mock("spy")
        spy.should_receive("foo")
        spy.proxy.foo(1, 2)
        with pytest.raises(SpyAssertionError) as exc:
            assert_spy_called(spy, "foo", 1, 3)
        message = str(exc.value)
        assert message.startswith("expected foo(1, 3) to be received by mock 'spy'")
        assert "The following messages have been received:" in message
        assert "1. foo(1, 2) matched by foo(*args, **kwargs)" in message

    def test_failure_without_calls(self) -> None:
        """An untouched spy says so."""
        spy = CallMox().mock("spy")
        with pytest.raises(SpyAssertionError, match="No messages have been received"):
            assert_spy_called(spy, "foo", times=3)

    def test_negative_failure(self) -> None:
        """``assert_spy_not_called`` fails for matching calls."""
        spy = CallMox().mock("spy")
        spy.should_receive("foo")
        spy.proxy.foo()
        with pytest.raises(SpyAssertionError, match="to NOT be received"):
            assert_spy_not_called(spy, "foo")
