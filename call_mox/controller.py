"""CallMox controller owning mocks, global ordering and scopes."""

from __future__ import annotations

import contextlib
import dataclasses as dc
import enum
import logging
import types  # noqa: TC003
import typing as t
from collections import deque

from .errors import ConfigurationError, LifecycleError, VerificationFailedError
from .ordering import OrderingContext, OrderScope
from .test_doubles import MockDouble

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import CallRecord

logger = logging.getLogger(__name__)


class Phase(enum.StrEnum):
    """Lifecycle phases for :class:`CallMox`."""

    ACTIVE = "ACTIVE"
    VERIFIED = "VERIFIED"


@dc.dataclass(slots=True)
class _ScopeFrame:
    """Mocks affected by one :meth:`CallMox.scope` block."""

    layered: list[MockDouble]
    created: list[MockDouble] = dc.field(default_factory=list)


class CallMox:
    """Container for the mocks of one test.

    All mocks created through :meth:`mock` share the controller's global
    :class:`~call_mox.ordering.OrderingContext` and call journal, so
    ``globally().ordered()`` expectations are checked across mocks.
    """

    def __init__(
        self,
        *,
        verify_on_exit: bool = True,
        max_journal_entries: int | None = None,
    ) -> None:
        """Create a new controller.

        Parameters
        ----------
        verify_on_exit:
            When ``True`` (the default), :meth:`__exit__` calls :meth:`verify`
            unless the block raised.
        max_journal_entries:
            Maximum number of calls retained in the cross-mock journal. When
            ``None`` the journal is unbounded; older entries are discarded
            once the limit is exceeded.
        """
        if max_journal_entries is not None and max_journal_entries <= 0:
            msg = "max_journal_entries must be positive"
            raise ConfigurationError(msg)
        self._verify_on_exit = verify_on_exit
        self._phase = Phase.ACTIVE
        self.global_ordering = OrderingContext(OrderScope.GLOBAL)
        self.journal: deque[CallRecord] = deque(maxlen=max_journal_entries)
        self._mocks: dict[str, MockDouble] = {}
        self._frames: list[_ScopeFrame] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def phase(self) -> Phase:
        """Return the current lifecycle phase."""
        return self._phase

    @property
    def mocks(self) -> dict[str, MockDouble]:
        """Return the live mocks keyed by name."""
        return dict(self._mocks)

    def require_active(self, action: str) -> None:
        """Raise :class:`LifecycleError` once the controller was verified."""
        if self._phase is not Phase.ACTIVE:
            msg = (
                f"Cannot call {action}(): not in 'active' phase "
                f"(current phase: {self._phase.name.lower()})"
            )
            raise LifecycleError(msg)

    # ------------------------------------------------------------------
    # Context manager protocol
    # ------------------------------------------------------------------
    def __enter__(self) -> CallMox:
        """Return the controller itself."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Verify on exit when enabled; never mask an in-flight exception."""
        if not self._verify_on_exit or self._phase is not Phase.ACTIVE:
            return
        try:
            self.verify()
        except VerificationFailedError:
            if exc_type is None:
                raise
            logger.debug(
                "Suppressed verification failure while %s propagates", exc_type
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def mock(self, name: str, target: object | None = None) -> MockDouble:
        """Create or retrieve the mock called *name*.

        *target* supplies the originals used by ``pass_thru``; it is only
        inspected, never modified.
        """
        self.require_active("mock")
        existing = self._mocks.get(name)
        if existing is not None:
            if target is not None and existing.target is not target:
                msg = f"mock {name!r} is already registered with another target"
                raise ConfigurationError(msg)
            return existing
        double = MockDouble(
            name,
            global_ordering=self.global_ordering,
            journal=self.journal,
            target=target,
            controller=self,
        )
        self._mocks[name] = double
        if self._frames:
            self._frames[-1].created.append(double)
        logger.debug("Created mock %r", name)
        return double

    @contextlib.contextmanager
    def scope(self) -> t.Iterator[CallMox]:
        """Open a nested scope for additional expectations.

        Expectations registered inside the block take precedence over outer
        ones for the same method and are verified when the block exits;
        mocks created inside the block are discarded with it.
        """
        self.require_active("scope")
        frame = _ScopeFrame(layered=list(self._mocks.values()))
        for double in frame.layered:
            double.push_layer()
        self._frames.append(frame)
        logger.debug("Entered scope %d", len(self._frames))
        try:
            yield self
        except BaseException:
            self._close_scope(frame, verify=False)
            raise
        self._close_scope(frame, verify=True)

    def _close_scope(self, frame: _ScopeFrame, *, verify: bool) -> None:
        if not self._frames or self._frames[-1] is not frame:
            msg = "scopes must be closed in the reverse order they were opened"
            raise LifecycleError(msg)
        self._frames.pop()
        failures: list[VerificationFailedError] = []
        for double in reversed(frame.created):
            del self._mocks[double.name]
            if verify:
                try:
                    double.verify()
                except VerificationFailedError as err:
                    failures.append(err)
        for double in reversed(frame.layered):
            try:
                double.pop_layer(verify=verify)
            except VerificationFailedError as err:
                failures.append(err)
        logger.debug("Left scope %d", len(self._frames) + 1)
        if failures:
            raise VerificationFailedError.combine(failures)

    def verify(self) -> None:
        """Verify every mock, most recently created first.

        Raises
        ------
        LifecycleError
            When called twice or while a scope is still open.
        VerificationFailedError
            Aggregating the failures of every mock.
        """
        self.require_active("verify")
        if self._frames:
            msg = f"Cannot call verify(): {len(self._frames)} scope(s) still open"
            raise LifecycleError(msg)
        failures: list[VerificationFailedError] = []
        try:
            for double in reversed(list(self._mocks.values())):
                try:
                    double.verify()
                except VerificationFailedError as err:
                    failures.append(err)
        finally:
            self._phase = Phase.VERIFIED
        logger.debug(
            "Verified %d mock(s), %d failure(s)", len(self._mocks), len(failures)
        )
        if failures:
            raise VerificationFailedError.combine(failures)


__all__ = ["CallMox", "Phase"]
