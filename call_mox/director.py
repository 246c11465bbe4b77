"""Routing of calls on one mock method to its registered expectations."""

from __future__ import annotations

import logging
import typing as t

from .call_record import CallRecord
from .errors import CheckFailedError, UsageError, VerificationFailedError
from .expectations import Expectation
from .formatting import in_mock

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import Call
    from .ordering import OrderingContext

logger = logging.getLogger(__name__)


class DirectorOwner(t.Protocol):
    """State a director borrows from the mock that owns it."""

    name: str
    ordering: OrderingContext
    global_ordering: OrderingContext

    @property
    def calls(self) -> t.Sequence[CallRecord]:
        """Calls received by the owning mock."""
        ...

    @property
    def journal(self) -> t.Sequence[CallRecord]:
        """Calls received by every mock sharing the global ordering."""
        ...

    def record_call(self, record: CallRecord) -> None:
        """Append *record* to the owner's history."""
        ...


def no_match_message(
    mock_name: str, call: Call, expectations: t.Iterable[Expectation]
) -> str:
    """Describe a call that no expectation accepted."""
    descriptions = [exp.description for exp in expectations] or ["(none)"]
    return in_mock(
        mock_name,
        f"no matching handler found for {call.describe()}"
        "\nDefined expectations:\n  " + "\n  ".join(descriptions),
    )


class ExpectationDirector:
    """Select, invoke and verify the expectations of one method.

    Expectations are tried strictly in registration order: the first one that
    accepts the arguments and still allows another call wins, regardless of
    how specific later expectations are. Default expectations are consulted
    only while no regular expectation exists.
    """

    def __init__(self, method_name: str, owner: DirectorOwner) -> None:
        self.method_name = method_name
        self.owner = owner
        self._expectations: list[Expectation] = []
        self._defaults: list[Expectation] = []

    @property
    def expectations(self) -> tuple[Expectation, ...]:
        """Return the regular expectations in registration order."""
        return tuple(self._expectations)

    @property
    def defaults(self) -> tuple[Expectation, ...]:
        """Return the default expectations in registration order."""
        return tuple(self._defaults)

    def new_expectation(self) -> Expectation:
        """Create and register an expectation for this method."""
        expectation = Expectation(self, self.method_name)
        self.register(expectation)
        return expectation

    def register(self, expectation: Expectation) -> None:
        """Append *expectation* to the regular expectations."""
        self._expectations.append(expectation)
        logger.debug(
            "Registered expectation %s on mock %r",
            expectation.method_name,
            self.owner.name,
        )

    def defaultify(self, expectation: Expectation) -> None:
        """Move the most recent expectation into the default list.

        Raises
        ------
        UsageError
            When *expectation* is not the last registered expectation.
        """
        if not self._expectations or self._expectations[-1] is not expectation:
            msg = "Cannot make a previously defined expectation into a default"
            raise UsageError(msg)
        self._expectations.pop()
        expectation.is_default = True
        self._defaults.append(expectation)

    def _candidates(self) -> list[Expectation]:
        return self._expectations or self._defaults

    def matching(self, call: Call) -> list[Expectation]:
        """Return the active expectations accepting *call*'s arguments."""
        return [exp for exp in self._candidates() if exp.match_args(call)]

    def find_expectation(self, call: Call) -> Expectation | None:
        """Return the expectation that should serve *call*.

        Prefers the first matching expectation that is still eligible; falls
        back to the first matching one so that its count failure is reported.
        """
        matching = self.matching(call)
        return next((exp for exp in matching if exp.eligible), None) or next(
            iter(matching), None
        )

    def dispatch(self, call: Call) -> object:
        """Serve *call* and return the response of the selected expectation.

        Raises
        ------
        CheckFailedError
            When no expectation matches, or the selected one rejects the call.
        """
        expectation = self.find_expectation(call)
        self.owner.record_call(CallRecord.from_call(call, expectation))
        if expectation is None:
            raise CheckFailedError(
                no_match_message(
                    self.owner.name, call, [*self._expectations, *self._defaults]
                )
            )
        logger.debug(
            "Mock %r dispatching %s to %s",
            self.owner.name,
            call.describe(),
            expectation.description,
        )
        return expectation.verify_call(call)

    def verify(self) -> None:
        """Check the call counts of every active expectation.

        Raises
        ------
        VerificationFailedError
            Aggregating each unsatisfied expectation.
        """
        failures: list[VerificationFailedError] = []
        for expectation in self._candidates():
            try:
                expectation.verify()
            except VerificationFailedError as err:
                failures.append(err)
        if failures:
            raise VerificationFailedError.combine(failures)


__all__ = ["DirectorOwner", "ExpectationDirector", "no_match_message"]
