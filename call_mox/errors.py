"""Exception hierarchy for call-mox."""

from __future__ import annotations

import typing as t


class CallMoxError(Exception):
    """Base class for all call-mox errors."""


class ConfigurationError(CallMoxError, ValueError):
    """Raised when an expectation or signature is configured incorrectly."""


class UsageError(ConfigurationError):
    """Raised when the fluent expectation API is used in an unsupported way."""


class LifecycleError(CallMoxError):
    """Raised when a controller operation is attempted in the wrong phase."""


class CheckFailedError(CallMoxError, AssertionError):
    """Raised at the call site when an invocation cannot be satisfied."""


class VerificationFailedError(CallMoxError, AssertionError):
    """Raised at teardown when call count constraints were not met.

    Several unsatisfied expectations are reported together; the individual
    messages remain available through :attr:`failures`.
    """

    def __init__(self, failures: str | t.Sequence[str]) -> None:
        if isinstance(failures, str):
            failures = [failures]
        self.failures: list[str] = list(failures)
        super().__init__("\n\n".join(self.failures))

    @classmethod
    def combine(
        cls, errors: t.Iterable[VerificationFailedError]
    ) -> VerificationFailedError:
        """Merge *errors* into a single aggregated error."""
        failures: list[str] = []
        for err in errors:
            failures.extend(err.failures)
        return cls(failures)


class SpyAssertionError(VerificationFailedError):
    """Raised when a spy assertion does not hold."""


class Thrown(Exception):  # noqa: N818 - mirrors a non-local throw, not an error
    """Non-local exit carrying a ``tag`` and an optional ``value``.

    Raised by expectations configured with ``and_throw`` and caught with
    :func:`call_mox.responses.catch`.
    """

    def __init__(self, tag: object, value: object = None) -> None:
        self.tag = tag
        self.value = value
        super().__init__(f"uncaught throw {tag!r}")


__all__ = [
    "CallMoxError",
    "CheckFailedError",
    "ConfigurationError",
    "LifecycleError",
    "SpyAssertionError",
    "Thrown",
    "UsageError",
    "VerificationFailedError",
]
