"""Invocation count constraints for expectations."""

from __future__ import annotations

import dataclasses as dc

from .errors import ConfigurationError


def _times_phrase(n: int) -> str:
    if n == 1:
        return "once"
    if n == 2:  # noqa: PLR2004
        return "twice"
    return f"{n} times"


def _modifier_phrase(n: int) -> str:
    if n == 1:
        return "once"
    if n == 2:  # noqa: PLR2004
        return "twice"
    return f"times({n})"


@dc.dataclass(slots=True)
class CountConstraint:
    """Minimum and maximum number of calls an expectation accepts.

    ``maximum`` of ``None`` means unbounded. The default constraint accepts
    any number of calls, including none.
    """

    minimum: int = 0
    maximum: int | None = None
    modifiers: list[str] = dc.field(default_factory=list)

    def exactly(self, n: int) -> None:
        """Require exactly *n* calls, replacing any earlier bounds."""
        _check_limit(n)
        self.minimum = n
        self.maximum = n
        self.modifiers.append("never" if n == 0 else _modifier_phrase(n))

    def at_least(self, n: int) -> None:
        """Require at least *n* calls, keeping any upper bound."""
        _check_limit(n)
        self.minimum = n
        self.modifiers.append(f"at_least.{_modifier_phrase(n)}")

    def at_most(self, n: int) -> None:
        """Allow at most *n* calls, keeping any lower bound."""
        _check_limit(n)
        self.maximum = n
        self.modifiers.append(f"at_most.{_modifier_phrase(n)}")

    def unbounded(self) -> None:
        """Accept any number of calls."""
        self.minimum = 0
        self.maximum = None
        self.modifiers.append("zero_or_more_times")

    def is_eligible(self, count: int) -> bool:
        """Return ``True`` when one more call is allowed after *count* calls."""
        return self.maximum is None or count < self.maximum

    def is_satisfied(self, count: int) -> bool:
        """Return ``True`` if *count* calls fall within the bounds."""
        if count < self.minimum:
            return False
        return self.maximum is None or count <= self.maximum

    def suffix(self) -> str:
        """Render the modifiers as they were applied, e.g. ``.at_least.once``."""
        return "".join(f".{modifier}" for modifier in self.modifiers)

    def describe(self) -> str:
        """Return a readable phrase such as ``at least 2 times``."""
        low, high = self.minimum, self.maximum
        if high is None:
            if low == 0:
                return "any number of times"
            return f"at least {_times_phrase(low)}"
        if low == high:
            return "never" if low == 0 else _times_phrase(low)
        if low == 0:
            return f"at most {_times_phrase(high)}"
        return f"between {low} and {high} times"


def _check_limit(n: int) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        msg = f"call count must be a non-negative integer, got {n!r}"
        raise ConfigurationError(msg)


def calls(n: int) -> str:
    """Return ``"1 call"`` or ``"N calls"``."""
    return "1 call" if n == 1 else f"{n} calls"


__all__ = ["CountConstraint", "calls"]
