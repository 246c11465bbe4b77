"""Sequence allocation and validation for ordered expectations.

Each mock owns an :class:`OrderingContext` for ``ordered()`` expectations and
every controller owns one shared context for ``globally().ordered()``
expectations. Calls into an ordered expectation may never go back to a
sequence slot lower than the highest slot already satisfied.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import logging
import typing as t

from .errors import CheckFailedError
from .formatting import describe_records, format_sections, in_mock

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import CallRecord

logger = logging.getLogger(__name__)


class OrderScope(enum.StrEnum):
    """Where an order token's sequence number was allocated."""

    MOCK = "mock"
    GLOBAL = "global"


@dc.dataclass(frozen=True, slots=True)
class OrderToken:
    """Sequence slot assigned to an ordered expectation."""

    scope: OrderScope
    group: t.Hashable | None
    sequence: int

    def describe(self) -> str:
        """Render the slot, including its group name when present."""
        if self.group is None:
            return f"order {self.sequence}"
        return f"order {self.sequence} (group {self.group!r})"


class OrderingContext:
    """Allocate sequence numbers and track the highest satisfied slot."""

    def __init__(self, scope: OrderScope = OrderScope.MOCK) -> None:
        self.scope = scope
        self._counter = 0
        self._groups: dict[t.Hashable, int] = {}
        self._watermark = 0
        self._watermark_token: OrderToken | None = None

    @property
    def watermark(self) -> int:
        """Return the highest sequence number satisfied so far."""
        return self._watermark

    def allocate(self, group: t.Hashable | None = None) -> OrderToken:
        """Return the token for a new ordered expectation.

        Expectations naming the same *group* share one sequence slot.
        """
        if group is not None and group in self._groups:
            return OrderToken(self.scope, group, self._groups[group])
        self._counter += 1
        if group is not None:
            self._groups[group] = self._counter
        logger.debug(
            "Allocated %s order %d (group=%r)", self.scope, self._counter, group
        )
        return OrderToken(self.scope, group, self._counter)

    def validate(
        self,
        token: OrderToken,
        *,
        description: str,
        mock_name: str,
        received: t.Sequence[CallRecord],
    ) -> None:
        """Check *token* against the watermark and advance it.

        Raises
        ------
        CheckFailedError
            When a later slot has already been satisfied.
        """
        if token.sequence < self._watermark:
            satisfied = (
                self._watermark_token.describe()
                if self._watermark_token is not None
                else f"order {self._watermark}"
            )
            title = in_mock(
                mock_name,
                f"method '{description}' called out of order "
                f"({token.describe()} requested after {satisfied} was satisfied)",
            )
            msg = format_sections(
                title, [("Received calls", describe_records(received))]
            )
            raise CheckFailedError(msg)
        if token.sequence > self._watermark:
            logger.debug(
                "Advancing %s order watermark from %d to %d",
                self.scope,
                self._watermark,
                token.sequence,
            )
        self._watermark = token.sequence
        self._watermark_token = token


__all__ = ["OrderScope", "OrderToken", "OrderingContext"]
