"""Data models for inbound calls and the history of received calls."""

from __future__ import annotations

import dataclasses as dc
import typing as t
import weakref

from .comparators import all_match_args, all_match_kwargs
from .formatting import format_call

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .comparators import HashSubset
    from .expectations import Expectation


@dc.dataclass(frozen=True, slots=True)
class Block:
    """Wrap a callable passed as the block of a call.

    A trailing ``Block`` given to :class:`~call_mox.test_doubles.MockProxy`
    is lifted out of the positional arguments into :attr:`Call.block`.
    """

    func: t.Callable[..., t.Any]

    def __call__(self, *args: object, **kwargs: object) -> t.Any:  # noqa: ANN401
        """Invoke the wrapped callable."""
        return self.func(*args, **kwargs)


def split_block(
    args: tuple[object, ...],
) -> tuple[tuple[object, ...], Block | None]:
    """Lift a trailing :class:`Block` out of *args*."""
    if args and isinstance(args[-1], Block):
        return args[:-1], args[-1]
    return args, None


@dc.dataclass(frozen=True, slots=True)
class Call:
    """A captured invocation handed to an expectation director.

    ``args`` or ``kwargs`` may be ``None`` when the caller could not provide
    them; such calls only match expectations that leave them unconstrained.
    ``original`` is the real callable used by pass-through responses.
    """

    method_name: str
    args: tuple[object, ...] | None = ()
    kwargs: t.Mapping[str, object] | None = dc.field(default_factory=dict)
    block: t.Callable[..., t.Any] | None = None
    original: t.Callable[..., t.Any] | None = None

    @property
    def block_present(self) -> bool:
        """Return ``True`` when a block accompanied the call."""
        return self.block is not None

    def describe(self) -> str:
        """Render the call as ``name(args, kwargs)``."""
        return format_call(self.method_name, self.args, self.kwargs)


@dc.dataclass(frozen=True, slots=True)
class CallRecord:
    """Immutable record of one completed invocation."""

    method_name: str
    args: tuple[object, ...] | None
    kwargs: t.Mapping[str, object] | None
    block_present: bool
    served_by: weakref.ReferenceType[Expectation] | None = None

    @classmethod
    def from_call(
        cls, call: Call, expectation: Expectation | None = None
    ) -> CallRecord:
        """Build a record of *call* served by *expectation*."""
        ref = weakref.ref(expectation) if expectation is not None else None
        kwargs = None if call.kwargs is None else dict(call.kwargs)
        return cls(call.method_name, call.args, kwargs, call.block_present, ref)

    @property
    def expectation(self) -> Expectation | None:
        """Return the serving expectation while it is still alive."""
        return None if self.served_by is None else self.served_by()

    def matches(
        self,
        method_name: str,
        args: t.Sequence[object] | None = None,
        kwargs: HashSubset | t.Mapping[str, object] | None = None,
        *,
        with_block: bool | None = None,
    ) -> bool:
        """Return ``True`` if this record satisfies the given query.

        ``None`` for ``args``, ``kwargs`` or ``with_block`` leaves that part
        of the call unconstrained.
        """
        return (
            self.method_name == method_name
            and all_match_args(args, self.args)
            and all_match_kwargs(kwargs, self.kwargs)
            and (with_block is None or with_block == self.block_present)
        )

    def describe(self) -> str:
        """Render the call, naming the expectation that served it."""
        text = format_call(self.method_name, self.args, self.kwargs)
        expectation = self.expectation
        if expectation is not None:
            text += f" matched by {expectation.description}"
        return text


__all__ = ["Block", "Call", "CallRecord", "split_block"]
