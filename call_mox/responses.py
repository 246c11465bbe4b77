"""Canned responses replayed by expectations.

A :class:`ResponseQueue` keeps two independent cursors: one over the
yield-style actions (:class:`Yield`, :class:`Iterate`) and one over every
other action. Each call consumes the next entry from both lists, and once a
list is exhausted its last entry repeats for every later call.
"""

from __future__ import annotations

import contextlib
import dataclasses as dc
import typing as t

from .errors import CheckFailedError, ConfigurationError, Thrown
from .formatting import in_mock

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import Call


class _Undefined:
    """Value that absorbs every attribute access and call."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __getattr__(self, name: str) -> _Undefined:
        if name.startswith("__"):
            raise AttributeError(name)
        return self

    def __call__(self, *args: object, **kwargs: object) -> _Undefined:
        return self

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED: t.Final = _Undefined()


def _call_args(call: Call) -> tuple[tuple[object, ...], dict[str, object]]:
    return tuple(call.args or ()), dict(call.kwargs or {})


@dc.dataclass(frozen=True, slots=True)
class Return:
    """Return ``value``."""

    value: object

    def apply(self, call: Call) -> object:
        """Return the canned value."""
        return self.value


@dc.dataclass(frozen=True, slots=True)
class ReturnComputed:
    """Return ``func(*args, **kwargs)`` computed from the actual call."""

    func: t.Callable[..., object]

    def apply(self, call: Call) -> object:
        """Compute the value from the call's arguments."""
        args, kwargs = _call_args(call)
        return self.func(*args, **kwargs)


@dc.dataclass(frozen=True, slots=True)
class Raise:
    """Raise ``error``, instantiating it with ``message`` when it is a class."""

    error: type[BaseException] | BaseException
    message: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.error, BaseException):
            if self.message is not None:
                msg = "a message can only be given with an exception class"
                raise ConfigurationError(msg)
        elif not (
            isinstance(self.error, type) and issubclass(self.error, BaseException)
        ):
            msg = f"cannot raise {self.error!r}: not an exception"
            raise ConfigurationError(msg)

    def apply(self, call: Call) -> t.NoReturn:
        """Raise the configured exception."""
        if isinstance(self.error, BaseException):
            raise self.error
        if self.message is None:
            raise self.error()
        raise self.error(self.message)


@dc.dataclass(frozen=True, slots=True)
class Throw:
    """Perform a non-local exit with ``tag`` and ``value``."""

    tag: object
    value: object = None

    def apply(self, call: Call) -> t.NoReturn:
        """Raise :class:`~call_mox.errors.Thrown`."""
        raise Thrown(self.tag, self.value)


@dc.dataclass(frozen=True, slots=True)
class PassThrough:
    """Delegate to the call's original callable, optionally transforming it.

    Calls without an original (pure mocks) return :data:`UNDEFINED`.
    """

    transform: t.Callable[[t.Any], object] | None = None

    def apply(self, call: Call) -> object:
        """Invoke the original and apply ``transform`` to its result."""
        if call.original is None:
            return UNDEFINED
        args, kwargs = _call_args(call)
        result = call.original(*args, **kwargs)
        if self.transform is not None:
            return self.transform(result)
        return result


@dc.dataclass(frozen=True, slots=True)
class Yield:
    """Invoke the call's block once with ``values``."""

    values: tuple[object, ...]

    def perform(self, call: Call, mock_name: str) -> object:
        """Call the block and return its result."""
        block = _require_block(call, mock_name, self.values)
        return block(*self.values)


@dc.dataclass(frozen=True, slots=True)
class Iterate:
    """Invoke the call's block once per value in ``values``."""

    values: tuple[object, ...]

    def perform(self, call: Call, mock_name: str) -> object:
        """Call the block for every value, returning the last result."""
        block = _require_block(call, mock_name, self.values)
        result: object = None
        for value in self.values:
            result = block(value)
        return result


def _require_block(
    call: Call, mock_name: str, values: tuple[object, ...]
) -> t.Callable[..., object]:
    if call.block is None:
        msg = in_mock(
            mock_name,
            f"method '{call.describe()}' was expected to yield "
            f"{list(values)!r} but no block was given",
        )
        raise CheckFailedError(msg)
    return call.block


ReturnAction = Return | ReturnComputed | Raise | Throw | PassThrough
YieldAction = Yield | Iterate
Action = ReturnAction | YieldAction

_NOTHING_YIELDED: t.Final = object()


class ResponseQueue:
    """Ordered response actions with independent return and yield cursors."""

    def __init__(self) -> None:
        self._returns: list[ReturnAction] = []
        self._yields: list[YieldAction] = []
        self._return_index = 0
        self._yield_index = 0

    def __len__(self) -> int:
        return len(self._returns) + len(self._yields)

    def add(self, action: Action) -> None:
        """Append *action* to the cursor it belongs to."""
        if isinstance(action, Yield | Iterate):
            self._yields.append(action)
        else:
            self._returns.append(action)

    def respond(self, call: Call, *, mock_name: str = "unknown") -> object:
        """Apply the next actions for *call* and return the resulting value."""
        yielded: object = _NOTHING_YIELDED
        if self._yields:
            action = self._yields[self._yield_index]
            if self._yield_index < len(self._yields) - 1:
                self._yield_index += 1
            yielded = action.perform(call, mock_name)
        if self._returns:
            action = self._returns[self._return_index]
            if self._return_index < len(self._returns) - 1:
                self._return_index += 1
            return action.apply(call)
        return None if yielded is _NOTHING_YIELDED else yielded


@dc.dataclass(slots=True)
class Caught:
    """Outcome of a :func:`catch` block."""

    thrown: bool = False
    value: object = None


@contextlib.contextmanager
def catch(tag: object) -> t.Iterator[Caught]:
    """Catch a :class:`~call_mox.errors.Thrown` carrying *tag*.

    Throws with other tags propagate unchanged::

        with catch("done") as caught:
            mock.proxy.finish()
        assert caught.value == "result"
    """
    caught = Caught()
    try:
        yield caught
    except Thrown as exc:
        if exc.tag != tag:
            raise
        caught.thrown = True
        caught.value = exc.value


__all__ = [
    "UNDEFINED",
    "Action",
    "Caught",
    "Iterate",
    "PassThrough",
    "Raise",
    "ResponseQueue",
    "Return",
    "ReturnComputed",
    "Throw",
    "Yield",
    "catch",
]
