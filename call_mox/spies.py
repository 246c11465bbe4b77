"""Assertions over the calls a mock has received."""

from __future__ import annotations

import typing as t

from .comparators import describe_mapping, describe_value
from .errors import SpyAssertionError
from .formatting import format_sections, numbered

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .test_doubles import MockDouble


class _AnyArgs:
    """Marker accepted by spy queries to leave the arguments unconstrained."""

    def __repr__(self) -> str:
        return "ANY_ARGS"


ANY_ARGS: t.Final = _AnyArgs()


def _describe_query(
    method_name: str, args: tuple[object, ...], kwargs: dict[str, object]
) -> str:
    if args == (ANY_ARGS,) and not kwargs:
        return f"{method_name}(*args, **kwargs)"
    parts = [describe_value(arg) for arg in args]
    if kwargs:
        parts.append(describe_mapping(kwargs))
    return f"{method_name}({', '.join(parts)})"


def _describe_spy_expectation(
    spy: MockDouble,
    method_name: str,
    args: tuple[object, ...],
    kwargs: dict[str, object],
    *,
    negative: bool,
    times: int | None,
    with_block: bool | None,
) -> str:
    verb = "to NOT be received" if negative else "to be received"
    title = f"expected {_describe_query(method_name, args, kwargs)} {verb}"
    title += f" by mock {spy.name!r}"
    if times is not None:
        title += f" {times} times" if times != 1 else " once"
    if with_block is True:
        title += " with a block"
    elif with_block is False:
        title += " without a block"
    if not spy.calls:
        return f"{title}\nNo messages have been received"
    return format_sections(
        title,
        [
            (
                "The following messages have been received",
                numbered([record.describe() for record in spy.calls]),
            )
        ],
    )


def assert_spy_called(
    spy: MockDouble,
    method_name: str,
    *args: object,
    times: int | None = None,
    with_block: bool | None = None,
    **kwargs: object,
) -> None:
    """Assert that *spy* received *method_name* with matching arguments.

    Without *times* at least one matching call is required; with it the
    number of matching calls must be exactly *times*.

    Raises
    ------
    SpyAssertionError
        Listing every call the spy has received.
    """
    count = spy.received(method_name, *args, with_block=with_block, **kwargs)
    ok = count > 0 if times is None else count == times
    if not ok:
        raise SpyAssertionError(
            _describe_spy_expectation(
                spy,
                method_name,
                args,
                kwargs,
                negative=False,
                times=times,
                with_block=with_block,
            )
        )


def assert_spy_not_called(
    spy: MockDouble,
    method_name: str,
    *args: object,
    with_block: bool | None = None,
    **kwargs: object,
) -> None:
    """Assert that *spy* never received *method_name* with matching arguments.

    Raises
    ------
    SpyAssertionError
        Listing every call the spy has received.
    """
    if spy.received(method_name, *args, with_block=with_block, **kwargs):
        raise SpyAssertionError(
            _describe_spy_expectation(
                spy,
                method_name,
                args,
                kwargs,
                negative=True,
                times=None,
                with_block=with_block,
            )
        )


__all__ = ["ANY_ARGS", "assert_spy_called", "assert_spy_not_called"]
