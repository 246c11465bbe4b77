"""Rendering helpers shared by failure messages."""

from __future__ import annotations

import typing as t
from textwrap import indent
from types import MappingProxyType

from .comparators import HashSubset, describe_mapping, describe_value

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import CallRecord


def format_args(
    args: t.Sequence[object] | None,
    kwargs: HashSubset | t.Mapping[str, object] | None,
) -> str:
    """Render positional and keyword arguments.

    ``None`` stands for "unconstrained" and renders as ``*args`` or
    ``**kwargs``.
    """
    parts: list[str] = []
    if args is None:
        parts.append("*args")
    else:
        parts.extend(describe_value(arg) for arg in args)
    if kwargs is None:
        parts.append("**kwargs")
    elif isinstance(kwargs, HashSubset):
        parts.append(f"**{kwargs.describe()}")
    elif kwargs:
        parts.append(describe_mapping(kwargs))
    return ", ".join(parts)


_NO_KWARGS: t.Final[t.Mapping[str, object]] = MappingProxyType({})


def format_call(
    name: str,
    args: t.Sequence[object] | None = (),
    kwargs: HashSubset | t.Mapping[str, object] | None = _NO_KWARGS,
) -> str:
    """Return ``name(args, kwargs)``."""
    return f"{name}({format_args(args, kwargs)})"


def describe_records(records: t.Sequence[CallRecord]) -> str:
    """List *records*, annotating each with the expectation that served it."""
    if not records:
        return "(none)"
    return "\n".join(record.describe() for record in records)


def numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    """Number *entries* for the received-calls list of spy failures.

    Each entry is usually a rendered :class:`~call_mox.call_record.CallRecord`;
    multi-line entries keep their continuation lines under the number.
    """
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    """Lay out a failure message as *title* plus labelled sections.

    Count, ordering and spy failures use this to show ``Expected``,
    ``Observed`` and ``Received calls`` blocks indented under their labels.
    Sections with an empty body are left out.
    """
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def in_mock(mock_name: str, message: str) -> str:
    """Prefix *message* with the name of the mock it concerns."""
    return f"in mock {mock_name!r}: {message}"


__all__ = [
    "describe_records",
    "format_args",
    "format_call",
    "format_sections",
    "in_mock",
    "numbered",
]
