"""Argument matchers used when selecting an expectation for a call.

Every expected value registered through ``with_args`` is converted into one of
the :class:`Matcher` variants below by :func:`as_matcher`. Bare values are
interpreted as follows:

* classes match instances of the class, or the class object itself;
* compiled regular expressions match the string form of the actual value;
* ranges match values they contain;
* anything else is compared by equality.
"""

from __future__ import annotations

import re
import typing as t
from collections.abc import Mapping

from .errors import ConfigurationError


class _Missing:
    """Marker for an expected position that received no actual argument."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: t.Final = _Missing()


class Matcher:
    """Base class for argument matchers."""

    #: Whether the matcher accepts :data:`MISSING` for an absent argument.
    accepts_missing: t.ClassVar[bool] = False

    def matches(self, actual: object) -> bool:
        """Return ``True`` if *actual* satisfies this matcher."""
        raise NotImplementedError

    def describe(self) -> str:
        """Return the rendering used in expectation descriptions."""
        return repr(self)

    def __call__(self, actual: object) -> bool:
        """Alias of :meth:`matches` so matchers can be used as predicates."""
        return self.matches(actual)


class Any(Matcher):
    """Match any value, including a missing trailing argument."""

    accepts_missing = True

    def matches(self, actual: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def describe(self) -> str:
        """Return the description used in messages."""
        return "ANY"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return "Any()"


ANY: t.Final = Any()


class Eq(Matcher):
    """Match values equal to ``value``."""

    def __init__(self, value: object) -> None:
        self.value = value

    def matches(self, actual: object) -> bool:
        """Return ``True`` when *actual* is or equals ``value``."""
        if actual is self.value:
            return True
        try:
            return bool(actual == self.value)
        except Exception:  # noqa: BLE001 - a broken __eq__ is a mismatch
            return False

    def describe(self) -> str:
        """Render the expected value."""
        return describe_value(self.value)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Eq({self.value!r})"


class IsA(Matcher):
    """Match instances of ``typ`` or the class object ``typ`` itself."""

    def __init__(self, typ: type) -> None:
        self.typ = typ

    def matches(self, actual: object) -> bool:
        """Return ``True`` when *actual* is an instance of, or is, ``typ``."""
        return actual is self.typ or isinstance(actual, self.typ)

    def describe(self) -> str:
        """Render the class name."""
        return self.typ.__qualname__

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"IsA({self.typ.__qualname__})"


class Regex(Matcher):
    """Match if ``pattern`` is found in the actual value's string form."""

    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        source = pattern.pattern if isinstance(pattern, re.Pattern) else pattern
        if not isinstance(source, str):
            msg = f"Regex patterns must be text, got {type(source).__name__}"
            raise ConfigurationError(msg)
        self._pattern = re.compile(pattern)

    @property
    def pattern(self) -> str:
        """Return the source of the compiled pattern."""
        return self._pattern.pattern

    def matches(self, actual: object) -> bool:
        """Return ``True`` if the regex matches *actual* or ``str(actual)``."""
        text = actual if isinstance(actual, str) else _as_text(actual)
        if text is None:
            return False
        return self._pattern.search(text) is not None

    def describe(self) -> str:
        """Render as ``/pattern/``."""
        return f"/{self.pattern}/"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Regex({self.pattern!r})"


def _as_text(value: object) -> str | None:
    try:
        return str(value)
    except Exception:  # noqa: BLE001 - unprintable values never match
        return None


class Predicate(Matcher):
    """Use a custom ``func`` to determine a match.

    Exceptions raised by ``func`` are treated as a mismatch so that guard-free
    predicates (``lambda v: v % 2 == 0``) can be used with mixed input.
    """

    def __init__(
        self, func: t.Callable[[t.Any], object], *, description: str | None = None
    ) -> None:
        self.func = func
        self._description = description

    def matches(self, actual: object) -> bool:
        """Return ``True`` if ``func(actual)`` is truthy."""
        try:
            return bool(self.func(actual))
        except Exception:  # noqa: BLE001 - predicate errors mean "no match"
            return False

    def describe(self) -> str:
        """Render the predicate."""
        if self._description is not None:
            return self._description
        name = getattr(self.func, "__qualname__", None) or repr(self.func)
        return f"on({name})"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"Predicate({self.func!r})"


class DuckType(Matcher):
    """Match objects that provide every method named in ``method_names``."""

    def __init__(self, *method_names: str) -> None:
        self.method_names = method_names

    def matches(self, actual: object) -> bool:
        """Return ``True`` when *actual* responds to all methods."""
        try:
            return all(
                callable(getattr(actual, name, None)) for name in self.method_names
            )
        except Exception:  # noqa: BLE001 - failing lookups mean "no match"
            return False

    def describe(self) -> str:
        """Render the required method names."""
        return "ducktype(" + ", ".join(repr(n) for n in self.method_names) + ")"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"DuckType{self.method_names!r}"


class HashSubset(Matcher):
    """Match mappings containing at least the ``required`` key/value pairs.

    Values in ``required`` may themselves be matchers or bare values; extra
    keys in the actual mapping are allowed.
    """

    def __init__(
        self, required: t.Mapping[t.Any, object] | None = None, **pairs: object
    ) -> None:
        merged: dict[t.Any, object] = dict(required or {})
        merged.update(pairs)
        self.required = merged

    def matches(self, actual: object) -> bool:
        """Return ``True`` when *actual* contains every required pair."""
        if not isinstance(actual, Mapping):
            return False
        for key, expected in self.required.items():
            if key not in actual:
                return False
            if not matches(expected, actual[key]):
                return False
        return True

    def describe(self) -> str:
        """Render as ``hsh(key=value, ...)``."""
        return f"hsh({describe_mapping(self.required)})"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"HashSubset({self.required!r})"


def describe_value(value: object) -> str:
    """Render *value* for use in call and expectation descriptions."""
    if isinstance(value, Matcher):
        return value.describe()
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    if isinstance(value, type):
        return value.__qualname__
    return repr(value)


def describe_mapping(mapping: t.Mapping[t.Any, object]) -> str:
    """Render keyword pairs as ``key=value`` where keys are identifiers."""
    parts = []
    for key, value in mapping.items():
        if isinstance(key, str) and key.isidentifier():
            parts.append(f"{key}={describe_value(value)}")
        else:
            parts.append(f"{key!r}: {describe_value(value)}")
    return ", ".join(parts)


def as_matcher(expected: object) -> Matcher:
    """Convert a bare expected value into a :class:`Matcher`."""
    if isinstance(expected, Matcher):
        return expected
    if expected is MISSING:
        return Eq(MISSING)
    if isinstance(expected, type):
        return IsA(expected)
    if isinstance(expected, re.Pattern):
        return Regex(expected)
    if isinstance(expected, range):
        return Predicate(expected.__contains__, description=repr(expected))
    return Eq(expected)


def matches(expected: object, actual: object) -> bool:
    """Return ``True`` if *expected* accepts *actual*.

    A :data:`MISSING` actual is only accepted by :data:`MISSING` itself and by
    matchers that tolerate absent arguments such as :class:`Any`.
    """
    matcher = as_matcher(expected)
    if actual is MISSING:
        return matcher.accepts_missing or (
            isinstance(matcher, Eq) and matcher.value is MISSING
        )
    return matcher.matches(actual)


def all_match_args(
    expected: t.Sequence[object] | None, actual: t.Sequence[object] | None
) -> bool:
    """Match positional arguments, padding short calls with :data:`MISSING`."""
    if expected is None:
        return True
    if actual is None or len(actual) > len(expected):
        return False
    padded = [*actual, *([MISSING] * (len(expected) - len(actual)))]
    return all(matches(exp, act) for exp, act in zip(expected, padded, strict=True))


def all_match_kwargs(
    expected: HashSubset | t.Mapping[str, object] | None,
    actual: t.Mapping[str, object] | None,
) -> bool:
    """Match keyword arguments.

    A plain mapping requires exactly the same key set; a :class:`HashSubset`
    tolerates extra keys.
    """
    if expected is None:
        return True
    if actual is None:
        return False
    if isinstance(expected, HashSubset):
        return expected.matches(actual)
    if set(actual) != set(expected):
        return False
    return all(matches(value, actual[key]) for key, value in expected.items())


__all__ = [
    "ANY",
    "MISSING",
    "Any",
    "DuckType",
    "Eq",
    "HashSubset",
    "IsA",
    "Matcher",
    "Predicate",
    "Regex",
    "all_match_args",
    "all_match_kwargs",
    "as_matcher",
    "describe_mapping",
    "describe_value",
    "matches",
]
