"""Unit tests for :mod:`call_mox.comparators`."""

from __future__ import annotations

import re
import typing as t

import pytest

from call_mox.comparators import (
    ANY,
    MISSING,
    DuckType,
    Eq,
    HashSubset,
    IsA,
    Predicate,
    Regex,
    all_match_args,
    all_match_kwargs,
    as_matcher,
    describe_value,
    matches,
)
from call_mox.errors import ConfigurationError


class _Quacker:
    def quack(self) -> str:
        return "quack"

    def walk(self) -> str:
        return "waddle"


@pytest.mark.parametrize(
    ("expected", "actual", "result"),
    [
        (1, 1, True),
        (1, 2, False),
        ("a", "a", True),
        (int, 3, True),
        (int, int, True),
        (int, "3", False),
        (re.compile(r"^ab"), "abc", True),
        (re.compile(r"^ab"), "cab", False),
        (re.compile(r"^12"), 123, True),
        (range(1, 5), 3, True),
        (range(1, 5), 5, False),
    ],
)
def test_matches_bare_values(expected: object, actual: object, result: object) -> None:
    """Bare expected values are interpreted by kind."""
    assert matches(expected, actual) is result


def test_any_accepts_missing_but_literals_do_not() -> None:
    """Only tolerant matchers accept an absent argument."""
    assert matches(ANY, MISSING)
    assert not matches(1, MISSING)
    assert not matches(IsA(object), MISSING)
    assert matches(MISSING, MISSING)


def test_predicate_errors_mean_no_match() -> None:
    """A predicate that raises is treated as a mismatch."""
    even = Predicate(lambda value: value % 2 == 0)
    assert even.matches(4)
    assert not even.matches(3)
    assert not even.matches("text")


def test_eq_with_broken_equality_is_a_mismatch() -> None:
    """An ``__eq__`` raising an exception does not escape the matcher."""

    class Broken:
        def __eq__(self, other: object) -> bool:
            raise RuntimeError

        __hash__ = object.__hash__

    assert not Eq(1).matches(Broken())


def test_duck_type_requires_every_method() -> None:
    """DuckType checks each method name."""
    assert DuckType("quack", "walk").matches(_Quacker())
    assert not DuckType("quack", "fly").matches(_Quacker())


def test_duck_type_with_failing_attribute_is_a_mismatch() -> None:
    """Attribute lookups that raise count as a mismatch."""

    class Exploding:
        @property
        def read(self) -> t.Callable[[], str]:
            raise RuntimeError("boom")

    assert not DuckType("read").matches(Exploding())
    assert not matches(DuckType("read"), Exploding())


def test_hash_subset_tolerates_extra_keys() -> None:
    """HashSubset only checks the required pairs."""
    subset = HashSubset(a=2)
    assert subset.matches({"a": 2, "b": 3})
    assert not subset.matches({"b": 3})
    assert not subset.matches([("a", 2)])
    assert HashSubset({"a": IsA(int)}).matches({"a": 7})


def test_regex_uses_string_form() -> None:
    """Regex matches the string representation of non-strings."""
    assert Regex(r"\d+").matches(42)
    assert not Regex(r"^x").matches(42)


@pytest.mark.parametrize("pattern", [b"x", re.compile(b"x")])
def test_regex_rejects_byte_patterns(pattern: object) -> None:
    """Byte patterns cannot search string forms and are refused."""
    with pytest.raises(ConfigurationError, match="must be text"):
        Regex(pattern)  # type: ignore[arg-type]


def test_as_matcher_keeps_matchers() -> None:
    """Existing matchers are returned unchanged."""
    matcher = IsA(str)
    assert as_matcher(matcher) is matcher
    assert isinstance(as_matcher(3), Eq)


class TestArgumentLists:
    """Positional and keyword argument list matching."""

    def test_unconstrained_expected_matches_anything(self) -> None:
        """``None`` means any arguments."""
        assert all_match_args(None, (1, 2))
        assert all_match_args(None, None)
        assert all_match_kwargs(None, {"a": 1})

    def test_unconstrained_actual_only_matches_unconstrained(self) -> None:
        """An unconstrained call cannot satisfy explicit matchers."""
        assert not all_match_args([1], None)
        assert not all_match_kwargs({"a": 1}, None)

    def test_extra_actual_arguments_do_not_match(self) -> None:
        """More actual than expected positions is a mismatch."""
        assert not all_match_args([1], (1, 2))

    def test_missing_trailing_arguments_need_tolerant_matchers(self) -> None:
        """Short calls are padded with MISSING."""
        assert all_match_args([1, ANY], (1,))
        assert not all_match_args([1, 2], (1,))

    def test_keyword_key_set_must_be_exact(self) -> None:
        """Plain keyword expectations reject extra keys."""
        assert all_match_kwargs({"a": 2}, {"a": 2})
        assert not all_match_kwargs({"a": 2}, {"a": 2, "b": 3})
        assert all_match_kwargs(HashSubset(a=2), {"a": 2, "b": 3})


@pytest.mark.parametrize(
    ("value", "text"),
    [
        ("s", "'s'"),
        (3, "3"),
        (int, "int"),
        (re.compile("ab+"), "/ab+/"),
        (Regex("x"), "/x/"),
        (ANY, "ANY"),
        (HashSubset(a=1), "hsh(a=1)"),
    ],
)
def test_describe_value(value: object, text: str) -> None:
    """Values render as they appear in expectation descriptions."""
    assert describe_value(value) == text
