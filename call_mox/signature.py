"""Validation of a call's positional and keyword shape."""

from __future__ import annotations

import inspect
import typing as t
from collections.abc import Mapping

from .errors import CheckFailedError, ConfigurationError
from .formatting import in_mock

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import Call


class SignatureValidator:
    """Check calls against a declared parameter list.

    Parameters
    ----------
    required_arguments:
        Number of mandatory positional parameters.
    optional_arguments:
        Number of positional parameters that have defaults.
    splat:
        Whether extra positional arguments are accepted (``*args``).
    required_keyword_arguments:
        Keyword names that must be supplied.
    optional_keyword_arguments:
        Keyword names that may be supplied.
    keyword_splat:
        Whether unknown keywords are accepted (``**kwargs``).
    """

    def __init__(
        self,
        *,
        required_arguments: int = 0,
        optional_arguments: int = 0,
        splat: bool = False,
        required_keyword_arguments: t.Iterable[str] = (),
        optional_keyword_arguments: t.Iterable[str] = (),
        keyword_splat: bool = False,
    ) -> None:
        for label, value in (
            ("required_arguments", required_arguments),
            ("optional_arguments", optional_arguments),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                msg = f"{label} must be a non-negative integer, got {value!r}"
                raise ConfigurationError(msg)
        required_kw = _keyword_set(
            "required_keyword_arguments", required_keyword_arguments
        )
        optional_kw = _keyword_set(
            "optional_keyword_arguments", optional_keyword_arguments
        )
        if overlap := required_kw & optional_kw:
            msg = (
                "keyword arguments cannot be both required and optional: "
                + ", ".join(sorted(overlap))
            )
            raise ConfigurationError(msg)
        self.required_arguments = required_arguments
        self.optional_arguments = optional_arguments
        self.splat = splat
        self.required_keyword_arguments = required_kw
        self.optional_keyword_arguments = optional_kw
        self.keyword_splat = keyword_splat

    @property
    def expects_keywords(self) -> bool:
        """Return ``True`` if the signature declares any keyword parameter."""
        return bool(
            self.required_keyword_arguments
            or self.optional_keyword_arguments
            or self.keyword_splat
        )

    @classmethod
    def from_callable(
        cls, func: t.Callable[..., t.Any], *, skip_self: bool = False
    ) -> SignatureValidator:
        """Derive a validator from the parameters of *func*.

        Set *skip_self* for functions taken from a class body so that the
        ``self`` parameter is not counted.
        """
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError) as exc:
            msg = f"cannot read the signature of {func!r}"
            raise ConfigurationError(msg) from exc
        return cls.from_signature(signature, skip_self=skip_self)

    @classmethod
    def from_signature(
        cls, signature: inspect.Signature, *, skip_self: bool = False
    ) -> SignatureValidator:
        """Derive a validator from an :class:`inspect.Signature`."""
        params = list(signature.parameters.values())
        if skip_self and params:
            params = params[1:]
        counts = {"required": 0, "optional": 0}
        required_kw: list[str] = []
        optional_kw: list[str] = []
        splat = keyword_splat = False
        for param in params:
            kind = param.kind
            has_default = param.default is not inspect.Parameter.empty
            if kind in _POSITIONAL_KINDS:
                counts["optional" if has_default else "required"] += 1
            elif kind is inspect.Parameter.VAR_POSITIONAL:
                splat = True
            elif kind is inspect.Parameter.KEYWORD_ONLY:
                (optional_kw if has_default else required_kw).append(param.name)
            elif kind is inspect.Parameter.VAR_KEYWORD:
                keyword_splat = True
            else:
                msg = f"cannot interpret parameter kind {kind}"
                raise ConfigurationError(msg)
        return cls(
            required_arguments=counts["required"],
            optional_arguments=counts["optional"],
            splat=splat,
            required_keyword_arguments=required_kw,
            optional_keyword_arguments=optional_kw,
            keyword_splat=keyword_splat,
        )

    def validate(self, call: Call, *, description: str, mock_name: str) -> None:
        """Raise :class:`CheckFailedError` if *call* does not fit the signature."""
        args = list(call.args or ())
        kwargs = dict(call.kwargs or {})
        if (
            not kwargs
            and self.expects_keywords
            and args
            and _is_keyword_mapping(args[-1])
        ):
            kwargs = dict(args.pop())

        def fail(problem: str) -> t.NoReturn:
            raise CheckFailedError(in_mock(mock_name, f"{description} {problem}"))

        if len(args) < self.required_arguments:
            fail(
                f"expects at least {self.required_arguments} positional arguments "
                f"but got only {len(args)}"
            )
        limit = self.required_arguments + self.optional_arguments
        if not self.splat and len(args) > limit:
            fail(f"expects at most {limit} positional arguments but got {len(args)}")

        if self.required_keyword_arguments and not kwargs:
            fail("expects keyword arguments but none were provided")
        if missing := self.required_keyword_arguments - kwargs.keys():
            fail(f"missing required keyword arguments {', '.join(sorted(missing))}")
        if not self.keyword_splat:
            known = self.required_keyword_arguments | self.optional_keyword_arguments
            if unexpected := kwargs.keys() - known:
                fail(
                    "given unexpected keyword argument "
                    + ", ".join(sorted(map(str, unexpected)))
                )

    def _fields(self) -> list[str]:
        return [
            f"required_arguments={self.required_arguments}",
            f"optional_arguments={self.optional_arguments}",
            f"required_keyword_arguments={sorted(self.required_keyword_arguments)}",
            f"optional_keyword_arguments={sorted(self.optional_keyword_arguments)}",
            f"splat={self.splat}",
            f"keyword_splat={self.keyword_splat}",
        ]

    def describe(self) -> str:
        """Render as a ``with_signature(...)`` suffix."""
        return "with_signature(" + ", ".join(self._fields()) + ")"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return "SignatureValidator(" + ", ".join(self._fields()) + ")"


_POSITIONAL_KINDS: t.Final = frozenset(
    {inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD}
)


def _keyword_set(label: str, names: t.Iterable[str]) -> frozenset[str]:
    if isinstance(names, str):
        msg = f"{label} must be a collection of names, not a string"
        raise ConfigurationError(msg)
    result = frozenset(names)
    if bad := [name for name in result if not isinstance(name, str)]:
        msg = f"{label} must contain strings, got {bad!r}"
        raise ConfigurationError(msg)
    return result


def _is_keyword_mapping(value: object) -> bool:
    return isinstance(value, Mapping) and all(isinstance(k, str) for k in value)


__all__ = ["SignatureValidator"]
