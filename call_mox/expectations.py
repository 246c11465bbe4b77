"""Expectation clauses registered on a mock method.

An :class:`Expectation` is created through
:meth:`call_mox.test_doubles.MockDouble.should_receive` and configured with
chained calls::

    mock.should_receive("fetch").with_args("key", IsA(int)).and_return(1, 2)
    mock.should_receive("close").once().ordered()
"""

from __future__ import annotations

import enum
import typing as t

from .comparators import HashSubset, all_match_args, all_match_kwargs, as_matcher
from .counts import CountConstraint, calls
from .errors import CheckFailedError, VerificationFailedError
from .formatting import describe_records, format_call, format_sections, in_mock
from .ordering import OrderScope
from .responses import (
    UNDEFINED,
    Iterate,
    PassThrough,
    Raise,
    ResponseQueue,
    Return,
    ReturnComputed,
    Throw,
    Yield,
)
from .signature import SignatureValidator

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call_record import Call
    from .comparators import Matcher
    from .director import ExpectationDirector
    from .ordering import OrderToken


class BlockRequirement(enum.Enum):
    """How an expectation treats the presence of a block."""

    NONE = "none"
    REQUIRED = "with_block"
    FORBIDDEN = "with_no_block"
    OPTIONAL = "with_optional_block"

    def accepts(self, *, block_present: bool) -> bool:
        """Return ``True`` if a call with or without a block is acceptable."""
        if self is BlockRequirement.REQUIRED:
            return block_present
        if self is BlockRequirement.FORBIDDEN:
            return not block_present
        return True


class _CountMode(enum.Enum):
    EXACT = enum.auto()
    AT_LEAST = enum.auto()
    AT_MOST = enum.auto()


class Expectation:
    """One registered behaviour clause for a mock method."""

    def __init__(self, director: ExpectationDirector, method_name: str) -> None:
        self.director = director
        self.method_name = method_name
        self.args: list[Matcher] | None = None
        self.kwargs: HashSubset | dict[str, Matcher] | None = None
        self.block = BlockRequirement.NONE
        self.count = CountConstraint()
        self.order_token: OrderToken | None = None
        self.is_default = False
        self.responses = ResponseQueue()
        self.invocation_count = 0
        self.signature_validator: SignatureValidator | None = None
        self._count_mode = _CountMode.EXACT
        self._globally = False

    # ------------------------------------------------------------------
    # Argument constraints
    # ------------------------------------------------------------------
    def with_args(self, *args: object, **kwargs: object) -> Expectation:
        """Require matching positional arguments and exactly these keywords."""
        self.args = [as_matcher(arg) for arg in args]
        self.kwargs = {key: as_matcher(value) for key, value in kwargs.items()}
        return self

    def with_no_args(self) -> Expectation:
        """Require a call without any arguments."""
        return self.with_args()

    def with_any_args(self) -> Expectation:
        """Accept any positional and keyword arguments."""
        self.args = None
        self.kwargs = None
        return self

    def with_kwargs(
        self, subset: HashSubset | None = None, /, **kwargs: object
    ) -> Expectation:
        """Constrain keyword arguments only.

        Passing a :class:`~call_mox.comparators.HashSubset` tolerates extra
        keywords; plain keywords require the exact key set.
        """
        if subset is not None:
            self.kwargs = subset
        else:
            self.kwargs = {key: as_matcher(value) for key, value in kwargs.items()}
        return self

    def with_any_kwargs(self) -> Expectation:
        """Accept any keyword arguments."""
        self.kwargs = None
        return self

    def with_block(self) -> Expectation:
        """Require the call to pass a block."""
        self.block = BlockRequirement.REQUIRED
        return self

    def with_no_block(self) -> Expectation:
        """Require the call not to pass a block."""
        self.block = BlockRequirement.FORBIDDEN
        return self

    def with_optional_block(self) -> Expectation:
        """Accept calls with or without a block."""
        self.block = BlockRequirement.OPTIONAL
        return self

    def with_signature(self, **declaration: t.Any) -> Expectation:  # noqa: ANN401
        """Validate the call shape against a declared signature.

        Accepts the keyword arguments of
        :class:`~call_mox.signature.SignatureValidator`.
        """
        self.signature_validator = SignatureValidator(**declaration)
        return self

    def with_signature_matching(
        self, func: t.Callable[..., t.Any], *, skip_self: bool = False
    ) -> Expectation:
        """Validate the call shape against the parameters of *func*."""
        self.signature_validator = SignatureValidator.from_callable(
            func, skip_self=skip_self
        )
        return self

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------
    def and_return(self, *values: object) -> Expectation:
        """Return each of *values* on successive calls, repeating the last."""
        for value in values or (None,):
            self.responses.add(Return(value))
        return self

    returns = and_return

    def and_compute(self, func: t.Callable[..., object]) -> Expectation:
        """Return ``func(*args, **kwargs)`` for the actual call arguments."""
        self.responses.add(ReturnComputed(func))
        return self

    def and_return_undefined(self) -> Expectation:
        """Return :data:`~call_mox.responses.UNDEFINED`."""
        return self.and_return(UNDEFINED)

    returns_undefined = and_return_undefined

    def and_yield(self, *values: object) -> Expectation:
        """Call the block with *values*."""
        self.responses.add(Yield(values))
        return self

    yields = and_yield

    def and_iterates(self, *values: object) -> Expectation:
        """Call the block once for each of *values*."""
        self.responses.add(Iterate(values))
        return self

    def and_raise(
        self, error: type[BaseException] | BaseException, message: str | None = None
    ) -> Expectation:
        """Raise *error*, built with *message* when *error* is a class."""
        self.responses.add(Raise(error, message))
        return self

    raises = and_raise

    def and_throw(self, tag: object, value: object = None) -> Expectation:
        """Throw *tag* with *value*, to be caught by ``catch(tag)``."""
        self.responses.add(Throw(tag, value))
        return self

    throws = and_throw

    def pass_thru(
        self, transform: t.Callable[[t.Any], object] | None = None
    ) -> Expectation:
        """Call the original method, optionally transforming its result."""
        self.responses.add(PassThrough(transform))
        return self

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------
    def times(self, count: int) -> Expectation:
        """Require *count* calls, or bound them after ``at_least``/``at_most``."""
        mode, self._count_mode = self._count_mode, _CountMode.EXACT
        if mode is _CountMode.AT_LEAST:
            self.count.at_least(count)
        elif mode is _CountMode.AT_MOST:
            self.count.at_most(count)
        else:
            self.count.exactly(count)
        return self

    def never(self) -> Expectation:
        """Forbid calls."""
        return self.times(0)

    def once(self) -> Expectation:
        """Require exactly one call."""
        return self.times(1)

    def twice(self) -> Expectation:
        """Require exactly two calls."""
        return self.times(2)

    def zero_or_more_times(self) -> Expectation:
        """Accept any number of calls."""
        self._count_mode = _CountMode.EXACT
        self.count.unbounded()
        return self

    def at_least(self) -> Expectation:
        """Make the next count a lower bound."""
        self._count_mode = _CountMode.AT_LEAST
        return self

    def at_most(self) -> Expectation:
        """Make the next count an upper bound."""
        self._count_mode = _CountMode.AT_MOST
        return self

    # ------------------------------------------------------------------
    # Ordering and defaults
    # ------------------------------------------------------------------
    def globally(self) -> Expectation:
        """Make the next ``ordered`` use the controller-wide ordering."""
        self._globally = True
        return self

    def ordered(self, group: t.Hashable | None = None) -> Expectation:
        """Require this expectation to be called in definition order.

        Expectations sharing *group* occupy the same slot and may be called in
        any order relative to each other.
        """
        owner = self.director.owner
        context = owner.global_ordering if self._globally else owner.ordering
        self._globally = False
        self.order_token = context.allocate(group)
        return self

    @property
    def order_number(self) -> int | None:
        """Return the allocated sequence number, if ordered."""
        return None if self.order_token is None else self.order_token.sequence

    def by_default(self) -> Expectation:
        """Turn this (most recent) expectation into a default."""
        self.director.defaultify(self)
        return self

    # ------------------------------------------------------------------
    # Matching and invocation
    # ------------------------------------------------------------------
    @property
    def eligible(self) -> bool:
        """Return ``True`` while another call is permitted."""
        return self.count.is_eligible(self.invocation_count)

    def match_args(self, call: Call) -> bool:
        """Return ``True`` if *call*'s arguments and block are accepted."""
        return (
            all_match_args(self.args, call.args)
            and all_match_kwargs(self.kwargs, call.kwargs)
            and self.block.accepts(block_present=call.block_present)
        )

    def verify_call(self, call: Call) -> object:
        """Validate *call* against all constraints and produce the response."""
        owner = self.director.owner
        if not self.eligible:
            raise CheckFailedError(self._count_failure(self.invocation_count + 1))
        if self.signature_validator is not None:
            self.signature_validator.validate(
                call, description=str(self), mock_name=owner.name
            )
        self._validate_order()
        self.invocation_count += 1
        return self.responses.respond(call, mock_name=owner.name)

    def _validate_order(self) -> None:
        token = self.order_token
        if token is None:
            return
        owner = self.director.owner
        if token.scope is OrderScope.GLOBAL:
            context, received = owner.global_ordering, owner.journal
        else:
            context, received = owner.ordering, owner.calls
        context.validate(
            token,
            description=self.description,
            mock_name=owner.name,
            received=list(received),
        )

    def verify(self) -> None:
        """Raise :class:`VerificationFailedError` if the count is unmet."""
        if not self.count.is_satisfied(self.invocation_count):
            raise VerificationFailedError(self._count_failure(self.invocation_count))

    def _count_failure(self, observed: int) -> str:
        owner = self.director.owner
        title = in_mock(
            owner.name,
            f"method '{self.description}' called incorrect number of times",
        )
        return format_sections(
            title,
            [
                ("Expected", self.count.describe()),
                ("Observed", calls(observed)),
                ("Received calls", describe_records(list(owner.calls))),
            ],
        )

    # ------------------------------------------------------------------
    # Descriptions
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        """Render the expected call, e.g. ``fetch('key', int)``."""
        return format_call(self.method_name, self.args, self.kwargs)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<Expectation {self.description}>"

    @property
    def description(self) -> str:
        """Render the expected call with its modifiers as suffixes."""
        parts = [str(self)]
        if self.block is not BlockRequirement.NONE:
            parts.append(f".{self.block.value}")
        parts.append(self.count.suffix())
        if self.order_token is not None:
            prefix = (
                ".globally" if self.order_token.scope is OrderScope.GLOBAL else ""
            )
            group = self.order_token.group
            arg = "" if group is None else repr(group)
            parts.append(f"{prefix}.ordered({arg})" if arg else f"{prefix}.ordered")
        if self.signature_validator is not None:
            parts.append(f".{self.signature_validator.describe()}")
        if self.is_default:
            parts.append(".by_default")
        return "".join(parts)


class CompositeExpectation:
    """Apply fluent configuration to several expectations at once."""

    def __init__(self, expectations: t.Sequence[Expectation]) -> None:
        self.expectations = list(expectations)

    def __getattr__(self, name: str) -> t.Callable[..., CompositeExpectation]:
        if name.startswith("_") or not callable(
            getattr(Expectation, name, None)
        ):
            raise AttributeError(name)

        def apply(*args: object, **kwargs: object) -> CompositeExpectation:
            for expectation in self.expectations:
                getattr(expectation, name)(*args, **kwargs)
            return self

        return apply

    def __str__(self) -> str:
        """Render every member, e.g. ``[foo(1), bar(1)]``."""
        return "[" + ", ".join(str(exp) for exp in self.expectations) + "]"

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"<CompositeExpectation {self}>"


__all__ = ["BlockRequirement", "CompositeExpectation", "Expectation"]
