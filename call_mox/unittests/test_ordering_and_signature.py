"""Unit tests for ordering contexts and signature validation."""

from __future__ import annotations

import pytest

from call_mox.call_record import Call
from call_mox.errors import CheckFailedError, ConfigurationError
from call_mox.ordering import OrderingContext, OrderScope
from call_mox.signature import SignatureValidator


class TestOrderingContext:
    """Allocation and watermark checks."""

    def test_sequence_numbers_increase(self) -> None:
        """Each ungrouped allocation gets a new slot."""
        context = OrderingContext()
        assert [context.allocate().sequence for _ in range(3)] == [1, 2, 3]

    def test_groups_share_a_slot(self) -> None:
        """Expectations in the same group share a sequence number."""
        context = OrderingContext(OrderScope.GLOBAL)
        first = context.allocate("g")
        other = context.allocate()
        second = context.allocate("g")
        assert first.sequence == second.sequence == 1
        assert other.sequence == 2
        assert first.scope is OrderScope.GLOBAL

    def test_going_back_fails(self) -> None:
        """A lower slot after a higher one is out of order."""
        context = OrderingContext()
        low, high = context.allocate(), context.allocate()
        context.validate(high, description="b()", mock_name="m", received=[])
        with pytest.raises(CheckFailedError) as exc:
            context.validate(low, description="a()", mock_name="m", received=[])
        message = str(exc.value)
        assert message.startswith("in mock 'm': method 'a()' called out of order")
        assert "Received calls:\n  (none)" in message

    def test_repeating_a_slot_is_allowed(self) -> None:
        """The watermark never moves backwards."""
        context = OrderingContext()
        token = context.allocate()
        context.validate(token, description="a()", mock_name="m", received=[])
        context.validate(token, description="a()", mock_name="m", received=[])
        assert context.watermark == 1


def _call(*args: object, **kwargs: object) -> Call:
    return Call("meth", args, kwargs)


class TestSignatureValidator:
    """Arity and keyword checks."""

    def _check(self, validator: SignatureValidator, call: Call) -> None:
        validator.validate(call, description="meth(*args)", mock_name="m")

    def test_too_few_positional_arguments(self) -> None:
        """Missing required positionals are reported."""
        validator = SignatureValidator(required_arguments=2)
        with pytest.raises(
            CheckFailedError,
            match="expects at least 2 positional arguments but got only 1",
        ):
            self._check(validator, _call(1))

    def test_too_many_positional_arguments(self) -> None:
        """Extra positionals are rejected without splat."""
        validator = SignatureValidator(required_arguments=2)
        with pytest.raises(
            CheckFailedError,
            match="expects at most 2 positional arguments but got 3",
        ):
            self._check(validator, _call(1, 2, 3))
        SignatureValidator(required_arguments=2, splat=True).validate(
            _call(1, 2, 3), description="meth", mock_name="m"
        )

    def test_keyword_rules(self) -> None:
        """Required keywords must be present and unknown ones rejected."""
        validator = SignatureValidator(
            required_keyword_arguments={"a", "b"},
            optional_keyword_arguments={"c"},
        )
        self._check(validator, _call(a=1, b=2, c=3))
        with pytest.raises(CheckFailedError, match="but none were provided"):
            self._check(validator, _call())
        with pytest.raises(
            CheckFailedError, match="missing required keyword arguments b"
        ):
            self._check(validator, _call(a=1))
        with pytest.raises(
            CheckFailedError, match="given unexpected keyword argument d"
        ):
            self._check(validator, _call(a=1, b=2, d=4))

    def test_trailing_mapping_counts_as_keywords(self) -> None:
        """A trailing mapping is read as keywords when keywords are declared."""
        validator = SignatureValidator(
            required_arguments=1, required_keyword_arguments={"a"}
        )
        self._check(validator, _call(1, {"a": 2}))
        plain = SignatureValidator(required_arguments=2)
        self._check(plain, _call(1, {"a": 2}))

    def test_message_names_the_mock(self) -> None:
        """Failures are prefixed with the mock name."""
        validator = SignatureValidator(required_arguments=1)
        with pytest.raises(CheckFailedError) as exc:
            self._check(validator, _call())
        assert str(exc.value).startswith("in mock 'm': meth(*args) expects")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"required_arguments": -1},
            {"optional_arguments": "2"},
            {"required_keyword_arguments": "ab"},
            {"required_keyword_arguments": {"a"}, "optional_keyword_arguments": {"a"}},
        ],
    )
    def test_malformed_declarations(self, kwargs: dict[str, object]) -> None:
        """Invalid declarations raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            SignatureValidator(**kwargs)  # type: ignore[arg-type]

    def test_derived_from_callable(self) -> None:
        """Validators can be read from a function's parameters."""

        def target(
            a: int, b: int = 1, *rest: int, c: int, d: int = 2, **extra: int
        ) -> int:
            return a

        validator = SignatureValidator.from_callable(target)
        assert validator.required_arguments == 1
        assert validator.optional_arguments == 1
        assert validator.splat
        assert validator.required_keyword_arguments == {"c"}
        assert validator.optional_keyword_arguments == {"d"}
        assert validator.keyword_splat

    def test_skip_self(self) -> None:
        """Unbound methods can skip their ``self`` parameter."""

        class Service:
            def fetch(self, key: str) -> str:
                return key

        validator = SignatureValidator.from_callable(Service.fetch, skip_self=True)
        assert validator.required_arguments == 1
