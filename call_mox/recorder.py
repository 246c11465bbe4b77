"""Record mode: register expectations by making calls on a recorder."""

from __future__ import annotations

import logging
import typing as t

from .call_record import split_block
from .comparators import Eq

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    import types

    from .expectations import Expectation
    from .test_doubles import MockDouble

logger = logging.getLogger(__name__)


class Recorder:
    """Turn every call made on this object into an expectation on a mock.

    ``recorder.fetch("key")`` registers ``fetch`` with those arguments and
    returns the new :class:`~call_mox.expectations.Expectation` for further
    configuration. A trailing :class:`~call_mox.call_record.Block` supplies
    the computed return value::

        with mock.should_expect() as rec:
            rec.fetch("key", Block(lambda key: key.upper()))
            rec.close().once()

    In strict mode arguments are compared by equality only and each recorded
    call must happen exactly once, in the order recorded.
    """

    def __init__(self, mock: MockDouble) -> None:
        self._mock = mock
        self._strict = False

    @property
    def strict(self) -> bool:
        """Return ``True`` once :meth:`should_be_strict` was called."""
        return self._strict

    def should_be_strict(self, *, is_strict: bool = True) -> Recorder:
        """Switch strict recording on or off."""
        self._strict = is_strict
        return self

    def __enter__(self) -> Recorder:
        """Return the recorder itself."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Leave record mode; recorded expectations stay registered."""

    def __getattr__(self, name: str) -> t.Callable[..., Expectation]:
        if name.startswith("_"):
            raise AttributeError(name)

        def record(*args: object, **kwargs: object) -> Expectation:
            return self._record(name, args, kwargs)

        record.__name__ = name
        return record

    def _record(
        self, name: str, args: tuple[object, ...], kwargs: dict[str, object]
    ) -> Expectation:
        args, block = split_block(args)
        expectation = self._mock.director_for(name).new_expectation()
        if self._strict:
            expectation.with_args(
                *(Eq(arg) for arg in args),
                **{key: Eq(value) for key, value in kwargs.items()},
            )
            expectation.once().ordered()
        else:
            expectation.with_args(*args, **kwargs)
        if block is not None:
            expectation.and_compute(block)
        logger.debug(
            "Recorded %s on mock %r (strict=%s)",
            expectation,
            self._mock.name,
            self._strict,
        )
        return expectation


__all__ = ["Recorder"]
