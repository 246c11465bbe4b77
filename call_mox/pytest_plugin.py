"""Pytest plugin providing the ``call_mox`` fixture."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .controller import CallMox, Phase

logger = logging.getLogger(__name__)

_OPTION = "call_mox_auto_verify"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("call_mox")
    group.addoption(
        "--call-mox-auto-verify",
        action="store_true",
        dest=_OPTION,
        default=None,
        help=(
            "Verify the call_mox fixture's mocks during teardown. "
            "Overrides the ini setting."
        ),
    )
    group.addoption(
        "--no-call-mox-auto-verify",
        action="store_false",
        dest=_OPTION,
        default=None,
        help=(
            "Leave verification of the call_mox fixture to the test. "
            "Overrides the ini setting."
        ),
    )
    parser.addini(
        _OPTION,
        "Automatically verify the call_mox fixture's mocks during teardown.",
        type="bool",
        default=True,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "call_mox(auto_verify: bool = True): override automatic "
            "verification of the call_mox fixture for a single test."
        ),
    )


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Attach each phase's report to the test item.

    Teardown uses the call-phase report to avoid failing a test twice.
    """
    del call
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)


def _auto_verify_enabled(request: pytest.FixtureRequest) -> bool:
    """Return whether the fixture should verify at teardown."""
    # Priority order: marker > fixture param > CLI option > INI setting
    marker_value = _get_marker_auto_verify(request)
    if marker_value is not None:
        return marker_value

    param_value = _get_param_auto_verify(request)
    if param_value is not None:
        return param_value

    config = request.config
    cli_value = config.getoption(_OPTION)
    if cli_value is not None:
        return bool(cli_value)

    return bool(config.getini(_OPTION))


def _get_marker_auto_verify(request: pytest.FixtureRequest) -> bool | None:
    marker = request.node.get_closest_marker("call_mox")
    if marker is None or "auto_verify" not in marker.kwargs:
        return None
    return bool(marker.kwargs["auto_verify"])


def _get_param_auto_verify(request: pytest.FixtureRequest) -> bool | None:
    param = getattr(request, "param", None)
    if param is None:
        return None
    if isinstance(param, dict):
        if "auto_verify" in param:
            return bool(param["auto_verify"])
        msg = (
            "call_mox fixture param dict must contain 'auto_verify' key, "
            f"got keys: {list(param)}"
        )
        raise TypeError(msg)
    if isinstance(param, bool):
        return param
    msg = (
        "call_mox fixture param must be a bool or dict with 'auto_verify' key, "
        f"got {type(param).__name__}"
    )
    raise TypeError(msg)


def _call_stage_failed(item: pytest.Item) -> bool:
    """Return ``True`` when the test body has already failed."""
    rep_call = getattr(item, "rep_call", None)
    return bool(rep_call and rep_call.failed)


@pytest.fixture
def call_mox(request: pytest.FixtureRequest) -> t.Generator[CallMox, None, None]:
    """Provide a :class:`CallMox` verified when the test finishes."""
    auto_verify = _auto_verify_enabled(request)
    mox = CallMox(verify_on_exit=False)
    yield mox
    if not auto_verify or mox.phase is not Phase.ACTIVE:
        return
    try:
        mox.verify()
    except Exception as err:
        if _call_stage_failed(request.node):
            logger.exception("Error during call_mox verification of a failed test")
            return
        logger.exception("Error during call_mox verification")
        pytest.fail(f"{type(err).__name__}: {err}")
