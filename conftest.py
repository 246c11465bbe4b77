"""Global test configuration and shared fixtures."""

from __future__ import annotations

import logging
import typing as t

import pytest

pytest_plugins = ("call_mox.pytest_plugin",)


@pytest.fixture(autouse=True)
def call_mox_debug_logging(
    caplog: pytest.LogCaptureFixture,
) -> t.Generator[None, None, None]:
    """Capture call_mox debug records so failures show dispatch decisions."""
    with caplog.at_level(logging.DEBUG, logger="call_mox"):
        yield
