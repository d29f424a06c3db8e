"""Shared fixtures for tensortester tests."""

from __future__ import annotations

import io

import numpy as np
import pytest

from tensortester.config import TesterConfig, reset_config
from tensortester.formatting import PlainFormatter
from tensortester.tester import Tester


@pytest.fixture(autouse=True)
def _default_config():
    """Every test starts from the default process-wide configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture()
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def tester(out: io.StringIO) -> Tester:
    """A tester printing without colour into ``out``."""
    return Tester(config=TesterConfig(), formatter=PlainFormatter(), stream=out)


@pytest.fixture()
def recording(tester: Tester) -> Tester:
    """A tester whose counters are ready to record assertions for 'case'."""
    tester.reset_counters(["case"])
    tester.current_test = "case"
    return tester


@pytest.fixture()
def matrix() -> np.ndarray:
    return np.arange(12, dtype=np.float64).reshape(3, 4)
