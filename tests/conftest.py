"""Shared pytest fixtures and configuration."""

from typing import Iterator

import pytest

from helpers import FakeClock, make_account
from notebuyer.models import Account


@pytest.fixture
def clock() -> FakeClock:
    """Create a hand-driven clock."""
    return FakeClock()


@pytest.fixture
def account() -> Account:
    """Create an account with 100 in cash investing 25 per note."""
    return make_account()


@pytest.fixture
def no_logs() -> Iterator[None]:
    """Silence loguru output for noisy tests."""
    from loguru import logger

    logger.disable("notebuyer")
    yield
    logger.enable("notebuyer")
