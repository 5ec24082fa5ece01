"""Test fixtures."""

from collections.abc import Generator
from unittest.mock import patch

import pytest

from pocketcal.timezone import TimezoneResolver


@pytest.fixture(name="resolver")
def mock_resolver() -> TimezoneResolver:
    """Fixture that creates a timezone resolver shared within a test."""
    return TimezoneResolver()


@pytest.fixture(name="_uid", autouse=True)
def mock_uid() -> Generator[None, None, None]:
    """Patch out uuid creation with a fixed value."""
    counter = 0

    def func() -> str:
        nonlocal counter
        counter += 1
        return f"mock-uid-{counter}"

    with patch("pocketcal.event.uid_factory", new=func):
        yield
