"""Shared test fixtures."""

import pytest

from tests.fakes import FakeBlockscout


@pytest.fixture
def fake_gateway() -> FakeBlockscout:
    return FakeBlockscout()
