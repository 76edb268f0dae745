"""Shared fixtures."""

import pytest

from tests.helpers import FakeGameServer


@pytest.fixture
def server() -> FakeGameServer:
    return FakeGameServer()
