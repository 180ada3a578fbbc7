"""
pytest configuration and fixtures.
"""

from typing import Generator

import pytest

from gstelnet import Connection
from gstelnet.telnettest import (
    CommandHandler,
    Server,
    new_server,
    set_command_handler,
)

# Shorter than the real one second window so the suite stays quick, but long
# enough for loopback round trips.
TICK_TIMEOUT = 0.3


@pytest.fixture(autouse=True)
def tick_timeout(monkeypatch: pytest.MonkeyPatch) -> float:
    """Shorten the execute wait window for every test."""
    monkeypatch.setattr(Connection, "tick_timeout", TICK_TIMEOUT)
    return TICK_TIMEOUT


@pytest.fixture
def server() -> Generator[Server, None, None]:
    """A running test server answering "help"."""
    srv = new_server(set_command_handler(CommandHandler()))
    srv.settings.close_grace_period = 0.5
    yield srv
    srv.close()
