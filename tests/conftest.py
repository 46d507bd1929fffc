from unittest import mock

import pytest

from proximity_chat.presence import get_coordinator
from proximity_chat.realtime.socketio import sio


@pytest.fixture(autouse=True)
def coordinator():
    get_coordinator.cache_clear()
    yield get_coordinator()
    get_coordinator.cache_clear()


@pytest.fixture
def emit(monkeypatch):
    """Replace the Socket.IO emit with a recorder."""

    recorder = mock.AsyncMock()
    monkeypatch.setattr(sio, "emit", recorder)
    return recorder
