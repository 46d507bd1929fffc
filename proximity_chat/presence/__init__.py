"""Presence, proximity and chat-session coordination.

Everything here is synchronous and in-memory. The realtime package feeds
protocol events into :class:`PresenceCoordinator` and emits whatever
outbound messages it returns.
"""

from .coordinator import PresenceCoordinator
from .coordinator import get_coordinator
from .exceptions import InvalidPayload
from .exceptions import InvalidPosition
from .exceptions import NotFound
from .exceptions import NotPaired
from .exceptions import PresenceError

__all__ = [
    "InvalidPayload",
    "InvalidPosition",
    "NotFound",
    "NotPaired",
    "PresenceCoordinator",
    "PresenceError",
    "get_coordinator",
]
