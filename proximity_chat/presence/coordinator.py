"""Single owner of presence state.

Every protocol event goes through one method here. Each method validates its
input first, then mutates, then returns the ordered list of messages to emit.
A ``PresenceError`` therefore always means nothing changed.

Callers must not run two events at once; the Socket.IO layer serializes them.
"""

from __future__ import annotations

import functools
import logging
from typing import Any

from django.conf import settings

from .broadcast import BroadcastPublisher
from .domain import Outbound
from .domain import Position
from .domain import SessionEnded
from .domain import User
from .exceptions import InvalidPayload
from .exceptions import NotFound
from .proximity import DEFAULT_THRESHOLD
from .proximity import ProximityDetector
from .registry import DEFAULT_POSITION
from .registry import ConnectionRegistry
from .relay import MessageRelay
from .sessions import SessionManager

logger = logging.getLogger(__name__)

CAN_CHAT_WITH = "canChatWith"
CHAT_ENDED = "chatEnded"


def _payload(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        msg = "payload must be an object"
        raise InvalidPayload(msg)
    return data


def _string_field(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        msg = f"{key} must be a string"
        raise InvalidPayload(msg)
    return value


def _chat_ended(events: list[SessionEnded]) -> list[Outbound]:
    return [
        Outbound(event=CHAT_ENDED, payload={"from": e.peer_id}, to=e.connection_id)
        for e in events
    ]


class PresenceCoordinator:
    def __init__(
        self,
        registry: ConnectionRegistry | None = None,
        detector: ProximityDetector | None = None,
        sessions: SessionManager | None = None,
        publisher: BroadcastPublisher | None = None,
    ):
        self.registry = registry or ConnectionRegistry()
        self.detector = detector or ProximityDetector()
        self.sessions = sessions or SessionManager()
        self.relay = MessageRelay(self.sessions)
        self.publisher = publisher or BroadcastPublisher()

    @classmethod
    def from_settings(cls) -> PresenceCoordinator:
        threshold = getattr(settings, "PRESENCE_PROXIMITY_THRESHOLD", DEFAULT_THRESHOLD)
        default_position = Position(
            lat=getattr(settings, "PRESENCE_DEFAULT_LAT", DEFAULT_POSITION.lat),
            lng=getattr(settings, "PRESENCE_DEFAULT_LNG", DEFAULT_POSITION.lng),
        )
        return cls(
            registry=ConnectionRegistry(default_position=default_position),
            detector=ProximityDetector(threshold=threshold),
        )

    def _broadcast(self) -> Outbound:
        return self.publisher.publish(self.registry.snapshot())

    def login(self, connection_id: str, data: Any) -> list[Outbound]:
        data = _payload(data)
        username = _string_field(data, "username").strip()
        if not username:
            msg = "username must not be empty"
            raise InvalidPayload(msg)

        position = None
        if "lat" in data or "lng" in data:
            position = Position.from_payload(data)

        user = self.registry.register(connection_id, username, position)
        logger.info("User '%s' logged in on %s", username, connection_id)

        # Everyone starts on the same default spot, so only an explicit
        # starting position is checked for nearby users.
        outbound = self._pair_near(user) if position is not None else []
        outbound.append(self._broadcast())
        return outbound

    def move(self, connection_id: str, data: Any) -> list[Outbound]:
        position = Position.from_payload(data)
        mover = self.registry.update_position(connection_id, position)

        outbound = self._pair_near(mover)
        outbound.append(self._broadcast())
        return outbound

    def _pair_near(self, mover: User) -> list[Outbound]:
        others = self.registry.others(mover.connection_id)
        near_ids = self.detector.near(mover, others)
        candidates = [u for u in others if u.connection_id in near_ids]

        return [
            Outbound(
                event=CAN_CHAT_WITH,
                payload={"userId": p.peer_id, "username": p.peer_username},
                to=p.connection_id,
            )
            for p in self.sessions.on_proximity(mover, candidates)
        ]

    def chat(self, connection_id: str, data: Any) -> list[Outbound]:
        data = _payload(data)
        to_id = _string_field(data, "to")
        message = _string_field(data, "message")

        sender = self.registry.get(connection_id)
        if to_id not in self.registry:
            msg = f"chat target {to_id} is not connected"
            raise NotFound(msg)

        # The registered username wins over whatever the client claims.
        return [self.relay.send(connection_id, to_id, message, sender.username)]

    def end_chat(self, connection_id: str, data: Any) -> list[Outbound]:
        data = _payload(data)
        peer_id = _string_field(data, "to")
        return _chat_ended(self.sessions.end_session(connection_id, peer_id))

    def disconnect(self, connection_id: str) -> list[Outbound]:
        outbound = _chat_ended(self.sessions.on_disconnect(connection_id))
        user = self.registry.remove(connection_id)
        if user is None:
            return outbound

        logger.info("User '%s' (%s) left", user.username, connection_id)
        outbound.append(self._broadcast())
        return outbound

    def stats(self) -> dict[str, int]:
        return {"users": len(self.registry), "sessions": len(self.sessions)}


@functools.cache
def get_coordinator() -> PresenceCoordinator:
    """Process-wide coordinator, built from settings on first use."""

    return PresenceCoordinator.from_settings()
