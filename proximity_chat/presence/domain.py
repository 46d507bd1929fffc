from __future__ import annotations

import math
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any

from .exceptions import InvalidPosition


def _coordinate(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    # bool is an int subclass; true/false are not coordinates.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"{key} must be a number"
        raise InvalidPosition(msg)
    try:
        value = float(value)
    except OverflowError as exc:
        msg = f"{key} is out of range"
        raise InvalidPosition(msg) from exc
    if not math.isfinite(value):
        msg = f"{key} must be finite"
        raise InvalidPosition(msg)
    return value


@dataclass(frozen=True)
class Position:
    lat: float
    lng: float

    @classmethod
    def from_payload(cls, data: Any) -> Position:
        """Build a position from a ``{lat, lng}`` payload.

        Raises ``InvalidPosition`` for anything that is not an object with two
        finite numbers.
        """

        if not isinstance(data, dict):
            msg = "position must be an object with lat and lng"
            raise InvalidPosition(msg)
        return cls(lat=_coordinate(data, "lat"), lng=_coordinate(data, "lng"))

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass
class User:
    connection_id: str
    username: str
    position: Position

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.connection_id,
            "username": self.username,
            "position": self.position.as_dict(),
        }


class SessionState(str, Enum):
    ACTIVE = "active"


@dataclass(frozen=True)
class Session:
    """An undirected chat pairing between two connections."""

    a: str
    b: str
    state: SessionState = SessionState.ACTIVE

    def involves(self, connection_id: str) -> bool:
        return connection_id in (self.a, self.b)

    def peer_of(self, connection_id: str) -> str:
        if connection_id == self.a:
            return self.b
        if connection_id == self.b:
            return self.a
        msg = f"{connection_id} is not part of this session"
        raise ValueError(msg)


@dataclass(frozen=True)
class PairingState:
    peer_id: str | None = None

    @property
    def is_paired(self) -> bool:
        return self.peer_id is not None


UNPAIRED = PairingState()


@dataclass(frozen=True)
class Pairing:
    """Pairing established, as seen by ``connection_id``."""

    connection_id: str
    peer_id: str
    peer_username: str


@dataclass(frozen=True)
class SessionEnded:
    """Session ended, as seen by ``connection_id``."""

    connection_id: str
    peer_id: str


@dataclass(frozen=True)
class Outbound:
    """A message to emit. ``to=None`` addresses every connected client."""

    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    to: str | None = None
