from __future__ import annotations

from dataclasses import replace

from .domain import Position
from .domain import User
from .exceptions import NotFound


DEFAULT_POSITION = Position(lat=51.505, lng=-0.09)


class ConnectionRegistry:
    """Live connections keyed by connection id.

    Entries exist only between login and disconnect.
    """

    def __init__(self, default_position: Position = DEFAULT_POSITION):
        self.default_position = default_position
        self._users: dict[str, User] = {}

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._users

    def __len__(self) -> int:
        return len(self._users)

    def register(
        self,
        connection_id: str,
        username: str,
        position: Position | None = None,
    ) -> User:
        existing = self._users.get(connection_id)
        if existing is not None:
            # Re-login keeps the last known position.
            existing.username = username
            return existing

        user = User(
            connection_id=connection_id,
            username=username,
            position=position or self.default_position,
        )
        self._users[connection_id] = user
        return user

    def get(self, connection_id: str) -> User:
        try:
            return self._users[connection_id]
        except KeyError as exc:
            msg = f"connection {connection_id} is not registered"
            raise NotFound(msg) from exc

    def update_position(self, connection_id: str, position: Position) -> User:
        user = self.get(connection_id)
        user.position = position
        return user

    def remove(self, connection_id: str) -> User | None:
        return self._users.pop(connection_id, None)

    def others(self, connection_id: str) -> list[User]:
        return [u for cid, u in self._users.items() if cid != connection_id]

    def snapshot(self) -> list[User]:
        """Point-in-time copies, ordered by connection id."""

        return [replace(self._users[cid]) for cid in sorted(self._users)]
