from __future__ import annotations

from collections.abc import Iterable

from .domain import Outbound
from .domain import User

UPDATE_USERS = "updateUsers"


class BroadcastPublisher:
    """Full registry snapshot for every connected client.

    Always full state, never a diff; clients replace their view wholesale.
    """

    def publish(self, snapshot: Iterable[User]) -> Outbound:
        payload = {user.connection_id: user.as_dict() for user in snapshot}
        return Outbound(event=UPDATE_USERS, payload=payload, to=None)
