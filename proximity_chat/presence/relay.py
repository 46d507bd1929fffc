from __future__ import annotations

from .domain import Outbound
from .exceptions import NotPaired
from .sessions import SessionManager

CHAT_MESSAGE = "chatMessage"


class MessageRelay:
    """Chat delivery between the two members of an active session.

    Fire-and-forget: nothing is acknowledged or stored.
    """

    def __init__(self, sessions: SessionManager):
        self.sessions = sessions

    def send(self, from_id: str, to_id: str, text: str, from_username: str) -> Outbound:
        if not self.sessions.is_paired_with(from_id, to_id):
            msg = f"{from_id} has no active session with {to_id}"
            raise NotPaired(msg)
        return Outbound(
            event=CHAT_MESSAGE,
            payload={"fromUsername": from_username, "message": text},
            to=to_id,
        )
