"""Pairing state machine.

Each connection is either unpaired or paired with exactly one peer::

    Unpaired --(proximity, both unpaired)--> Paired(peer)
    Paired(peer) --(end chat / peer disconnect)--> Unpaired

A user already in a conversation is never reassigned to someone else.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .domain import UNPAIRED
from .domain import Pairing
from .domain import PairingState
from .domain import Session
from .domain import SessionEnded
from .domain import User
from .exceptions import NotFound

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(self):
        # Both members of a session map to the same Session object.
        self._by_member: dict[str, Session] = {}

    def state_of(self, connection_id: str) -> PairingState:
        session = self._by_member.get(connection_id)
        if session is None:
            return UNPAIRED
        return PairingState(peer_id=session.peer_of(connection_id))

    def peer_of(self, connection_id: str) -> str | None:
        return self.state_of(connection_id).peer_id

    def is_paired_with(self, first: str, second: str) -> bool:
        session = self._by_member.get(first)
        return session is not None and first != second and session.involves(second)

    def sessions(self) -> list[Session]:
        unique = {id(s): s for s in self._by_member.values()}
        return sorted(unique.values(), key=lambda s: (s.a, s.b))

    def __len__(self) -> int:
        return len(self._by_member) // 2

    def on_proximity(self, mover: User, candidates: Iterable[User]) -> list[Pairing]:
        """Pair ``mover`` with the first unpaired candidate, if any.

        Candidates are considered in connection id order. Returns one
        ``Pairing`` per side of the new session, or nothing.
        """

        pairings: list[Pairing] = []
        for candidate in sorted(candidates, key=lambda u: u.connection_id):
            if mover.connection_id in self._by_member:
                break
            if (
                candidate.connection_id == mover.connection_id
                or candidate.connection_id in self._by_member
            ):
                continue

            session = Session(a=mover.connection_id, b=candidate.connection_id)
            self._by_member[session.a] = session
            self._by_member[session.b] = session
            logger.info("Paired %s with %s", session.a, session.b)

            pairings.append(
                Pairing(
                    connection_id=mover.connection_id,
                    peer_id=candidate.connection_id,
                    peer_username=candidate.username,
                )
            )
            pairings.append(
                Pairing(
                    connection_id=candidate.connection_id,
                    peer_id=mover.connection_id,
                    peer_username=mover.username,
                )
            )
        return pairings

    def end_session(self, requester_id: str, peer_id: str) -> list[SessionEnded]:
        """End the session between two connections.

        Raises ``NotFound`` when no session links them, including a repeat
        call for a pair that was already ended. Nothing changes in that case,
        so callers that want a quiet no-op should catch it, as the Socket.IO
        layer does.
        """

        if not self.is_paired_with(requester_id, peer_id):
            msg = f"no active session between {requester_id} and {peer_id}"
            raise NotFound(msg)

        self._teardown(self._by_member[requester_id])
        return [
            SessionEnded(connection_id=requester_id, peer_id=peer_id),
            SessionEnded(connection_id=peer_id, peer_id=requester_id),
        ]

    def on_disconnect(self, connection_id: str) -> list[SessionEnded]:
        """Tear down the session of a leaving connection.

        Only the surviving peer is notified.
        """

        session = self._by_member.get(connection_id)
        if session is None:
            return []

        self._teardown(session)
        survivor = session.peer_of(connection_id)
        return [SessionEnded(connection_id=survivor, peer_id=connection_id)]

    def _teardown(self, session: Session) -> None:
        self._by_member.pop(session.a, None)
        self._by_member.pop(session.b, None)
        logger.info("Session between %s and %s ended", session.a, session.b)
