import pytest

from proximity_chat.presence.coordinator import PresenceCoordinator
from proximity_chat.presence.domain import Outbound
from proximity_chat.presence.domain import Position
from proximity_chat.presence.exceptions import InvalidPayload
from proximity_chat.presence.exceptions import InvalidPosition
from proximity_chat.presence.exceptions import NotFound
from proximity_chat.presence.exceptions import NotPaired


def events_for(outbound, sid):
    return [(m.event, m.payload) for m in outbound if m.to == sid]


def broadcasts(outbound):
    return [m.payload for m in outbound if m.to is None]


class TestPresenceCoordinator:
    def setup_method(self):
        self.coordinator = PresenceCoordinator()

    def login_pair(self):
        self.coordinator.login("A", {"username": "alice"})
        self.coordinator.login("B", {"username": "bob"})
        self.coordinator.move("A", {"lat": 51.505, "lng": -0.09})
        self.coordinator.move("B", {"lat": 51.5051, "lng": -0.0901})

    def test_login_broadcasts_snapshot(self):
        outbound = self.coordinator.login("A", {"username": "alice"})

        assert outbound == [
            Outbound(
                event="updateUsers",
                payload={
                    "A": {
                        "id": "A",
                        "username": "alice",
                        "position": {"lat": 51.505, "lng": -0.09},
                    },
                },
            ),
        ]

    def test_login_with_initial_position(self):
        self.coordinator.login("A", {"username": "alice", "lat": 10, "lng": 20})
        assert self.coordinator.registry.get("A").position == Position(10.0, 20.0)

    @pytest.mark.parametrize("data", [None, "alice", {}, {"username": 3}, {"username": "  "}])
    def test_login_rejects_bad_username(self, data):
        with pytest.raises(InvalidPayload):
            self.coordinator.login("A", data)
        assert "A" not in self.coordinator.registry

    def test_login_rejects_bad_initial_position(self):
        with pytest.raises(InvalidPosition):
            self.coordinator.login("A", {"username": "alice", "lat": 1.0})
        assert "A" not in self.coordinator.registry

    def test_scenario_near_users_are_paired(self):
        self.coordinator.login("A", {"username": "alice"})
        self.coordinator.login("B", {"username": "bob", "lat": 0.0, "lng": 0.0})
        self.coordinator.move("A", {"lat": 51.505, "lng": -0.09})

        outbound = self.coordinator.move("B", {"lat": 51.5051, "lng": -0.0901})

        assert events_for(outbound, "B") == [("canChatWith", {"userId": "A", "username": "alice"})]
        assert events_for(outbound, "A") == [("canChatWith", {"userId": "B", "username": "bob"})]
        snapshot = broadcasts(outbound)
        assert len(snapshot) == 1
        assert set(snapshot[0]) == {"A", "B"}
        # The broadcast always comes after the pairing notifications.
        assert outbound[-1].event == "updateUsers"

    def test_scenario_far_move_does_not_pair(self):
        self.coordinator.login("A", {"username": "alice", "lat": 10.0, "lng": 10.0})
        self.coordinator.login("B", {"username": "bob", "lat": 0.0, "lng": 0.0})
        self.coordinator.move("B", {"lat": 51.5051, "lng": -0.0901})

        outbound = self.coordinator.move("A", {"lat": 51.6, "lng": -0.2})

        assert [m.event for m in outbound] == ["updateUsers"]
        assert self.coordinator.sessions.sessions() == []

    def test_scenario_chat_is_delivered_to_peer_only(self):
        self.login_pair()
        self.coordinator.login("C", {"username": "carol"})

        outbound = self.coordinator.chat("A", {"to": "B", "message": "hi", "fromUsername": "A"})

        assert outbound == [
            Outbound(event="chatMessage", payload={"fromUsername": "alice", "message": "hi"}, to="B"),
        ]

    def test_chat_uses_registered_username(self):
        self.login_pair()

        outbound = self.coordinator.chat("A", {"to": "B", "message": "hi", "fromUsername": "mallory"})

        assert outbound[0].payload["fromUsername"] == "alice"

    def test_scenario_end_chat_then_chat_fails(self):
        self.login_pair()

        outbound = self.coordinator.end_chat("A", {"to": "B"})

        assert events_for(outbound, "A") == [("chatEnded", {"from": "B"})]
        assert events_for(outbound, "B") == [("chatEnded", {"from": "A"})]
        assert broadcasts(outbound) == []
        with pytest.raises(NotPaired):
            self.coordinator.chat("A", {"to": "B", "message": "still there?"})

    def test_end_chat_twice(self):
        self.login_pair()
        self.coordinator.end_chat("A", {"to": "B"})

        with pytest.raises(NotFound):
            self.coordinator.end_chat("A", {"to": "B"})

    def test_scenario_disconnect_while_paired(self):
        self.login_pair()

        outbound = self.coordinator.disconnect("A")

        assert events_for(outbound, "B") == [("chatEnded", {"from": "A"})]
        assert events_for(outbound, "A") == []
        assert set(broadcasts(outbound)[0]) == {"B"}
        assert self.coordinator.sessions.state_of("B").is_paired is False

    def test_disconnect_is_idempotent(self):
        self.coordinator.login("A", {"username": "alice"})
        assert len(self.coordinator.disconnect("A")) == 1
        assert self.coordinator.disconnect("A") == []

    def test_disconnect_before_login(self):
        assert self.coordinator.disconnect("lurker") == []

    def test_move_before_login(self):
        with pytest.raises(NotFound):
            self.coordinator.move("A", {"lat": 1.0, "lng": 2.0})
        assert len(self.coordinator.registry) == 0

    def test_invalid_move_keeps_last_position(self):
        self.coordinator.login("A", {"username": "alice"})
        self.coordinator.move("A", {"lat": 1.0, "lng": 2.0})

        with pytest.raises(InvalidPosition):
            self.coordinator.move("A", {"lat": float("nan"), "lng": 2.0})
        with pytest.raises(InvalidPosition):
            self.coordinator.move("A", {"lng": 2.0})

        assert self.coordinator.registry.get("A").position == Position(1.0, 2.0)

    def test_chat_to_disconnected_peer(self):
        self.login_pair()
        self.coordinator.disconnect("B")

        with pytest.raises(NotFound):
            self.coordinator.chat("A", {"to": "B", "message": "hi"})

    @pytest.mark.parametrize("data", [None, {"message": "hi"}, {"to": "B"}, {"to": "B", "message": 5}])
    def test_chat_rejects_malformed_payload(self, data):
        self.login_pair()
        with pytest.raises(InvalidPayload):
            self.coordinator.chat("A", data)

    def test_paired_users_are_not_reassigned(self):
        self.login_pair()
        self.coordinator.login("C", {"username": "carol"})
        self.coordinator.login("D", {"username": "dave"})
        self.coordinator.move("C", {"lat": 40.0, "lng": 40.0})
        self.coordinator.move("D", {"lat": 40.0, "lng": 40.0})

        # Everyone converges on one spot; existing pairs stay as they are.
        for sid in "ABCD":
            outbound = self.coordinator.move(sid, {"lat": 0.0, "lng": 0.0})
            assert [m.event for m in outbound] == ["updateUsers"]

        assert self.coordinator.sessions.peer_of("A") == "B"
        assert self.coordinator.sessions.peer_of("C") == "D"

    def test_stats(self):
        self.login_pair()
        self.coordinator.login("C", {"username": "carol"})
        assert self.coordinator.stats() == {"users": 3, "sessions": 1}

    def test_move_with_oversized_coordinate(self):
        self.coordinator.login("A", {"username": "alice"})

        with pytest.raises(InvalidPosition):
            self.coordinator.move("A", {"lat": 10**400, "lng": 0})

        assert self.coordinator.registry.get("A").position == Position(51.505, -0.09)

    def test_login_with_nearby_position_pairs(self):
        self.coordinator.login("A", {"username": "alice"})

        outbound = self.coordinator.login("B", {"username": "bob", "lat": 51.5051, "lng": -0.0901})

        assert events_for(outbound, "B") == [("canChatWith", {"userId": "A", "username": "alice"})]
        assert events_for(outbound, "A") == [("canChatWith", {"userId": "B", "username": "bob"})]
        assert outbound[-1].event == "updateUsers"
        assert self.coordinator.sessions.peer_of("A") == "B"

    def test_login_at_default_position_does_not_pair(self):
        self.coordinator.login("A", {"username": "alice"})

        outbound = self.coordinator.login("B", {"username": "bob"})

        assert [m.event for m in outbound] == ["updateUsers"]
        assert self.coordinator.sessions.sessions() == []
