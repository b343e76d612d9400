"""
Unit tests for RoomRouter

Tests cover:
- Set-like membership
- Leaving single rooms and all rooms
- Broadcast delivery to current members only
- Identity authorization
"""
import pytest
from unittest.mock import call

from exceptions.domain_exceptions import AuthorizationViolation
from schemas.session_schema import Session
from services.room_router import RoomRouter


@pytest.mark.unit
class TestMembership:
    """Test cases for join/leave bookkeeping"""

    def test_join_adds_member(self, room_router: RoomRouter):
        """Test joining puts the sid in the room"""
        assert room_router.join("42", "sid-a") is True

        assert room_router.members("42") == {"sid-a"}
        assert room_router.rooms_of("sid-a") == {"42"}

    def test_join_is_idempotent(self, room_router: RoomRouter):
        """Test repeated joins keep a single membership"""
        room_router.join("42", "sid-a")

        assert room_router.join("42", "sid-a") is False
        assert room_router.members("42") == {"sid-a"}

    def test_leave_removes_member_and_empty_room(self, room_router: RoomRouter):
        """Test leaving the last member drops the room"""
        room_router.join("42", "sid-a")

        room_router.leave("42", "sid-a")

        assert room_router.members("42") == set()
        assert room_router.rooms_of("sid-a") == set()

    def test_leave_unknown_room(self, room_router: RoomRouter):
        """Test leaving a room the sid never joined is a no-op"""
        room_router.leave("nope", "sid-a")

        assert room_router.members("nope") == set()

    def test_leave_all(self, room_router: RoomRouter):
        """Test a sid is removed from every room while others stay"""
        room_router.join("42", "sid-a")
        room_router.join("7", "sid-a")
        room_router.join("42", "sid-b")

        room_router.leave_all("sid-a")

        assert room_router.rooms_of("sid-a") == set()
        assert room_router.members("42") == {"sid-b"}
        assert room_router.members("7") == set()

    def test_members_returns_copy(self, room_router: RoomRouter):
        """Test callers cannot mutate the membership table"""
        room_router.join("42", "sid-a")

        room_router.members("42").add("sid-evil")
        room_router.rooms_of("sid-a").add("7")

        assert room_router.members("42") == {"sid-a"}
        assert room_router.rooms_of("sid-a") == {"42"}


@pytest.mark.unit
class TestBroadcast:
    """Test cases for delivering events to a room"""

    async def test_broadcast_to_all_members(self, room_router: RoomRouter, emit):
        """Test every member receives the payload unmodified"""
        payload = {"senderId": 7, "receiverId": 42, "message": "hi"}
        room_router.join("42", "sid-a")
        room_router.join("42", "sid-b")

        delivered = await room_router.broadcast("42", "receive_message", payload)

        assert delivered == 2
        emit.assert_has_awaits([
            call("receive_message", payload, "sid-a"),
            call("receive_message", payload, "sid-b"),
        ], any_order=True)
        assert emit.await_count == 2

    async def test_failed_emit_does_not_stop_delivery(self, room_router: RoomRouter, emit):
        """Test one member's emit error still lets the other members receive"""
        received = []

        async def emitting(event, data, sid):
            if sid == "sid-a":
                raise RuntimeError("socket closed")
            received.append(sid)

        emit.side_effect = emitting
        room_router.join("42", "sid-a")
        room_router.join("42", "sid-b")

        delivered = await room_router.broadcast("42", "receive_message", {"message": "hi"})

        assert received == ["sid-b"]
        assert delivered == 1

    async def test_broadcast_to_missing_room(self, room_router: RoomRouter, emit):
        """Test broadcasting to a room nobody joined delivers nothing"""
        delivered = await room_router.broadcast("42", "receive_message", {"message": "hi"})

        assert delivered == 0
        emit.assert_not_awaited()

    async def test_broadcast_skips_left_members(self, room_router: RoomRouter, emit):
        """Test members that left no longer receive events"""
        room_router.join("42", "sid-a")
        room_router.join("42", "sid-b")
        room_router.leave_all("sid-a")

        await room_router.broadcast("42", "receive_message", {"message": "hi"})

        emit.assert_awaited_once_with("receive_message", {"message": "hi"}, "sid-b")

    async def test_broadcast_uses_member_snapshot(self, emit):
        """Test a join during delivery does not receive the in-flight event"""
        router = None

        async def emitting(event, data, sid):
            router.join("42", "sid-late")

        emit.side_effect = emitting
        router = RoomRouter(emit)
        router.join("42", "sid-a")

        delivered = await router.broadcast("42", "receive_message", {})

        assert delivered == 1
        emit.assert_awaited_once_with("receive_message", {}, "sid-a")


@pytest.mark.unit
class TestAuthorize:
    """Test cases for identity checks"""

    def test_matching_identity(self):
        """Test the session's own id is accepted"""
        RoomRouter.authorize(Session(sid="sid-a", identity="42"), "42")

    def test_mismatched_identity(self):
        """Test another id raises AuthorizationViolation"""
        with pytest.raises(AuthorizationViolation) as exc_info:
            RoomRouter.authorize(Session(sid="sid-a", identity="7"), "42")

        assert exc_info.value.claimed_id == "42"
        assert exc_info.value.identity == "7"
        assert exc_info.value.status_code == 403
