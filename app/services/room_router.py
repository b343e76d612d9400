# app/services/room_router.py

import logging
from typing import Any, Awaitable, Callable, Dict, Set
from exceptions.domain_exceptions import AuthorizationViolation
from schemas.session_schema import Session

logger = logging.getLogger(__name__)

# Coroutine used to push one event to one connection: emit(event, data, sid)
Emitter = Callable[[str, Any, str], Awaitable[None]]


class RoomRouter:
    """
    Owns the room membership table and delivers events to room members.
    
    Rooms are keyed by normalized user id. Every mutation is synchronous,
    so check-then-act sequences run without interleaving on the event loop.
    """
    
    def __init__(self, emit: Emitter):
        self._emit = emit
        # Maps room key to the sids currently in it
        self._rooms: Dict[str, Set[str]] = {}
        # Maps sid to the rooms it belongs to
        self._sid_rooms: Dict[str, Set[str]] = {}
    
    @staticmethod
    def authorize(session: Session, claimed_id: str) -> None:
        """
        Check that a normalized claimed id matches the session's identity
        
        Raises:
            AuthorizationViolation: If the ids differ
        """
        if claimed_id != session.identity:
            raise AuthorizationViolation(claimed_id, session.identity)
    
    def join(self, room: str, sid: str) -> bool:
        """Add sid to room. Returns False if it was already a member"""
        members = self._rooms.setdefault(room, set())
        if sid in members:
            return False
        members.add(sid)
        self._sid_rooms.setdefault(sid, set()).add(room)
        return True
    
    def leave(self, room: str, sid: str) -> None:
        """Remove sid from room, dropping the room once it is empty"""
        members = self._rooms.get(room)
        if members is not None:
            members.discard(sid)
            if not members:
                del self._rooms[room]
        
        sid_rooms = self._sid_rooms.get(sid)
        if sid_rooms is not None:
            sid_rooms.discard(room)
            if not sid_rooms:
                del self._sid_rooms[sid]
    
    def leave_all(self, sid: str) -> None:
        """Remove sid from every room it belongs to"""
        for room in list(self._sid_rooms.get(sid, ())):
            self.leave(room, sid)
    
    def members(self, room: str) -> Set[str]:
        return set(self._rooms.get(room, ()))
    
    def rooms_of(self, sid: str) -> Set[str]:
        return set(self._sid_rooms.get(sid, ()))
    
    async def broadcast(self, room: str, event: str, data: Any) -> int:
        """
        Emit event to every current member of room
        
        Members are read before the first await, so joins and leaves that
        happen while emitting do not affect this delivery.
        
        A failed emit is logged and does not stop delivery to the other members.
        
        Returns:
            Number of connections the event was emitted to
        """
        delivered = 0
        for sid in sorted(self._rooms.get(room, ())):
            try:
                await self._emit(event, data, sid)
            except Exception:
                logger.exception(f"Error emitting {event} to {sid} in room {room}")
                continue
            delivered += 1
        return delivered
