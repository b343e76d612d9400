# app/api/socketio/relay_namespace.py

from infrastructure.socketio_manager import sio, router as default_router, AuthNamespace
from exceptions.domain_exceptions import AuthorizationViolation, InvalidEventPayload
from schemas.session_schema import Session, SendMessageEvent, normalize_user_id
from services.room_router import RoomRouter
from pydantic import ValidationError
import logging

logger = logging.getLogger(__name__)


class RelayNamespace(AuthNamespace):
    """
    Socket.IO namespace relaying point-to-point messages between users.
    
    Every user may only join the room named after their own verified id,
    and may only send messages as themselves. Spoofed events are dropped
    without telling the client.
    """

    def __init__(self, namespace=None, router: RoomRouter = None, **kwargs):
        super().__init__(namespace, **kwargs)
        self.router = router or default_router

    async def handle_connect(self, sid, session: Session):
        logger.info(f"User connected: {sid} (User: {session.identity})")

    async def handle_disconnect(self, sid, session: Session):
        self.router.leave_all(sid)
        logger.info(f"User disconnected: {sid} (User: {session.identity})")

    async def on_join(self, sid, user_id):
        """Join the private room of the connection's own identity"""
        session = self.get_session(sid)
        if not session:
            logger.warning(f"Ignoring join from unauthenticated session {sid}")
            return

        try:
            try:
                claimed_id = normalize_user_id(user_id)
            except ValueError as e:
                raise InvalidEventPayload(str(e)) from e
            self.router.authorize(session, claimed_id)
        except InvalidEventPayload as e:
            logger.warning(f"Dropping malformed join from {sid}: {e.message}")
            return
        except AuthorizationViolation:
            logger.warning(f"User {sid} tried to join room {user_id} but is verified as {session.identity}")
            return

        if self.router.join(session.identity, sid):
            logger.info(f"User {sid} joined room: {session.identity}")

    async def on_send_message(self, sid, data):
        """
        Deliver a message to every connection in the receiver's room
        
        The payload is emitted exactly as received. Delivery to an empty
        room is a no-op; nothing is queued for later.
        """
        session = self.get_session(sid)
        if not session:
            logger.warning(f"Ignoring send_message from unauthenticated session {sid}")
            return

        try:
            if not isinstance(data, dict):
                raise InvalidEventPayload("send_message payload must be an object")
            try:
                message_dto = SendMessageEvent.model_validate(data)
            except ValidationError as e:
                raise InvalidEventPayload(
                    "send_message payload is missing valid senderId/receiverId",
                    details={"errors": e.errors(include_url=False)}
                ) from e
            self.router.authorize(session, message_dto.sender_id)
        except InvalidEventPayload as e:
            logger.warning(f"Dropping malformed send_message from {sid}: {e.message}")
            return
        except AuthorizationViolation as e:
            logger.warning(f"User {sid} tried to send message as {e.claimed_id}")
            return

        logger.info(f"Message from {message_dto.sender_id} to {message_dto.receiver_id}")
        await self.router.broadcast(message_dto.receiver_id, 'receive_message', data)


# Register the namespace
sio.register_namespace(RelayNamespace('/'))
