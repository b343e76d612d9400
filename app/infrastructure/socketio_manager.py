# app/infrastructure/socketio_manager.py

import socketio
from typing import Any, Dict, Optional, Set
from urllib.parse import parse_qs
from config.settings import settings
from exceptions.domain_exceptions import AuthFailure
from schemas.session_schema import Session
from services.auth_verifier import AuthVerifier, auth_verifier
from services.room_router import RoomRouter
import logging

# Setup logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


class SessionManager:
    """Tracks the verified identity of every Socket.IO connection"""
    
    def __init__(self):
        # Session ids whose token verification is still in flight
        self.pending: Set[str] = set()
        # Maps session_id to its bound Session
        self.sessions: Dict[str, Session] = {}
    
    def begin(self, sid: str):
        """Mark a connection as waiting for token verification"""
        self.pending.add(sid)
    
    def is_pending(self, sid: str) -> bool:
        return sid in self.pending
    
    def bind(self, sid: str, identity: str) -> Optional[Session]:
        """
        Bind a verified identity to a pending connection
        
        Returns None if the connection is no longer pending (it disconnected
        during verification or was already bound), so a late result can
        never create or replace a session.
        """
        if sid not in self.pending:
            return None
        
        self.pending.discard(sid)
        session = Session(sid=sid, identity=identity)
        self.sessions[sid] = session
        logger.info(f"Session {sid} bound to user {identity}")
        return session
    
    def get_session(self, sid: str) -> Optional[Session]:
        """Get the Session bound to a connection"""
        return self.sessions.get(sid)
    
    def disconnect(self, sid: str) -> Optional[Session]:
        """Forget a connection, pending or bound. Returns the released Session if any"""
        self.pending.discard(sid)
        session = self.sessions.pop(sid, None)
        if session:
            logger.info(f"Session {sid} of user {session.identity} released")
        return session
    
    def get_online_sessions_count(self) -> int:
        """Get total number of authenticated connections"""
        return len(self.sessions)


def extract_token_from_handshake(environ: dict, auth: Any = None) -> Optional[str]:
    """
    Extract bearer token from the handshake auth payload OR the query string
    
    Args:
        environ: Socket.IO environ dict
        auth: Auth payload sent by the client (`io(url, { auth: { token } })`)
        
    Returns:
        Token string if found, None otherwise
    """
    # Auth payload wins over the query parameter
    if isinstance(auth, dict):
        token = auth.get('token')
        if isinstance(token, str) and token:
            return token
    
    query_string = environ.get('QUERY_STRING', '')
    if not query_string:
        scope = environ.get('asgi.scope')
        if isinstance(scope, dict):
            query_string = scope.get('query_string', b'')
    
    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors='ignore')
    
    if query_string:
        params = parse_qs(query_string)
        token = params.get('token', [None])[0]
        if token:
            return token
    
    return None


# Engine.IO only treats the bare string '*' as "any origin"
cors_allowed_origins = '*' if '*' in settings.CORS_ALLOWED_ORIGINS else settings.CORS_ALLOWED_ORIGINS

# Create global Socket.IO server with proper configuration
sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins=cors_allowed_origins,
    logger=settings.SOCKETIO_LOGGER,
    engineio_logger=settings.SOCKETIO_LOGGER,
    ping_timeout=settings.PING_TIMEOUT,
    ping_interval=settings.PING_INTERVAL
)


async def emit_to_connection(event: str, data: Any, sid: str):
    """Push one event to one connection on the default namespace"""
    await sio.emit(event, data, to=sid)


# Global session manager and room router instances
manager = SessionManager()
router = RoomRouter(emit_to_connection)


class AuthNamespace(socketio.AsyncNamespace):
    """Authenticated namespace that gates every connection on token verification.

    No event handler of a subclass runs for a connection until `on_connect`
    has bound a Session to it. Implement `handle_connect(self, sid, session)`
    and/or `handle_disconnect(self, sid, session)` in subclasses to run
    namespace-specific logic after admission or on disconnect.
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        verifier: Optional[AuthVerifier] = None,
        sessions: Optional[SessionManager] = None,
    ):
        super().__init__(namespace)
        self.verifier = verifier or auth_verifier
        self.sessions = sessions or manager

    async def on_connect(self, sid, environ, auth=None):
        try:
            session = await self.authenticate(sid, environ, auth)
        except AuthFailure as e:
            raise socketio.exceptions.ConnectionRefusedError(e.message)

        logger.info(f"Token verified for user {session.identity} (session {sid})")

        if hasattr(self, 'handle_connect'):
            try:
                await self.handle_connect(sid, session)
            except Exception:
                logger.exception('Error in handle_connect hook')

    async def authenticate(self, sid: str, environ: dict, auth: Any = None) -> Session:
        """
        Verify the handshake token and bind the resulting identity to sid

        Raises:
            AuthFailure: With a generic message; the specific cause is only logged
        """
        token = extract_token_from_handshake(environ, auth)
        if not token:
            logger.warning(f"Connection attempt without token from {sid} to {self.namespace}")
            raise AuthFailure("token missing")

        self.sessions.begin(sid)
        try:
            identity = await self.verifier.verify(token)
        except AuthFailure as e:
            self.sessions.disconnect(sid)
            cause = f"{e.message} ({e.__cause__.__class__.__name__})" if e.__cause__ else e.message
            logger.warning(f"Token verification failed for session {sid}: {cause}")
            raise AuthFailure("invalid or expired token") from e
        except Exception as e:
            self.sessions.disconnect(sid)
            logger.exception(f"Unexpected error verifying token for session {sid}")
            raise AuthFailure("invalid or expired token") from e

        # The client may have gone away while verification was in flight
        session = None
        if self.is_transport_connected(sid):
            session = self.sessions.bind(sid, identity)
        if session is None:
            self.sessions.disconnect(sid)
            logger.info(f"Session {sid} closed during token verification, discarding result")
            raise AuthFailure("connection closed during verification")

        return session

    def is_transport_connected(self, sid: str) -> bool:
        """Whether the Socket.IO server still knows about this connection"""
        if self.server is None:
            return True
        return self.server.manager.is_connected(sid, self.namespace)

    async def on_disconnect(self, sid, reason=None):
        logger.info(f"Client disconnected from {self.namespace}: {sid}")
        session = self.sessions.get_session(sid)
        # Call subclass hook before releasing the session
        if session and hasattr(self, 'handle_disconnect'):
            try:
                await self.handle_disconnect(sid, session)
            except Exception:
                logger.exception('Error in handle_disconnect hook')

        self.sessions.disconnect(sid)

    def get_session(self, sid) -> Optional[Session]:
        """Return the Session bound to sid or None if it was never admitted"""
        return self.sessions.get_session(sid)
