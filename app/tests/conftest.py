"""
Pytest configuration and fixtures for testing
"""
import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from exceptions.domain_exceptions import AuthFailure
from infrastructure.socketio_manager import SessionManager
from services.auth_verifier import AuthVerifier
from services.room_router import RoomRouter
from api.socketio.relay_namespace import RelayNamespace


# Identity service URL used by verifier tests - never actually contacted
TEST_VERIFY_URL = "http://identity.test/api/auth/verify"


@pytest.fixture
async def make_verifier():
    """Build an AuthVerifier whose HTTP client is served by a mock transport handler"""
    clients = []

    def _make(handler, timeout: float = 5.0) -> AuthVerifier:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return AuthVerifier(verify_url=TEST_VERIFY_URL, timeout=timeout, client=client)

    yield _make

    for client in clients:
        await client.aclose()


@pytest.fixture
def emit() -> AsyncMock:
    """Stand-in for the Socket.IO server's per-connection emit"""
    return AsyncMock()


@pytest.fixture
def room_router(emit: AsyncMock) -> RoomRouter:
    """Create a room router that records emits instead of sending them"""
    return RoomRouter(emit)


@pytest.fixture
def session_manager() -> SessionManager:
    """Create an empty session manager"""
    return SessionManager()


@pytest.fixture
def verifier() -> MagicMock:
    """Auth verifier mock mapping tokens to user ids"""
    tokens = {"abc": "42", "token-7": "7", "token-42-b": "42"}

    async def verify(token):
        if token not in tokens:
            raise AuthFailure("verification service returned status 401")
        return tokens[token]

    mock = MagicMock()
    mock.verify = AsyncMock(side_effect=verify)
    return mock


@pytest.fixture
def relay(verifier, session_manager, room_router) -> RelayNamespace:
    """Relay namespace wired to isolated collaborators (not registered on a server)"""
    return RelayNamespace('/', router=room_router, verifier=verifier, sessions=session_manager)


@pytest.fixture
def connect(relay: RelayNamespace):
    """Run the connect handshake for sid presenting token in the auth payload"""

    async def _connect(sid: str, token: str):
        await relay.on_connect(sid, {}, {"token": token})
        return relay.get_session(sid)

    return _connect
