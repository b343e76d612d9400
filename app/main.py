# app/main.py

from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi import FastAPI
from config.settings import settings
from services.auth_verifier import auth_verifier
import socketio
import uvicorn
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events"""
    logger.info(f"Socket.IO relay listening on port {settings.PORT}")
    logger.info(f"Verifying tokens against {settings.AUTH_VERIFY_URL}")

    yield

    # Shutdown: release the identity service HTTP client
    await auth_verifier.aclose()


fastapi_app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


# Health check endpoint
@fastapi_app.get("/health", response_class=PlainTextResponse)
async def health_check():
    """Health check endpoint for Docker and monitoring"""
    return "OK"


# CORS configuration - permissive until the frontend origins are known
fastapi_app.add_middleware(
    middleware_class=CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_methods=settings.CORS_ALLOWED_METHODS,
    allow_headers=["*"],
)

# Import Socket.IO instance and register all namespaces
from api.socketio import sio

# Wrap FastAPI app with Socket.IO
# This allows Socket.IO to handle /socket.io/* paths and pass everything else to FastAPI
# Namespaces are registered in api/socketio/__init__.py
app = socketio.ASGIApp(sio, fastapi_app)


def run():
    """Console entrypoint: serve the relay with uvicorn"""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
