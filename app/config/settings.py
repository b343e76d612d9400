# app/config/settings.py

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True
    )
    
    # Server Configuration
    APP_NAME: str = "Message Relay"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    
    # Identity Service Configuration
    BACKEND_URL: str = "http://127.0.0.1:8000/api"  # Adjust per environment
    AUTH_VERIFY_TIMEOUT_SECONDS: float = 5.0
    
    # Socket.IO Configuration
    CORS_ALLOWED_ORIGINS: list[str] = ["*"]  # TODO: Restrict to the frontend origins before production
    CORS_ALLOWED_METHODS: list[str] = ["GET", "POST"]
    SOCKETIO_LOGGER: bool = False
    PING_TIMEOUT: int = 60
    PING_INTERVAL: int = 25
    
    @property
    def AUTH_VERIFY_URL(self) -> str:
        """Construct the identity service verification endpoint"""
        return f"{self.BACKEND_URL.rstrip('/')}/auth/verify"


settings = Settings()
