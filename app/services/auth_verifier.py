# app/services/auth_verifier.py

import asyncio
import httpx
import logging
from typing import Optional
from pydantic import ValidationError
from config.settings import settings
from exceptions.domain_exceptions import AuthFailure
from schemas.session_schema import VerifyResponse

logger = logging.getLogger(__name__)


class AuthVerifier:
    """
    Exchanges a bearer token for a canonical user id through the identity service.
    
    Every call makes exactly one request. Results are never cached and
    failed calls are never retried.
    """
    
    def __init__(self, verify_url: str, timeout: float, client: Optional[httpx.AsyncClient] = None):
        self.verify_url = verify_url
        self.timeout = timeout
        self.client = client
    
    def get_client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client, creating it on first use"""
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout)
        return self.client
    
    async def aclose(self):
        """Close the shared HTTP client"""
        if self.client is not None:
            await self.client.aclose()
            self.client = None
    
    async def verify(self, token: str) -> str:
        """
        Resolve the user id a token belongs to
        
        Args:
            token: Opaque bearer token taken from the handshake
            
        Returns:
            Normalized user id
            
        Raises:
            AuthFailure: With a sanitized cause if the token could not be verified
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        
        try:
            # httpx timeouts apply per phase; wait_for bounds the whole exchange
            response = await asyncio.wait_for(
                self.get_client().get(self.verify_url, headers=headers, timeout=self.timeout),
                timeout=self.timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise AuthFailure("verification service timed out") from e
        except httpx.HTTPError as e:
            raise AuthFailure("verification service unreachable") from e
        
        if response.status_code != 200:
            raise AuthFailure(
                f"verification service returned status {response.status_code}",
                details={"status_code": response.status_code}
            )
        
        try:
            body = response.json()
        except ValueError as e:
            raise AuthFailure("malformed verification response") from e
        
        if not isinstance(body, dict):
            raise AuthFailure("malformed verification response")
        
        try:
            verified = VerifyResponse.model_validate(body)
        except ValidationError as e:
            raise AuthFailure("malformed verification response") from e
        
        logger.debug(f"Identity service resolved token to user {verified.user_id}")
        return verified.user_id


# Shared instance
auth_verifier = AuthVerifier(
    verify_url=settings.AUTH_VERIFY_URL,
    timeout=settings.AUTH_VERIFY_TIMEOUT_SECONDS,
)
