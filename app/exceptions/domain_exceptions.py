# app/exceptions/domain_exceptions.py

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base class for all domain exceptions"""
    
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class BadRequestException(DomainException):
    """Exception raised for invalid client requests"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=400,
            details=details
        )


class UnauthorizedException(DomainException):
    """Exception raised for unauthorized access"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=401,
            details=details
        )


class ForbiddenException(DomainException):
    """Exception raised for forbidden access"""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=403,
            details=details
        )


class AuthFailure(UnauthorizedException):
    """
    Raised when a connection cannot be authenticated.
    
    The message must never contain upstream response bodies; it is either
    a sanitized cause (verifier side) or the generic client-facing text
    (gate side).
    """
    pass


class AuthorizationViolation(ForbiddenException):
    """Raised when a session claims an identity other than its own"""
    
    def __init__(self, claimed_id: str, identity: str):
        super().__init__(
            message=f"claimed identity {claimed_id} does not match session identity {identity}",
            details={"claimed_id": claimed_id, "identity": identity}
        )
        self.claimed_id = claimed_id
        self.identity = identity


class InvalidEventPayload(BadRequestException):
    """Raised when a Socket.IO event payload is missing or has mistyped fields"""
    pass
