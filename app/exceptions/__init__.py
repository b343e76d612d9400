# app/exceptions/__init__.py

from exceptions.domain_exceptions import (
    DomainException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    AuthFailure,
    AuthorizationViolation,
    InvalidEventPayload
)

__all__ = [
    'DomainException',
    'BadRequestException',
    'UnauthorizedException',
    'ForbiddenException',
    'AuthFailure',
    'AuthorizationViolation',
    'InvalidEventPayload'
]
