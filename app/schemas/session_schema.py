# app/schemas/session_schema.py

from dataclasses import dataclass
from typing import Any, Annotated
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def normalize_user_id(value: Any) -> str:
    """
    Convert a user id coming from a transport payload or the identity
    service into its canonical string form.
    
    Only strings and integers are accepted, so 42 and "42" compare equal
    while booleans, floats and containers are rejected.
    
    Raises:
        ValueError: If the value cannot be used as a user id
    """
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(f"user id must be a string or integer, got {type(value).__name__}")
    
    user_id = str(value)
    if not user_id:
        raise ValueError("user id cannot be empty")
    return user_id


UserId = Annotated[str, BeforeValidator(normalize_user_id)]


@dataclass(frozen=True)
class Session:
    """Verified identity bound to one live Socket.IO connection"""
    sid: str
    identity: str


class VerifyResponse(BaseModel):
    """Success body returned by the identity service"""
    user_id: UserId


# Socket.IO Event DTOs

class SendMessageEvent(BaseModel):
    """
    Schema for send_message Socket.IO event.
    
    Only the routing ids are validated. The event itself is forwarded
    as received, so extra fields are allowed and never rewritten.
    """
    sender_id: UserId = Field(..., alias="senderId")
    receiver_id: UserId = Field(..., alias="receiverId")
    
    model_config = ConfigDict(extra="allow")
