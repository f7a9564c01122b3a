# contextly/models/message.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .segments import Content

logger = logging.getLogger("contextly.models.message")

_DATETIME = TypeAdapter(datetime)

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
MESSAGE_ROLES = {ROLE_USER, ROLE_ASSISTANT}

Role = Literal["user", "assistant"]


def sanitize_role(role: Optional[str]) -> str:
    return role if role in MESSAGE_ROLES else ROLE_USER


class Message(BaseModel):
    """One chat turn as the upstream backend stores it."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    role: Role = ROLE_USER
    content: Content = ""
    timestamp: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("timeStamp", "timestamp"),
        serialization_alias="timeStamp",
    )
    id: Optional[str] = Field(None, alias="_id")
    session_id: Optional[str] = Field(None, alias="sessionId")
    user_id: Optional[str] = Field(None, alias="userId")

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, v: Any) -> str:
        return sanitize_role(v)

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _loose_timestamp(cls, v: Any) -> Any:
        """An unreadable timestamp is dropped; the message itself is kept."""
        if v is None or isinstance(v, datetime):
            return v
        if isinstance(v, str) and not v.strip():
            return None
        try:
            return _DATETIME.validate_python(v)
        except ValidationError:
            logger.warning("message: unparseable timestamp %r ignored", v)
            return None

    def sort_instant(self) -> Optional[float]:
        """Epoch seconds; naive timestamps are read as UTC."""
        if self.timestamp is None:
            return None
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.timestamp()

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    session_id: str = Field(..., alias="sessionId", min_length=1)
    message: str


class NormalizeRequest(BaseModel):
    content: str
