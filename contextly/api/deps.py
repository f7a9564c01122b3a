# contextly/api/deps.py
from typing import Optional

from fastapi import Header, HTTPException

from contextly.services.chat_client import ChatClient

_client: Optional[ChatClient] = None


def get_client() -> ChatClient:
    global _client
    if _client is None:
        _client = ChatClient()
    return _client


def bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Pass-through of the caller's token; validation is the upstream's job."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="No authentication token found")
    return token.strip()
