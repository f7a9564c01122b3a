import json
from typing import Any, Dict, List, Optional

import pytest

from contextly.services import inflight
from contextly.services.chat_client import UpstreamError


def record_line(kind: str, value: str, prefix: str = "data: ") -> str:
    return prefix + json.dumps({"type": kind, "value": value}, ensure_ascii=False) + "\n"


class FakeChatClient:
    """Stands in for the upstream backend: canned history and canned stream chunks."""

    def __init__(self, chunks: Optional[List[bytes]] = None, records: Optional[List[Dict[str, Any]]] = None,
                 fail_after: Optional[int] = None, fetch_status: Optional[int] = None):
        self.chunks = chunks or []
        self.records = records or []
        self.fail_after = fail_after
        self.fetch_status = fetch_status
        self.sent: List[Dict[str, str]] = []
        self.closed = False

    def fetch_messages(self, session_id: str, token: str):
        if self.fetch_status is not None:
            raise UpstreamError("Failed to fetch messages", status_code=self.fetch_status)
        return list(self.records)

    def stream_chat(self, session_id: str, message: str, token: str):
        self.sent.append({"sessionId": session_id, "message": message, "token": token})
        try:
            for i, chunk in enumerate(self.chunks):
                if self.fail_after is not None and i >= self.fail_after:
                    raise UpstreamError("stream failed: connection reset")
                yield chunk
            if self.fail_after is not None and self.fail_after >= len(self.chunks):
                raise UpstreamError("stream failed: connection reset")
        finally:
            self.closed = True


@pytest.fixture
def fake_client_factory():
    return FakeChatClient


@pytest.fixture(autouse=True)
def _reset_inflight():
    inflight.clear_all()
    yield
    inflight.clear_all()


@pytest.fixture
def record():
    """record("text", "hi") -> b'data: {"type": "text", "value": "hi"}\\n'"""
    def _make(kind: str, value: str, prefix: str = "data: ") -> bytes:
        return record_line(kind, value, prefix).encode("utf-8")
    return _make
