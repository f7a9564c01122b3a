# contextly/services/inflight.py
from __future__ import annotations
import threading
from typing import Optional

_lock = threading.Lock()
# session ids with an answer currently streaming through the relay
_active: set[str] = set()

def acquire(session_id: str) -> bool:
    """Claim the session for one streaming turn. False if already busy."""
    with _lock:
        if session_id in _active:
            return False
        _active.add(session_id)
        return True

def release(session_id: str) -> None:
    with _lock:
        _active.discard(session_id)

def is_active(session_id: Optional[str]) -> bool:
    if not session_id:
        return False
    with _lock:
        return session_id in _active

def count() -> int:
    with _lock:
        return len(_active)

def clear_all() -> None:
    """Utility for tests."""
    with _lock:
        _active.clear()
