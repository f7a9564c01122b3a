# contextly/services/conversation.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Generator, Iterable, List, Optional

from contextly.models.message import ROLE_ASSISTANT, ROLE_USER, Message
from contextly.models.segments import Segment
from contextly.services.chat_client import ChatClient, UpstreamError
from contextly.services.segment_accumulator import StreamState, UpdateCallback
from contextly.services.transcript import load_transcript

logger = logging.getLogger("contextly.conversation")


class TurnInProgress(RuntimeError):
    """A new message was submitted while an answer is still streaming."""


class TurnFailed(RuntimeError):
    """The stream broke; the partial answer was discarded."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def iter_turn(chunks: Iterable[bytes], state: StreamState,
              cancelled: Optional[threading.Event] = None) -> Generator[List[Segment], None, Optional[List[Segment]]]:
    """
    Drive one stream through `state`, yielding a snapshot after every chunk
    that changed the answer.
    Returns the finalized segments, or None when cancelled. Closing the
    generator early, or an exception from the chunk source, discards the state.
    """
    try:
        for chunk in chunks:
            if cancelled is not None and cancelled.is_set():
                state.discard()
                return None
            if state.feed(chunk):
                yield state.snapshot()
        if cancelled is not None and cancelled.is_set():
            state.discard()
            return None
        return state.finalize()
    except BaseException:
        state.discard()
        raise
    finally:
        close = getattr(chunks, "close", None)
        if close is not None:
            close()


def run_turn(chunks: Iterable[bytes], state: StreamState,
             cancelled: Optional[threading.Event] = None) -> Optional[List[Segment]]:
    turn = iter_turn(chunks, state, cancelled)
    while True:
        try:
            next(turn)
        except StopIteration as stop:
            return stop.value


class Conversation:
    """
    Transcript of one session plus the single in-flight turn.
    Submissions are refused while a turn is streaming.
    """

    def __init__(self, session_id: str, client: ChatClient, token: str):
        self.session_id = session_id
        self.client = client
        self.token = token
        self.messages: List[Message] = []
        self._lock = threading.Lock()
        self._state: Optional[StreamState] = None
        self._cancelled = threading.Event()

    @property
    def is_streaming(self) -> bool:
        return self._state is not None

    @property
    def partial(self) -> List[Segment]:
        """In-progress view of the streaming answer (empty when idle)."""
        state = self._state
        return state.snapshot() if state is not None else []

    def load(self) -> List[Message]:
        records = self.client.fetch_messages(self.session_id, self.token)
        self.messages = load_transcript(records)
        return self.messages

    def abort(self) -> None:
        if self._state is not None:
            logger.info("conversation: abort requested session=%s", self.session_id)
            self._cancelled.set()

    def send(self, text: str, on_update: Optional[UpdateCallback] = None) -> Optional[Message]:
        """
        Submit one user message and stream the answer.
        Returns the new assistant message, or None if the input was blank
        or the turn was aborted.
        """
        if not text or not text.strip():
            return None

        with self._lock:
            if self._state is not None:
                raise TurnInProgress(f"session {self.session_id} is already streaming")
            self._cancelled.clear()
            state = self._state = StreamState(on_update=on_update)

        self.messages.append(Message(role=ROLE_USER, content=text, timestamp=_now(),
                                     session_id=self.session_id))
        logger.info("conversation: turn start session=%s len=%d", self.session_id, len(text))
        try:
            chunks = self.client.stream_chat(self.session_id, text, self.token)
            segments = run_turn(chunks, state, self._cancelled)
        except UpstreamError as e:
            logger.warning("conversation: turn failed session=%s: %s", self.session_id, e)
            raise TurnFailed(str(e)) from e
        finally:
            with self._lock:
                self._state = None

        if segments is None:
            logger.info("conversation: turn aborted session=%s", self.session_id)
            return None

        reply = Message(role=ROLE_ASSISTANT, content=segments, timestamp=_now(),
                        session_id=self.session_id)
        self.messages.append(reply)
        logger.info("conversation: turn done session=%s segments=%d", self.session_id, len(segments))
        return reply
