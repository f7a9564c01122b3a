# contextly/services/segment_accumulator.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from contextly.models.events import StreamEvent, TypedEvent
from contextly.models.segments import SEGMENT_TEXT, Segment
from contextly.services.chunk_decoder import Chunk, ChunkDecoder
from contextly.services.event_parser import parse_line

logger = logging.getLogger("contextly.accumulator")

UpdateCallback = Callable[[List[Segment]], None]

STATE_OPEN = "open"
STATE_FINALIZED = "finalized"
STATE_DISCARDED = "discarded"


class StreamStateClosed(RuntimeError):
    pass


def append_event(segments: List[Segment], event: StreamEvent) -> None:
    """
    Merge policy.
    - text and fallback events extend an open text run or start a new one
    - source and link events always start a new segment
    """
    kind = event.kind if isinstance(event, TypedEvent) else SEGMENT_TEXT
    value = event.value

    if kind == SEGMENT_TEXT:
        if not value:
            return
        if segments and segments[-1].is_text:
            last = segments[-1]
            segments[-1] = Segment(kind=SEGMENT_TEXT, value=last.value + value)
        else:
            segments.append(Segment(kind=SEGMENT_TEXT, value=value))
        return

    segments.append(Segment(kind=kind, value=value))


class StreamState:
    """
    Transient state of one assistant turn.
    Owned by the caller for the life of the stream; `finalize()` exchanges it
    for the message content, `discard()` drops it.
    """

    def __init__(self, on_update: Optional[UpdateCallback] = None):
        self.segments: List[Segment] = []
        self.decoder = ChunkDecoder()
        self.status = STATE_OPEN
        self._on_update = on_update

    @property
    def line_carry(self) -> str:
        return self.decoder.carry

    @property
    def is_open(self) -> bool:
        return self.status == STATE_OPEN

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise StreamStateClosed(f"stream state is {self.status}")

    def snapshot(self) -> List[Segment]:
        return list(self.segments)

    def append(self, event: Optional[StreamEvent]) -> None:
        self._ensure_open()
        if event is not None:
            append_event(self.segments, event)

    def feed_line(self, line: str) -> bool:
        self._ensure_open()
        event = parse_line(line)
        if event is None:
            return False
        append_event(self.segments, event)
        return True

    def feed(self, chunk: Chunk) -> int:
        """Process one raw chunk; observers see one update per chunk."""
        self._ensure_open()
        applied = 0
        for line in self.decoder.feed(chunk):
            if self.feed_line(line):
                applied += 1
        if applied:
            self._notify()
        return applied

    def finalize(self) -> List[Segment]:
        self._ensure_open()
        tail = self.decoder.flush()
        if tail is not None and self.feed_line(tail):
            self._notify()
        self.status = STATE_FINALIZED
        content = self.snapshot()
        logger.info("accumulator: finalized segments=%d", len(content))
        return content

    def discard(self) -> None:
        if self.status == STATE_DISCARDED:
            return
        logger.info("accumulator: discarded segments=%d carry=%d",
                    len(self.segments), len(self.decoder.carry))
        self.segments = []
        self.decoder.carry = ""
        self.status = STATE_DISCARDED

    def _notify(self) -> None:
        if self._on_update is None:
            return
        self._on_update(self.snapshot())
