# contextly/services/event_parser.py
from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from contextly.models.events import FallbackEvent, StreamEvent, StreamRecord, TypedEvent
from contextly.models.segments import SEGMENT_SOURCE, sanitize_kind

logger = logging.getLogger("contextly.event_parser")

EVENT_PREFIX = "data:"

# observed upstream misspellings -> canonical kind
KIND_TYPOS = {
    "socure": SEGMENT_SOURCE,
}


def strip_prefix(line: str) -> str:
    if line.startswith(EVENT_PREFIX):
        rest = line[len(EVENT_PREFIX):]
        return rest[1:] if rest.startswith(" ") else rest
    return line


def normalize_kind(raw: str) -> str:
    """
    Wire type to segment kind. The type is trimmed and lowercased, known
    misspellings ("socure") map to their kind, and anything else outside
    text/source/link falls back to text.
    """
    kind = (raw or "").strip().lower()
    kind = KIND_TYPOS.get(kind, kind)
    return sanitize_kind(kind)


def decode_record(payload: str) -> Optional[StreamRecord]:
    """Validated record, or None when the payload is not a {type, value} object."""
    try:
        return StreamRecord.model_validate_json(payload)
    except ValidationError:
        return None


def parse_line(line: str) -> Optional[StreamEvent]:
    """
    Classify one complete line of the live stream.
    - blank -> None
    - {"type","value"} record (optionally "data: "-prefixed) -> TypedEvent
    - anything else -> FallbackEvent with the unprefixed line text
    """
    if not line or not line.strip():
        return None

    payload = strip_prefix(line)
    record = decode_record(payload)
    if record is None:
        logger.debug("event_parser: fallback text len=%d", len(payload))
        return FallbackEvent(value=payload)

    kind = normalize_kind(record.type)
    if kind != record.type:
        logger.debug("event_parser: type %r coerced to %s", record.type, kind)
    return TypedEvent(kind=kind, value=record.value)
