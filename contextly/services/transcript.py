# contextly/services/transcript.py
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Tuple

from pydantic import ValidationError

from contextly.models.message import ROLE_ASSISTANT, Message
from contextly.models.segments import is_segmented
from contextly.services.legacy_normalizer import normalize_content

logger = logging.getLogger("contextly.transcript")


def _order_key(msg: Message) -> Tuple[int, float, int]:
    instant = msg.sort_instant()
    # absent timestamps first; on a tie assistant goes after everyone else
    return (
        0 if instant is None else 1,
        instant or 0.0,
        1 if msg.role == ROLE_ASSISTANT else 0,
    )


def order_messages(messages: Iterable[Message]) -> List[Message]:
    """Stable ascending sort by timestamp with the assistant-last tie-break."""
    return sorted(messages, key=_order_key)


def normalize_message(msg: Message) -> Message:
    if is_segmented(msg.content):
        return msg
    content = normalize_content(msg.content)
    if content is msg.content:
        return msg
    return msg.model_copy(update={"content": content})


def load_transcript(records: Iterable[Mapping[str, Any]]) -> List[Message]:
    """
    Validate persisted records, normalize legacy inline-tag content once,
    and order the result for display.
    """
    out: List[Message] = []
    bad = 0
    for rec in records or []:
        try:
            msg = Message.model_validate(rec)
        except ValidationError as e:
            bad += 1
            logger.warning("transcript: skipping bad record: %s", e.errors()[:1])
            continue
        out.append(normalize_message(msg))
    logger.info("transcript: loaded=%d bad=%d", len(out), bad)
    return order_messages(out)
