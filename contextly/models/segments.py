# contextly/models/segments.py
from __future__ import annotations

from typing import Any, List, Literal, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

SEGMENT_TEXT = "text"
SEGMENT_SOURCE = "source"
SEGMENT_LINK = "link"
SEGMENT_KINDS = {SEGMENT_TEXT, SEGMENT_SOURCE, SEGMENT_LINK}

SegmentKind = Literal["text", "source", "link"]


def sanitize_kind(kind: Any) -> str:
    """Closed enumeration: anything unknown renders as plain text."""
    return kind if isinstance(kind, str) and kind in SEGMENT_KINDS else SEGMENT_TEXT


class Segment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SegmentKind = SEGMENT_TEXT
    value: str = ""

    @model_validator(mode="before")
    @classmethod
    def _accept_wire_type(cls, data: Any) -> Any:
        # stream records say "type"; stored segments may too
        if isinstance(data, dict) and "kind" not in data and "type" in data:
            data = {**data, "kind": data["type"]}
        return data

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, v: Any) -> str:
        return sanitize_kind(v)

    @property
    def is_text(self) -> bool:
        return self.kind == SEGMENT_TEXT


# A message body: either a segment sequence or an untouched legacy string.
Content = Union[List[Segment], str]


def is_segmented(content: Any) -> bool:
    """Runtime shape check; no flag is stored on the message."""
    return isinstance(content, list)


def dump_content(content: Content) -> Union[List[dict], str]:
    if isinstance(content, str):
        return content
    return [s.model_dump() for s in content]
