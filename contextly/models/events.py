# contextly/models/events.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from pydantic import BaseModel, ConfigDict


class StreamRecord(BaseModel):
    """Wire shape of one structured stream line: {"type": ..., "value": ...}."""
    model_config = ConfigDict(extra="ignore", strict=True)

    type: str
    value: str


@dataclass(frozen=True)
class TypedEvent:
    kind: str
    value: str


@dataclass(frozen=True)
class FallbackEvent:
    # raw line text that failed structured decoding
    value: str


StreamEvent = Union[TypedEvent, FallbackEvent]
