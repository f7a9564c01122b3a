# Make `from contextly.models import Segment, Message` work
from .segments import (  # re-export
    SEGMENT_TEXT, SEGMENT_SOURCE, SEGMENT_LINK, SEGMENT_KINDS,
    Segment, Content, sanitize_kind, is_segmented, dump_content,
)
from .message import (  # re-export
    ROLE_USER, ROLE_ASSISTANT, MESSAGE_ROLES, Message, ChatRequest, NormalizeRequest,
    sanitize_role,
)
from .events import StreamRecord, TypedEvent, FallbackEvent, StreamEvent  # re-export

__all__ = [
    "SEGMENT_TEXT", "SEGMENT_SOURCE", "SEGMENT_LINK", "SEGMENT_KINDS",
    "Segment", "Content", "sanitize_kind", "is_segmented", "dump_content",
    "ROLE_USER", "ROLE_ASSISTANT", "MESSAGE_ROLES", "Message", "ChatRequest",
    "NormalizeRequest", "sanitize_role",
    "StreamRecord", "TypedEvent", "FallbackEvent", "StreamEvent",
]
