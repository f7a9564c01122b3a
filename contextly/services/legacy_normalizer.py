# contextly/services/legacy_normalizer.py
"""
Re-express persisted inline-tag messages as segment sequences.

Older assistant messages were stored as one flat string with inline markers:

    see <linkStart>https://example.org</linkEnd> and <sourceStart>p. 3</sourceStart>

Opening tags are matched case-insensitively. A link run may be closed by
`</linkEnd>`, `<linkEnd>` or a reused `</linkStart>`; a source run only by
`</sourceStart>`. An unterminated run swallows the rest of the string.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Union

from contextly.models.segments import SEGMENT_LINK, SEGMENT_SOURCE, SEGMENT_TEXT, Content, Segment

logger = logging.getLogger("contextly.legacy_normalizer")

OPEN_RE = re.compile(r"<(linkStart|sourceStart)>", re.IGNORECASE)
CLOSE_RE = {
    SEGMENT_LINK: re.compile(r"</linkEnd>|<linkEnd>|</linkStart>", re.IGNORECASE),
    SEGMENT_SOURCE: re.compile(r"</sourceStart>", re.IGNORECASE),
}

SCAN_OPEN = "scanning-for-open"
SCAN_CLOSE = "scanning-for-close"


def _family(tag_name: str) -> str:
    return SEGMENT_LINK if tag_name.lower() == "linkstart" else SEGMENT_SOURCE


def scan_segments(raw: str) -> List[Segment]:
    """Scan left to right with a single cursor; always terminates."""
    segments: List[Segment] = []
    pos = 0
    state = SCAN_OPEN
    family: Optional[str] = None

    while True:
        if state == SCAN_OPEN:
            if pos >= len(raw):
                break
            m = OPEN_RE.search(raw, pos)
            if m is None:
                segments.append(Segment(kind=SEGMENT_TEXT, value=raw[pos:]))
                break
            if m.start() > pos:
                segments.append(Segment(kind=SEGMENT_TEXT, value=raw[pos:m.start()]))
            family = _family(m.group(1))
            pos = m.end()
            state = SCAN_CLOSE
            continue

        m = CLOSE_RE[family].search(raw, pos)
        if m is None:
            # unterminated: the run owns the rest of the string
            segments.append(Segment(kind=family, value=raw[pos:]))
            break
        segments.append(Segment(kind=family, value=raw[pos:m.start()]))
        pos = m.end()
        state = SCAN_OPEN

    return segments


def normalize_content(raw: Union[str, list]) -> Content:
    """
    Returns the original string when there is nothing to normalize,
    otherwise the segment sequence. Lists are treated as already segmented.
    """
    if not isinstance(raw, str):
        return raw
    if OPEN_RE.search(raw) is None:
        return raw

    segments = scan_segments(raw)
    if len(segments) == 1 and segments[0].kind == SEGMENT_TEXT and segments[0].value == raw:
        return raw
    logger.debug("legacy_normalizer: %d chars -> %d segments", len(raw), len(segments))
    return segments
