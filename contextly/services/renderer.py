# contextly/services/renderer.py
from __future__ import annotations

import html
from typing import List, Protocol

from contextly.models.message import ROLE_USER, Message
from contextly.models.segments import SEGMENT_LINK, SEGMENT_SOURCE, Content, is_segmented


class SegmentRenderer(Protocol):
    """What a view layer must provide to draw a message body."""

    def text(self, value: str) -> str: ...

    def source(self, value: str) -> str: ...

    def link(self, value: str) -> str: ...


def render_content(content: Content, renderer: SegmentRenderer) -> str:
    # legacy strings that never needed normalization render as plain text
    if not is_segmented(content):
        return renderer.text(content)

    parts: List[str] = []
    for seg in content:
        if seg.kind == SEGMENT_SOURCE:
            parts.append(renderer.source(seg.value))
        elif seg.kind == SEGMENT_LINK:
            parts.append(renderer.link(seg.value))
        else:
            parts.append(renderer.text(seg.value))
    return "".join(parts)


class PlainTextRenderer:
    def text(self, value: str) -> str:
        return value

    def source(self, value: str) -> str:
        return f"[{value}]"

    def link(self, value: str) -> str:
        return f"<{value}>"


class HtmlRenderer:
    """Inline text, citation chips and anchors."""

    def text(self, value: str) -> str:
        return html.escape(value)

    def source(self, value: str) -> str:
        return f'<span class="source-chip">{html.escape(value)}</span>'

    def link(self, value: str) -> str:
        href = value.strip()
        if not href.lower().startswith(("http://", "https://")):
            return f'<span class="link-text">{html.escape(value)}</span>'
        return (
            f'<a href="{html.escape(href, quote=True)}" target="_blank" '
            f'rel="noopener noreferrer">{html.escape(value)}</a>'
        )


def render_transcript_html(messages: List[Message], title: str = "Contextly") -> str:
    renderer = HtmlRenderer()
    rows = []
    for m in messages:
        css = "user-message" if m.role == ROLE_USER else "assistant-message"
        body = render_content(m.content, renderer)
        rows.append(f'  <div class="message {css}"><div class="message-content">{body}</div></div>')
    return (
        "<!doctype html>\n<meta charset=\"utf-8\"/>\n"
        f"<title>{html.escape(title)}</title>\n"
        "<body style=\"font:14px/1.4 system-ui, sans-serif\">\n"
        "<div class=\"chat-messages\">\n" + "\n".join(rows) + "\n</div>\n</body>"
    )
