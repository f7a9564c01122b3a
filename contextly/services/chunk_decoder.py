# contextly/services/chunk_decoder.py
from __future__ import annotations

import codecs
from typing import List, Optional, Union

Chunk = Union[bytes, bytearray, str]


class ChunkDecoder:
    """
    Turns raw stream chunks into complete lines.

    A line split across chunks is carried until its newline arrives, and a
    UTF-8 sequence split across chunks is held by the incremental decoder
    instead of being replaced.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self.carry = ""

    def _decode(self, chunk: Chunk, final: bool = False) -> str:
        if isinstance(chunk, str):
            # text chunk: settle any pending bytes first so order is kept
            return self._decoder.decode(b"", final=True) + chunk
        return self._decoder.decode(bytes(chunk), final=final)

    def feed(self, chunk: Chunk) -> List[str]:
        text = self.carry + self._decode(chunk)
        parts = text.split("\n")
        self.carry = parts.pop()
        return [p[:-1] if p.endswith("\r") else p for p in parts]

    def flush(self) -> Optional[str]:
        """Stream ended: return whatever is left as one last line."""
        tail = self.carry + self._decode(b"", final=True)
        self.carry = ""
        if tail.endswith("\r"):
            tail = tail[:-1]
        return tail or None
