# contextly/api/chat.py
from __future__ import annotations

import itertools
import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterator, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, StreamingResponse

from contextly.api.deps import bearer_token, get_client
from contextly.models.message import ROLE_ASSISTANT, ChatRequest, Message, NormalizeRequest
from contextly.models.segments import dump_content
from contextly.services import inflight
from contextly.services.chat_client import ChatClient, UpstreamError
from contextly.services.conversation import iter_turn
from contextly.services.legacy_normalizer import normalize_content
from contextly.services.renderer import render_transcript_html
from contextly.services.segment_accumulator import StreamState
from contextly.services.transcript import load_transcript

logger = logging.getLogger("contextly.api.chat")
router = APIRouter()

# upstream statuses the browser should see as-is; everything else is a 502
PASSTHROUGH_STATUSES = {401, 403, 404}


# ---------------- Helpers ----------------
def _http_error(e: UpstreamError) -> HTTPException:
    status = e.status_code if e.status_code in PASSTHROUGH_STATUSES else 502
    return HTTPException(status_code=status, detail=str(e))


def _frame(name: str, payload: Any) -> str:
    data = json.dumps(payload, ensure_ascii=False)
    return f"event: {name}\ndata: {data}\n\n"


def _load(client: ChatClient, session_id: str, token: str):
    try:
        records = client.fetch_messages(session_id, token)
    except UpstreamError as e:
        raise _http_error(e)
    return load_transcript(records)


# ---------------- History ----------------
@router.get("/{session_id}", name="chat_history")
def chat_history(session_id: str, token: str = Depends(bearer_token),
                 client: ChatClient = Depends(get_client)):
    messages = _load(client, session_id, token)
    logger.info("GET /chat/%s -> %d messages", session_id, len(messages))
    return {"chat": [m.to_wire() for m in messages]}


@router.get("/{session_id}/html", name="chat_history_html")
def chat_history_html(session_id: str, token: str = Depends(bearer_token),
                      client: ChatClient = Depends(get_client)):
    messages = _load(client, session_id, token)
    return HTMLResponse(render_transcript_html(messages, title=f"Contextly - {session_id}"))


@router.post("/normalize", name="chat_normalize")
def chat_normalize(body: NormalizeRequest):
    """Debug helper: show how a stored message body is segmented."""
    return {"content": dump_content(normalize_content(body.content))}


# ---------------- Stream relay ----------------
def _sse_relay(session_id: str, head: List[bytes], chunks: Iterator[bytes]) -> Iterator[str]:
    state = StreamState()
    turn = iter_turn(itertools.chain(head, chunks), state)
    try:
        yield ":ok\n\n"
        while True:
            try:
                snapshot = next(turn)
            except StopIteration as stop:
                segments = stop.value
                break
            yield _frame("segments", dump_content(snapshot))
        reply = Message(role=ROLE_ASSISTANT, content=segments,
                        timestamp=datetime.now(timezone.utc), session_id=session_id)
        logger.info("relay: done session=%s segments=%d", session_id, len(segments))
        yield _frame("done", reply.to_wire())
    except UpstreamError as e:
        logger.warning("relay: upstream failed mid-stream session=%s: %s", session_id, e)
        yield _frame("error", {"detail": str(e), "status": e.status_code})
    finally:
        if state.is_open:
            logger.info("relay: cancelled session=%s", session_id)
        turn.close()
        if state.is_open:
            # the turn never started, so its own cleanup did not run
            state.discard()
        close = getattr(chunks, "close", None)
        if close is not None:
            close()
        inflight.release(session_id)


@router.post("/stream", name="chat_stream")
def chat_stream(req: ChatRequest, token: str = Depends(bearer_token),
                client: ChatClient = Depends(get_client)):
    message = (req.message or "").strip()
    if not message:
        raise HTTPException(status_code=422, detail="message is empty")
    if not inflight.acquire(req.session_id):
        raise HTTPException(status_code=409, detail="an answer is already streaming for this session")

    logger.info("POST /chat/stream session=%s len=%d", req.session_id, len(message))
    try:
        chunks = iter(client.stream_chat(req.session_id, message, token))
        # open the upstream before committing to a 200
        first = next(chunks, None)
    except UpstreamError as e:
        inflight.release(req.session_id)
        raise _http_error(e)
    except BaseException:
        inflight.release(req.session_id)
        raise

    head = [first] if first is not None else []
    return StreamingResponse(
        _sse_relay(req.session_id, head, chunks),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
