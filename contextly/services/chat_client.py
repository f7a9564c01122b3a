# contextly/services/chat_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from contextly.core import config

logger = logging.getLogger("contextly.chat_client")


class UpstreamError(RuntimeError):
    """Transport failure or non-2xx answer from the chat backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _retry() -> Retry:
    # POST /api/chat is not idempotent upstream: only GETs are retried
    return Retry(
        total=config.TOTAL_RETRIES,
        connect=config.TOTAL_RETRIES,
        read=config.TOTAL_RETRIES,
        backoff_factor=config.BACKOFF_FACTOR,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )


def build_session() -> requests.Session:
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=_retry(), pool_maxsize=config.POOL_MAXSIZE)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s


class ChatClient:
    """Thin client for the upstream chat endpoints."""

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or config.UPSTREAM_URL).rstrip("/")
        self.session = session or build_session()

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def _timeout(self):
        return (config.CONNECT_TIMEOUT, config.READ_TIMEOUT)

    def fetch_messages(self, session_id: str, token: str) -> List[Dict[str, Any]]:
        url = f"{self.base_url}{config.CHAT_PATH}/{session_id}"
        try:
            resp = self.session.get(url, headers=self._headers(token), timeout=self._timeout())
        except requests.RequestException as e:
            logger.error("chat_client: fetch failed session=%s: %r", session_id, e)
            raise UpstreamError(f"fetch failed: {e}") from e

        if resp.status_code >= 400:
            logger.warning("chat_client: fetch HTTP %s session=%s: %s",
                           resp.status_code, session_id, resp.text[:300])
            raise UpstreamError("Failed to fetch messages", status_code=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("upstream returned non-JSON chat history") from e

        chat = data.get("chat") if isinstance(data, dict) else None
        records = chat if isinstance(chat, list) else []
        logger.info("chat_client: fetched session=%s records=%d", session_id, len(records))
        return records

    def stream_chat(self, session_id: str, message: str, token: str) -> Iterator[bytes]:
        """
        Yield raw response chunks as they arrive.
        Any transport problem, before or during the stream, raises UpstreamError.
        """
        url = f"{self.base_url}{config.CHAT_PATH}"
        body = {"sessionId": session_id, "message": message}
        try:
            with self.session.post(url, headers=self._headers(token), json=body,
                                   stream=True, timeout=self._timeout()) as r:
                if r.status_code >= 400:
                    logger.warning("chat_client: stream HTTP %s session=%s: %s",
                                   r.status_code, session_id, r.text[:300])
                    raise UpstreamError("Failed to send message", status_code=r.status_code)

                logger.info("chat_client: stream open session=%s", session_id)
                for chunk in r.iter_content(chunk_size=config.CHUNK_SIZE):
                    if chunk:
                        yield chunk
        except requests.RequestException as e:
            logger.error("chat_client: stream error session=%s: %r", session_id, e)
            raise UpstreamError(f"stream failed: {e}") from e
