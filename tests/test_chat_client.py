import pytest
import requests

from contextly.services.chat_client import ChatClient, UpstreamError


class FakeResponse:
    def __init__(self, status_code=200, payload=None, chunks=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self._chunks = chunks or []
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload

    def iter_content(self, chunk_size=1):
        for c in self._chunks:
            if isinstance(c, Exception):
                raise c
            yield c

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        if self.error:
            raise self.error
        return self.response


def test_fetch_messages_reads_chat_list():
    s = FakeSession(FakeResponse(payload={"chat": [{"role": "user", "content": "hi"}]}))
    c = ChatClient(base_url="http://up/", session=s)
    assert c.fetch_messages("s1", "tok") == [{"role": "user", "content": "hi"}]
    method, url, kwargs = s.calls[0]
    assert (method, url) == ("GET", "http://up/api/chat/s1")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_fetch_messages_tolerates_missing_chat_key():
    c = ChatClient(base_url="http://up", session=FakeSession(FakeResponse(payload={})))
    assert c.fetch_messages("s1", "tok") == []


def test_fetch_messages_http_error_carries_status():
    c = ChatClient(base_url="http://up", session=FakeSession(FakeResponse(status_code=404, text="nope")))
    with pytest.raises(UpstreamError) as ei:
        c.fetch_messages("s1", "tok")
    assert ei.value.status_code == 404


def test_fetch_messages_connection_error():
    c = ChatClient(base_url="http://up", session=FakeSession(error=requests.ConnectionError("down")))
    with pytest.raises(UpstreamError):
        c.fetch_messages("s1", "tok")


def test_stream_chat_yields_chunks_and_posts_body():
    s = FakeSession(FakeResponse(chunks=[b"a\n", b"", b"b"]))
    c = ChatClient(base_url="http://up", session=s)
    assert list(c.stream_chat("s1", "hi", "tok")) == [b"a\n", b"b"]
    method, url, kwargs = s.calls[0]
    assert (method, url) == ("POST", "http://up/api/chat")
    assert kwargs["json"] == {"sessionId": "s1", "message": "hi"}
    assert kwargs["stream"] is True


def test_stream_chat_error_mid_stream():
    s = FakeSession(FakeResponse(chunks=[b"a\n", requests.ConnectionError("reset")]))
    gen = ChatClient(base_url="http://up", session=s).stream_chat("s1", "hi", "tok")
    assert next(gen) == b"a\n"
    with pytest.raises(UpstreamError):
        next(gen)


def test_stream_chat_http_error():
    s = FakeSession(FakeResponse(status_code=500, text="boom"))
    with pytest.raises(UpstreamError) as ei:
        list(ChatClient(base_url="http://up", session=s).stream_chat("s1", "hi", "tok"))
    assert ei.value.status_code == 500
