"""Unit tests for the Gemini client wrapper."""

import json
from types import SimpleNamespace

import httpx
import pytest
from tenacity import wait_none

from editorial_translator.entities import SourceCitation
from editorial_translator.gemini_client import (
    AuthenticationError,
    GeminiApiError,
    GeminiClient,
    InvalidRequestError,
    ModelOverloadedError,
    RateLimitError,
    _redact_key,
)


def _event(text=None, sources=None):
    candidate = {}
    if text is not None:
        candidate["content"] = {"parts": [{"text": text}], "role": "model"}
    if sources:
        candidate["groundingMetadata"] = {
            "groundingChunks": [{"web": {"uri": uri, "title": title}} for uri, title in sources]
        }
    return "data: " + json.dumps({"candidates": [candidate]}, ensure_ascii=False)


class FakeResponse:
    """Lightweight stand-in for a streamed httpx.Response."""

    def __init__(self, status_code=200, lines=None, json_data=None, raise_error=None):
        self.status_code = status_code
        self._lines = lines or []
        self._json_data = json_data if json_data is not None else {}
        self._raise_error = raise_error
        self.closed = False

    def raise_for_status(self):
        if self._raise_error:
            raise self._raise_error

    def json(self):
        return self._json_data

    def read(self):
        return b""

    def iter_lines(self):
        yield from self._lines

    def close(self):
        self.closed = True


class StubClient:
    """Fake httpx.Client that returns a sequence of responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.calls = 0
        self.closed = False

    def build_request(self, method, url, params=None, json=None):
        request = SimpleNamespace(method=method, url=url, params=params, json=json)
        self.requests.append(request)
        return request

    def send(self, request, stream=False):
        return self._next()

    def get(self, url, timeout=None):
        self.requests.append(SimpleNamespace(method="GET", url=url))
        return self._next()

    def _next(self):
        self.calls += 1
        if not self.responses:
            raise AssertionError("No more stub responses configured")
        next_response = self.responses.pop(0)
        if isinstance(next_response, Exception):
            raise next_response
        return next_response

    def close(self):
        self.closed = True


def _client(monkeypatch, responses, max_retries=1):
    stub = StubClient(responses)
    monkeypatch.setattr(httpx, 'Client', lambda *a, **k: stub)
    client = GeminiClient(api_key='key-123456789', timeout=1, max_retries=max_retries,
                          base_url='https://example.test/v1beta')
    client._retry = client._retry.copy(wait=wait_none())
    return client, stub


def test_missing_key_raises(monkeypatch):
    monkeypatch.delenv('GEMINI_API_KEY', raising=False)
    monkeypatch.delenv('API_KEY', raising=False)

    with pytest.raises(AuthenticationError):
        GeminiClient()


def test_redact_key():
    assert _redact_key('') == '[EMPTY]'
    assert _redact_key('short') == '****'
    assert _redact_key('abcd123456wxyz') == 'abcd...wxyz'


def test_check_status_maps_status_codes(monkeypatch):
    client, _ = _client(monkeypatch, [])

    with pytest.raises(InvalidRequestError, match='bad field'):
        client._check_status(FakeResponse(400, json_data={"error": {"message": "bad field"}}))

    with pytest.raises(AuthenticationError):
        client._check_status(FakeResponse(status_code=401))

    with pytest.raises(AuthenticationError):
        client._check_status(FakeResponse(status_code=403))

    with pytest.raises(RateLimitError):
        client._check_status(FakeResponse(status_code=429))

    with pytest.raises(ModelOverloadedError):
        client._check_status(FakeResponse(status_code=503))

    http_error = httpx.HTTPStatusError(
        "boom",
        request=httpx.Request('POST', 'https://example.com'),
        response=httpx.Response(status_code=404),
    )

    with pytest.raises(GeminiApiError):
        client._check_status(FakeResponse(status_code=404, raise_error=http_error))

    client.close()


def test_stream_generate_yields_text_and_sources(monkeypatch):
    response = FakeResponse(lines=[
        _event("Hello "),
        "",
        ": keep-alive",
        _event("world", sources=[("https://a.example", "A")]),
    ])
    client, stub = _client(monkeypatch, [response])

    chunks = list(client.stream_generate(
        'gemini-test', 'নমস্কার', system_instruction='Translate', temperature=0.1, use_search=True
    ))

    assert [chunk.text for chunk in chunks] == ["Hello ", "world"]
    assert chunks[1].sources == [SourceCitation(uri="https://a.example", title="A")]
    assert response.closed is True

    request = stub.requests[0]
    assert request.url == 'https://example.test/v1beta/models/gemini-test:streamGenerateContent'
    assert request.params == {"alt": "sse"}
    assert request.json["contents"][0]["parts"][0]["text"] == 'নমস্কার'
    assert request.json["systemInstruction"]["parts"][0]["text"] == 'Translate'
    assert request.json["generationConfig"]["temperature"] == 0.1
    assert request.json["tools"] == [{"google_search": {}}]


def test_stream_generate_omits_tools_without_search(monkeypatch):
    client, stub = _client(monkeypatch, [FakeResponse(lines=[_event("ok")])])

    assert client.generate('gemini-test', 'text') == "ok"
    assert "tools" not in stub.requests[0].json
    assert "systemInstruction" not in stub.requests[0].json


def test_stream_generate_retries_while_opening(monkeypatch):
    responses = [
        FakeResponse(status_code=503),
        httpx.ConnectTimeout("timeout"),
        FakeResponse(lines=[_event("Hello")]),
    ]
    client, stub = _client(monkeypatch, responses, max_retries=3)

    assert client.generate('gemini-test', 'text') == "Hello"
    assert stub.calls == 3
    assert stub.closed is False  # Still open until explicit close

    client.close()
    assert stub.closed is True


def test_stream_generate_raises_rate_limit_without_retry(monkeypatch):
    client, stub = _client(monkeypatch, [FakeResponse(status_code=429)], max_retries=3)

    with pytest.raises(RateLimitError):
        list(client.stream_generate('gemini-test', 'text'))
    assert stub.calls == 1


def test_stream_generate_gives_up_after_max_retries(monkeypatch):
    client, stub = _client(
        monkeypatch, [FakeResponse(status_code=503), FakeResponse(status_code=503)], max_retries=2
    )

    with pytest.raises(ModelOverloadedError):
        list(client.stream_generate('gemini-test', 'text'))
    assert stub.calls == 2


def test_malformed_event_raises(monkeypatch):
    client, _ = _client(monkeypatch, [FakeResponse(lines=["data: {not json"])])

    with pytest.raises(GeminiApiError):
        list(client.stream_generate('gemini-test', 'text'))


def test_error_event_raises(monkeypatch):
    line = "data: " + json.dumps({"error": {"message": "quota exhausted"}})
    client, _ = _client(monkeypatch, [FakeResponse(lines=[line])])

    with pytest.raises(GeminiApiError, match="quota exhausted"):
        list(client.stream_generate('gemini-test', 'text'))


def test_events_without_candidates_are_skipped(monkeypatch):
    lines = ["data: " + json.dumps({"usageMetadata": {}}), _event("done")]
    client, _ = _client(monkeypatch, [FakeResponse(lines=lines)])

    assert [chunk.text for chunk in client.stream_generate('gemini-test', 'text')] == ["done"]


def test_health_check(monkeypatch):
    client, stub = _client(monkeypatch, [FakeResponse(), FakeResponse(status_code=401)])

    assert client.health_check('gemini-test') is True
    assert stub.requests[0].url.endswith('/models/gemini-test')
    assert client.health_check('gemini-test') is False
