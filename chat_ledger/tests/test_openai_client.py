import httpx
import pytest

from chat_ledger.domain.exceptions import (
    ApiError,
    ConfigurationError,
    NetworkError,
    RateLimitError,
    UpstreamError,
)
from chat_ledger.domain.models import ChatMessage, ChatRequest
from chat_ledger.providers.openai_client import OpenAIClient


class SettingsStub:
    openai_api_key = "sk-test-key"
    http_timeout = 1.0
    openai_base_url = "https://api.openai.com/v1"


def _request():
    return ChatRequest(provider="openai", model="chat", messages=[ChatMessage.user("hi")])


def _patch_client(monkeypatch, resp=None, error=None, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, json=None, headers=None, **_):
            if captured is not None:
                captured["url"] = url
                captured["payload"] = json
                captured["headers"] = headers
            if error is not None:
                raise error
            return resp

    monkeypatch.setattr("httpx.Client", Client)


class Resp:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


def test_openai_client_parse_basic(monkeypatch):
    captured = {}
    body = {
        "choices": [{"index": 0, "message": {"role": "assistant", "content": "ok"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2},
    }
    _patch_client(monkeypatch, resp=Resp(body=body), captured=captured)

    res = OpenAIClient(SettingsStub()).chat(_request())

    assert res.choices[0].message == ChatMessage.assistant("ok")
    assert res.usage.total_tokens == 2
    assert captured["url"] == "https://api.openai.com/v1/chat/completions"
    assert captured["payload"]["model"] == "gpt-3.5-turbo"
    assert captured["payload"]["messages"] == [{"role": "user", "content": "hi"}]
    assert captured["headers"]["Authorization"] == "Bearer sk-test-key"


def test_unregistered_model_is_passed_through(monkeypatch):
    captured = {}
    _patch_client(monkeypatch, resp=Resp(body={"choices": []}), captured=captured)
    req = ChatRequest(provider="openai", model="gpt-4o", messages=[ChatMessage.user("hi")])
    OpenAIClient(SettingsStub()).chat(req)
    assert captured["payload"]["model"] == "gpt-4o"


def test_missing_key_is_configuration_error():
    class NoKey(SettingsStub):
        openai_api_key = None

    with pytest.raises(ConfigurationError) as exc:
        OpenAIClient(NoKey())
    assert exc.value.code == "MISSING_API_KEY"


def test_network_error(monkeypatch):
    _patch_client(monkeypatch, error=httpx.ConnectError("boom"))
    with pytest.raises(NetworkError) as exc:
        OpenAIClient(SettingsStub()).chat(_request())
    assert isinstance(exc.value, UpstreamError)
    assert exc.value.http_status == 502


def test_rate_limit(monkeypatch):
    _patch_client(monkeypatch, resp=Resp(status_code=429, text="slow down"))
    with pytest.raises(RateLimitError) as exc:
        OpenAIClient(SettingsStub()).chat(_request())
    assert exc.value.code == "RATE_LIMIT"
    assert isinstance(exc.value, UpstreamError)


def test_api_error_keeps_upstream_status(monkeypatch):
    _patch_client(monkeypatch, resp=Resp(status_code=401, text="invalid key"))
    with pytest.raises(ApiError) as exc:
        OpenAIClient(SettingsStub()).chat(_request())
    assert exc.value.code == "API_ERROR"
    assert exc.value.extra["upstream_status"] == 401


@pytest.mark.parametrize(
    "body",
    [
        ValueError("not json"),
        {"error": "nope"},
        ["x"],
        {"choices": "x"},
        {"choices": ["x"]},
        {"choices": [{"message": "oops"}]},
        {"choices": [{"message": {"role": "assistant", "content": 42}}]},
    ],
)
def test_malformed_response(monkeypatch, body):
    _patch_client(monkeypatch, resp=Resp(body=body))
    with pytest.raises(ApiError) as exc:
        OpenAIClient(SettingsStub()).chat(_request())
    assert exc.value.code == "MALFORMED_RESPONSE"


def test_null_content_becomes_empty_string(monkeypatch):
    body = {"choices": [{"message": {"role": "assistant", "content": None}}]}
    _patch_client(monkeypatch, resp=Resp(body=body))
    res = OpenAIClient(SettingsStub()).chat(_request())
    assert res.choices[0].message == ChatMessage.assistant("")
    assert res.usage is None
