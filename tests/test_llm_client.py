from __future__ import annotations

import json
import threading
from typing import Any

import pytest
import requests

from sentiment_pipelines.llm_client import LlmConfig, OpenRouterClient

BASE_URL = "https://openrouter.test/api/v1/"


def _config(max_retries: int = 2) -> LlmConfig:
    return LlmConfig(
        api_key="test-key",
        base_url=BASE_URL,
        model="google/gemini-flash",
        temperature=0.0,
        timeout_sec=5.0,
        max_retries=max_retries,
        backoff_base_sec=0.0,
        backoff_max_sec=0.0,
        referer="https://example.test",
        app_title="Tests",
    )


def _response(status: int, body: Any) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = "Test"
    resp.url = BASE_URL + "chat/completions"
    resp._content = json.dumps(body).encode("utf-8")
    return resp


def _completion(content: Any) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class _ScriptedSession(requests.Session):
    """Returns (or raises) the queued outcomes in order and records each POST."""

    def __init__(self, outcomes: list[Any]):
        super().__init__()
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def post(self, url, json=None, timeout=None, **kwargs):  # type: ignore[override]
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr("sentiment_pipelines.llm_client.time.sleep", lambda _s: None)


def test_invoke_returns_message_content_and_sends_chat_payload():
    session = _ScriptedSession([_response(200, _completion('{"score": 0.3}'))])
    client = OpenRouterClient(_config(), session=session)

    assert client.invoke("rate this") == '{"score": 0.3}'

    call = session.calls[0]
    assert call["url"] == "https://openrouter.test/api/v1/chat/completions"
    assert call["timeout"] == 5.0
    assert call["json"]["model"] == "google/gemini-flash"
    assert call["json"]["messages"] == [{"role": "user", "content": "rate this"}]
    assert session.headers["Authorization"] == "Bearer test-key"
    assert session.headers["X-Title"] == "Tests"


def test_invoke_retries_rate_limit_then_succeeds():
    session = _ScriptedSession([_response(429, {}), _response(200, _completion("ok"))])
    client = OpenRouterClient(_config(max_retries=2), session=session)

    assert client.invoke("p") == "ok"
    assert len(session.calls) == 2


def test_invoke_raises_after_exhausting_retries():
    session = _ScriptedSession([_response(503, {}), _response(503, {})])
    client = OpenRouterClient(_config(max_retries=1), session=session)

    with pytest.raises(requests.HTTPError):
        client.invoke("p")
    assert len(session.calls) == 2


def test_invoke_does_not_retry_client_errors():
    session = _ScriptedSession([_response(401, {"error": "bad key"}), _response(200, _completion("ok"))])
    client = OpenRouterClient(_config(max_retries=2), session=session)

    with pytest.raises(requests.HTTPError):
        client.invoke("p")
    assert len(session.calls) == 1


def test_invoke_retries_network_errors():
    session = _ScriptedSession(
        [requests.ConnectionError("reset"), requests.Timeout("slow"), requests.ConnectionError("reset")]
    )
    client = OpenRouterClient(_config(max_retries=2), session=session)

    with pytest.raises(requests.ConnectionError):
        client.invoke("p")
    assert len(session.calls) == 3


def test_invoke_rejects_unexpected_body():
    session = _ScriptedSession([_response(200, {"choices": []})])
    with pytest.raises(ValueError):
        OpenRouterClient(_config(), session=session).invoke("p")

    session = _ScriptedSession([_response(200, _completion(None))])
    with pytest.raises(ValueError):
        OpenRouterClient(_config(), session=session).invoke("p")


def test_invoke_does_not_retry_non_json_body():
    resp = _response(200, {})
    resp._content = b"<html>gateway hiccup</html>"
    session = _ScriptedSession([resp, _response(200, _completion("ok"))])
    client = OpenRouterClient(_config(max_retries=2), session=session)

    with pytest.raises(ValueError) as exc_info:
        client.invoke("p")
    assert not isinstance(exc_info.value, requests.RequestException)
    assert len(session.calls) == 1


def test_default_sessions_are_per_thread():
    client = OpenRouterClient(_config())
    main_session = client._session()
    assert client._session() is main_session
    assert main_session.headers["Authorization"] == "Bearer test-key"

    seen: list[requests.Session] = []
    worker = threading.Thread(target=lambda: seen.append(client._session()))
    worker.start()
    worker.join()

    assert seen[0] is not main_session
    assert seen[0].headers["X-Title"] == "Tests"
