import json

import pytest
import requests

from cloudmap import config
from cloudmap.errors import ConfigurationError, LLMServiceError
from cloudmap.inference import (
    ChatCompletionsClient,
    CohereChatClient,
    get_llm_client,
    temperature_for_intent,
)
from cloudmap.inference.cohere_client import to_cohere_chat
from cloudmap.inference.config import model_for_intent
from cloudmap.pipeline.orchestrator import FALLBACK_RESPONSE, STREAM_ERROR, JarvisOrchestrator


class FakeResponse:
    def __init__(self, status_code=200, payload=None, lines=None, text="", reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self._lines = lines or []
        self.text = text
        self.reason = reason

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def iter_lines(self, decode_unicode=False):
        # An exception in `lines` is raised when the iterator reaches it
        for line in self._lines:
            if isinstance(line, Exception):
                raise line
            yield line

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def posted(monkeypatch):
    """Capture requests.post calls and answer with a queued FakeResponse."""
    state = {"calls": [], "response": FakeResponse()}

    def fake_post(url, json=None, headers=None, timeout=None, stream=False):
        state["calls"].append({"url": url, "json": json, "headers": headers, "stream": stream})
        if isinstance(state["response"], Exception):
            raise state["response"]
        return state["response"]

    monkeypatch.setattr(requests, "post", fake_post)
    return state


# ============================================================
# COHERE
# ============================================================

def test_to_cohere_chat():
    preamble, history, message = to_cohere_chat([
        {"role": "system", "content": "Be nice"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "user", "content": "what is S3?"},
    ])
    assert preamble == "Be nice"
    assert history == [
        {"role": "USER", "message": "hi"},
        {"role": "CHATBOT", "message": "hello"},
    ]
    assert message == "what is S3?"


def test_cohere_generate(posted):
    posted["response"] = FakeResponse(payload={
        "text": "S3 stores objects.",
        "meta": {"billed_units": {"input_tokens": 10, "output_tokens": 5}},
    })
    client = CohereChatClient(api_key="k", base_url="https://cohere.test/")

    result = client.generate([{"role": "user", "content": "S3?"}], temperature=0.3, max_tokens=100)

    call = posted["calls"][0]
    assert call["url"] == "https://cohere.test/v1/chat"
    assert call["headers"]["Authorization"] == "Bearer k"
    assert call["json"]["message"] == "S3?"
    assert call["json"]["temperature"] == 0.3
    assert "preamble" not in call["json"]
    assert result.text == "S3 stores objects."
    assert result.tokens_used == 15


def test_cohere_stream(posted):
    posted["response"] = FakeResponse(lines=[
        json.dumps({"event_type": "stream-start"}),
        json.dumps({"event_type": "text-generation", "text": "Hel"}),
        "",
        "not json",
        json.dumps({"event_type": "text-generation", "text": "lo"}),
        json.dumps({"event_type": "stream-end", "finish_reason": "COMPLETE"}),
        json.dumps({"event_type": "text-generation", "text": "ignored"}),
    ])
    client = CohereChatClient(api_key="k")
    assert list(client.stream([{"role": "user", "content": "hi"}])) == ["Hel", "lo"]
    assert posted["calls"][0]["stream"] is True


def test_cohere_stream_error_event(posted):
    posted["response"] = FakeResponse(lines=[
        json.dumps({"event_type": "stream-end", "finish_reason": "ERROR"}),
    ])
    with pytest.raises(LLMServiceError):
        list(CohereChatClient(api_key="k").stream([{"role": "user", "content": "hi"}]))


# ============================================================
# CHAT COMPLETIONS
# ============================================================

def test_chat_completions_generate(posted):
    posted["response"] = FakeResponse(payload={
        "model": "gpt-test",
        "choices": [{"message": {"content": "Hi!"}}],
        "usage": {"total_tokens": 7},
    })
    client = ChatCompletionsClient(base_url="https://openai.test/v1", model="gpt-4o", api_key="k")
    result = client.generate([{"role": "user", "content": "hello"}])

    assert posted["calls"][0]["url"] == "https://openai.test/v1/chat/completions"
    assert posted["calls"][0]["json"]["temperature"] == 0.4
    assert (result.text, result.model, result.tokens_used) == ("Hi!", "gpt-test", 7)


def test_chat_completions_bad_payload(posted):
    posted["response"] = FakeResponse(payload={"choices": []})
    client = ChatCompletionsClient(base_url="https://openai.test/v1", model="m")
    with pytest.raises(LLMServiceError):
        client.generate([{"role": "user", "content": "hello"}])


def test_chat_completions_stream(posted):
    posted["response"] = FakeResponse(lines=[
        'data: {"choices": [{"delta": {"content": "A"}}]}',
        ": keep-alive",
        'data: {"choices": [{"delta": {}}]}',
        'data: {"choices": [{"delta": {"content": "B"}}]}',
        "data: [DONE]",
    ])
    client = ChatCompletionsClient(base_url="https://openai.test/v1", model="m")
    assert list(client.stream([{"role": "user", "content": "hello"}])) == ["A", "B"]


# ============================================================
# TRANSPORT ERRORS
# ============================================================

def test_http_error_status(posted):
    posted["response"] = FakeResponse(status_code=429, text="slow down")
    with pytest.raises(LLMServiceError) as info:
        CohereChatClient(api_key="k").generate([{"role": "user", "content": "hi"}])
    assert info.value.upstream_status == 429
    assert info.value.retryable


def test_timeout_is_retryable(posted):
    posted["response"] = requests.Timeout("read timed out")
    with pytest.raises(LLMServiceError) as info:
        CohereChatClient(api_key="k").generate([{"role": "user", "content": "hi"}])
    assert info.value.retryable


@pytest.mark.parametrize("client", [
    CohereChatClient(api_key="k"),
    ChatCompletionsClient(base_url="https://openai.test/v1", model="m"),
])
def test_non_json_body(posted, client):
    posted["response"] = FakeResponse(
        payload=ValueError("Expecting value: line 1 column 1 (char 0)"),
        text="<html>Bad gateway</html>",
    )
    with pytest.raises(LLMServiceError, match="Bad gateway"):
        client.generate([{"role": "user", "content": "hi"}])


def test_cohere_stream_dropped_connection(posted):
    posted["response"] = FakeResponse(lines=[
        json.dumps({"event_type": "text-generation", "text": "Hel"}),
        requests.exceptions.ChunkedEncodingError("connection broken"),
    ])
    tokens = CohereChatClient(api_key="k").stream([{"role": "user", "content": "hi"}])

    assert next(tokens) == "Hel"
    with pytest.raises(LLMServiceError, match="network"):
        next(tokens)


def test_chat_completions_stream_dropped_connection(posted):
    posted["response"] = FakeResponse(lines=[
        'data: {"choices": [{"delta": {"content": "Hello"}}]}',
        requests.ConnectionError("reset by peer"),
    ])
    client = ChatCompletionsClient(base_url="https://openai.test/v1", model="m")
    tokens = client.stream([{"role": "user", "content": "hi"}])

    assert next(tokens) == "Hello"
    with pytest.raises(LLMServiceError, match="network"):
        next(tokens)


def test_orchestrator_stream_ends_with_apology_on_drop(posted, stored_architecture):
    posted["response"] = FakeResponse(lines=[
        'data: {"choices": [{"delta": {"content": "Hello"}}]}',
        requests.exceptions.ChunkedEncodingError("connection broken"),
    ])
    client = ChatCompletionsClient(base_url="https://openai.test/v1", model="m")
    orchestrator = JarvisOrchestrator(lambda: client)

    context = orchestrator.prepare_stream(stored_architecture, "What is S3?")
    assert list(orchestrator.stream(stored_architecture, context)) == ["Hello", STREAM_ERROR]


def test_orchestrator_falls_back_on_non_json_body(posted, stored_architecture):
    posted["response"] = FakeResponse(payload=ValueError("Expecting value"), text="<html>oops</html>")
    client = ChatCompletionsClient(base_url="https://openai.test/v1", model="m")

    result = JarvisOrchestrator(lambda: client).handle(stored_architecture, "What is AWS Lambda?")
    assert result["response"] == FALLBACK_RESPONSE
    assert result["metadata"]["intent"] == "general_chat"


# ============================================================
# CONFIG
# ============================================================

def test_missing_key_is_configuration_error(monkeypatch):
    monkeypatch.delenv("COHERE_API_KEY", raising=False)
    with pytest.raises(ConfigurationError, match="COHERE_API_KEY"):
        get_llm_client("cohere")


def test_clients_per_provider(monkeypatch):
    monkeypatch.setenv("COHERE_API_KEY", "c")
    monkeypatch.setenv("OPENAI_API_KEY", "o")
    assert isinstance(get_llm_client("cohere"), CohereChatClient)
    assert isinstance(get_llm_client("OpenAI"), ChatCompletionsClient)

    monkeypatch.setattr(config, "LLM_PROVIDER", "openai")
    assert get_llm_client().model == config.OPENAI_MODEL


def test_unknown_provider():
    with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
        get_llm_client("llama")


@pytest.mark.parametrize("intent, expected", [
    ("code_generation", 0.5),
    ("cdk_generation", 0.5),
    ("architecture_explanation", 0.8),
    ("question", 0.7),
])
def test_temperature_for_intent(intent, expected):
    assert temperature_for_intent(intent) == expected


def test_model_for_intent_uses_provider_default(monkeypatch):
    monkeypatch.setattr(config, "LLM_PROVIDER", "cohere")
    assert model_for_intent("cdk_generation") == config.COHERE_MODEL
    assert model_for_intent("question", provider="openai") == config.OPENAI_MODEL
