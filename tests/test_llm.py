"""chat_completion error surfacing and request shape (fake client, no network)."""
import httpx
import openai
import pytest

import core.llm
from core.llm import APIError, EmptyResponseError, LLMNotConfigured, RateLimitedError, chat_completion


def _status_error(cls, status, message):
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return cls(f"Error code: {status}", response=response, body={"message": message, "type": "invalid_request_error"})


def test_returns_message_content(fake_llm):
    client = fake_llm("hello there")
    assert chat_completion([{"role": "user", "content": "hi"}]) == "hello there"
    assert client.calls[0]["model"] == core.llm.config.llm.model
    assert "response_format" not in client.calls[0]


def test_json_mode_and_overrides(fake_llm):
    client = fake_llm("{}")
    chat_completion([{"role": "user", "content": "hi"}], temperature=0.8, max_tokens=8000, json_mode=True)

    request = client.calls[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["temperature"] == 0.8
    assert request["max_tokens"] == 8000


def test_provider_status_error_surfaces_provider_message(fake_llm):
    fake_llm(_status_error(openai.BadRequestError, 400, "context_length_exceeded"))

    with pytest.raises(APIError) as excinfo:
        chat_completion([{"role": "user", "content": "hi"}])

    assert str(excinfo.value) == "context_length_exceeded"
    assert excinfo.value.status_code == 400


def test_rate_limit_is_not_retried_by_default(fake_llm):
    client = fake_llm(_status_error(openai.RateLimitError, 429, "slow down"))

    with pytest.raises(RateLimitedError, match="slow down"):
        chat_completion([{"role": "user", "content": "hi"}])

    assert len(client.calls) == 1


def test_empty_content_is_an_error(fake_llm):
    fake_llm("")
    with pytest.raises(EmptyResponseError):
        chat_completion([{"role": "user", "content": "hi"}])


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(core.llm.config.llm, "groq_api_key", None)
    with pytest.raises(LLMNotConfigured):
        core.llm.create_client()
