"""Pytest config and fixtures: fake LLM client and provider stubs (no network)."""
from types import SimpleNamespace
from typing import Callable, List, Union

import pytest

import core.llm


class FakeCompletions:
    """Stands in for client.chat.completions; replies in order and records every request."""

    def __init__(self, replies: List[Union[str, Exception, Callable]]):
        self.replies = list(replies)
        self.calls = []

    def create(self, **request):
        self.calls.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(request)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))],
            usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5),
        )


class FakeLLMClient:
    def __init__(self, *replies):
        self.completions = FakeCompletions(list(replies) or ["ok"])
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


@pytest.fixture
def fake_llm(monkeypatch):
    """Factory: install a FakeLLMClient as the client every chat_completion call uses."""

    def install(*replies) -> FakeLLMClient:
        client = FakeLLMClient(*replies)
        monkeypatch.setattr(core.llm, "create_client", lambda: client)
        return client

    return install


class StubProvider:
    """Resolver/transcript provider whose methods return or raise canned values."""

    def __init__(self, name: str, **results):
        self.name = name
        self.results = results
        self.calls = []

    def _answer(self, method, *args):
        self.calls.append((method, args))
        result = self.results.get(method)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise RuntimeError(f"{self.name}.{method} not stubbed")
        return result

    def playlist(self, playlist_id, original_url):
        return self._answer("playlist", playlist_id, original_url)

    def video(self, video_id, original_url):
        return self._answer("video", video_id, original_url)

    def search(self, query):
        return self._answer("search", query)

    def fetch(self, video_id, languages):
        return self._answer("fetch", video_id, languages)


@pytest.fixture
def stub_provider():
    return StubProvider
