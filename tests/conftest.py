from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from scribe.app import app, get_grounded, get_router
from scribe.generate import GroundedGenerator, ProviderRouter
from scribe.settings import settings

FREE_MODEL = settings.FREE_STREAMING_MODEL
PROVIDER_KEYS = ("openrouter", "together", "gemini", "mistral", "groq", "xai")


class FakeProvider:
    """Stands in for an OpenAI-compatible client and records every call."""

    def __init__(self, reply: Optional[str] = "fake reply", chunks=None, error: Optional[Exception] = None):
        self.reply = reply
        self.chunks = list(chunks or ["fake ", "stream"])
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.stream_closed = False

    async def complete(self, model, content, params):
        self.calls.append({"kind": "complete", "model": model, "content": content, "params": params})
        if self.error:
            raise self.error
        return self.reply

    async def stream(self, model, content, params):
        self.calls.append({"kind": "stream", "model": model, "content": content, "params": params})
        if self.error:
            raise self.error
        return self._deltas()

    async def _deltas(self):
        try:
            for chunk in self.chunks:
                if isinstance(chunk, Exception):
                    raise chunk
                await asyncio.sleep(0)
                yield chunk
        finally:
            self.stream_closed = True


class FakeGemini:
    """Blocking grounded client; `fail_grounded` makes the grounded call raise."""

    def __init__(self, fail_grounded: bool = False, fail_plain: bool = False, text: str = "grounded answer"):
        self.fail_grounded = fail_grounded
        self.fail_plain = fail_plain
        self.text = text
        self.calls: List[bool] = []

    def generate(self, model, prompt, params, grounded=False):
        self.calls.append(grounded)
        if grounded and self.fail_grounded:
            raise RuntimeError("search tool unavailable")
        if not grounded and self.fail_plain:
            raise RuntimeError("quota exceeded")
        meta = {"webSearchQueries": [prompt]} if grounded else None
        return (self.text if grounded else "plain answer"), meta


def make_router(**overrides: FakeProvider):
    clients = {key: overrides.get(key, FakeProvider()) for key in PROVIDER_KEYS}
    return ProviderRouter.with_default_rules(clients, FREE_MODEL), clients


@pytest.fixture
def use_router():
    """Install a router built from the given fakes for the app under test."""
    def install(**overrides: FakeProvider):
        router, clients = make_router(**overrides)
        app.dependency_overrides[get_router] = lambda: router
        return clients

    yield install
    app.dependency_overrides.pop(get_router, None)


@pytest.fixture
def use_gemini():
    def install(fake: FakeGemini):
        app.dependency_overrides[get_grounded] = lambda: GroundedGenerator(fake, "gemini-test")
        return fake

    yield install
    app.dependency_overrides.pop(get_grounded, None)
