# Dummy provider for local dev and tests without API calls.

import re
from typing import AsyncIterator, Optional, Tuple

from ..types import Content, ModelParams


def _prompt_text(content: Content) -> str:
    if isinstance(content, str):
        return content
    return " ".join(part.get("text", "") for part in content if part.get("type") == "text")


class EchoDevClient:
    def __init__(self, name: str = "echo"):
        self.name = name
        self.model = "echo-dev"

    def _reply(self, model: str, content: Content) -> str:
        return f"[ECHO RESPONSE:{model}]\n{_prompt_text(content) or '(no user input)'}"

    async def complete(self, model: str, content: Content, params: ModelParams) -> Optional[str]:
        return self._reply(model, content)

    async def stream(self, model: str, content: Content, params: ModelParams) -> AsyncIterator[str]:
        return self._words(self._reply(model, content))

    async def _words(self, text: str) -> AsyncIterator[str]:
        for piece in re.findall(r"\S+\s*|\s+", text):
            yield piece

    def generate(self, model: str, prompt: str, params: ModelParams, grounded: bool = False) -> Tuple[str, Optional[dict]]:
        """Blocking variant matching GeminiClient, for the grounded path."""
        return self._reply(model, prompt), None
