# Client for any OpenAI-compatible Chat Completions API
# (OpenRouter, Together, Mistral, Groq, xAI, Gemini's compat endpoint).

from typing import Dict, Optional

from openai import AsyncOpenAI

from ..types import Content, ModelParams


class OpenAIClient:
    def __init__(
        self,
        name: str,
        api_key: Optional[str],
        base_url: str,
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = 120.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.name = name
        self.base_url = base_url
        self.client = client or AsyncOpenAI(
            api_key=api_key or "dummy-key",
            base_url=base_url,
            default_headers=default_headers,
            timeout=timeout,
        )

    def _request(self, model: str, content: Content, params: ModelParams) -> dict:
        return {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "top_p": params.top_p,
        }

    async def complete(self, model: str, content: Content, params: ModelParams) -> Optional[str]:
        resp = await self.client.chat.completions.create(**self._request(model, content, params))
        if not resp.choices:
            return None
        return resp.choices[0].message.content

    async def stream(self, model: str, content: Content, params: ModelParams) -> "DeltaStream":
        """Open the upstream stream now; iterate the returned deltas later."""
        upstream = await self.client.chat.completions.create(
            **self._request(model, content, params), stream=True
        )
        return DeltaStream(upstream)


class DeltaStream:
    """Non-empty text deltas of an open upstream stream.

    ``aclose`` releases the upstream even when iteration never started.
    """

    def __init__(self, upstream):
        self.upstream = upstream
        self._chunks = None
        self._closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        if self._chunks is None:
            self._chunks = self.upstream.__aiter__()
        while True:
            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                await self.aclose()
                raise
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                return delta

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.upstream.close()
