# HTTP client for POST /generate. The response type decides how the
# body is read: an event stream goes through StreamConsumer, JSON is
# the finished result.

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from scribe.generate.errors import EmptyResponseError, GenerationError
from scribe.generate.types import ModelParams

from .consumer import StreamConsumer

logger = logging.getLogger(__name__)


def options_payload(params: ModelParams) -> Dict[str, Any]:
    return {"maxTokens": params.max_tokens, "temperature": params.temperature, "topP": params.top_p}


class GenerationClient:
    def __init__(self, http: httpx.AsyncClient, path: str = "/generate"):
        self.http = http
        self.path = path

    @classmethod
    def for_url(cls, base_url: str, timeout: Optional[float] = None) -> "GenerationClient":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self) -> None:
        await self.http.aclose()

    async def generate(
        self,
        model: str,
        prompt: str,
        params: Optional[ModelParams] = None,
        on_text: Optional[Callable[[str], None]] = None,
    ) -> str:
        """Return the final text; `on_text` sees every accumulated snapshot."""
        payload = {"model": model, "prompt": prompt, "options": options_payload(params or ModelParams())}
        async with self.http.stream("POST", self.path, json=payload) as response:
            content_type = response.headers.get("content-type", "")
            if response.status_code < 400 and content_type.startswith("text/event-stream"):
                consumer = StreamConsumer(on_text=on_text)
                return await consumer.consume(response.aiter_bytes())

            await response.aread()
            try:
                data = response.json()
            except ValueError:
                data = {}
            if response.status_code >= 400:
                raise GenerationError(data.get("error") or f"HTTP {response.status_code}")

        text = data.get("result")
        if not text:
            raise EmptyResponseError()
        if on_text is not None:
            on_text(text)
        return text
