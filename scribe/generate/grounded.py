# Grounded ("lively") generation: web-search grounding with one
# automatic retry against the plain model when the grounded call fails.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from .errors import EmptyResponseError, GenerationError
from .types import ModelParams

logger = logging.getLogger(__name__)

LIVELY_TEMPERATURE = 0.7
LIVELY_TOP_P = 0.8


@dataclass
class GroundedResult:
    text: str
    grounding: Optional[Dict[str, Any]]
    fallback: bool


class GroundedGenerator:
    def __init__(self, client, model: str, max_tokens: int = 2048):
        self.client = client
        self.model = model
        self.params = ModelParams(max_tokens=max_tokens, temperature=LIVELY_TEMPERATURE, top_p=LIVELY_TOP_P)

    async def generate(self, prompt: str) -> GroundedResult:
        """Only a raised error triggers the fallback; an empty grounded answer does not."""
        try:
            text, grounding = await run_in_threadpool(
                self.client.generate, self.model, prompt, self.params, True
            )
            fallback = False
        except Exception as e:
            logger.warning("grounded generation failed, retrying without grounding: %s", e)
            try:
                text, _ = await run_in_threadpool(
                    self.client.generate, self.model, prompt, self.params, False
                )
            except Exception as e2:
                logger.error("plain fallback failed: %s", e2)
                raise GenerationError(str(e2) or "Failed to generate content") from e2
            grounding, fallback = None, True

        if not text:
            raise EmptyResponseError()
        return GroundedResult(text=text, grounding=grounding, fallback=fallback)
