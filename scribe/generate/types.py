# Typed dataclasses shared across the dispatch modules.

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Union

DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_P = 0.4


class DeliveryMode(str, Enum):
    STREAMING = "streaming"
    ONE_SHOT = "one-shot"


@dataclass(frozen=True)
class ModelParams:
    """Tunables carried to every provider, whatever it calls them."""
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]]) -> "ModelParams":
        """Build from a camelCase options mapping; absent values get defaults."""
        options = options or {}
        max_tokens = options.get("maxTokens")
        temperature = options.get("temperature")
        top_p = options.get("topP")
        return cls(
            max_tokens=DEFAULT_MAX_TOKENS if max_tokens is None else int(max_tokens),
            temperature=DEFAULT_TEMPERATURE if temperature is None else float(temperature),
            top_p=DEFAULT_TOP_P if top_p is None else float(top_p),
        )


@dataclass(frozen=True)
class GenerationRequest:
    """One user submission, consumed once by the router."""
    model_id: str
    prompt: str
    params: ModelParams = field(default_factory=ModelParams)


# Outbound content: a plain prompt, or a multi-part array for vision models.
Content = Union[str, List[Dict[str, Any]]]


@dataclass
class Completion:
    """Finalized one-shot result."""
    text: str
    provider: str
    model: str


@dataclass
class StreamHandle:
    """A live upstream stream; `deltas` yields partial text in order."""
    provider: str
    model: str
    deltas: AsyncIterator[str]


@dataclass(frozen=True)
class ChatMessage:
    """Single chat turn shown in the conversation list."""
    role: str
    content: str
    timestamp: Optional[datetime] = None

    @classmethod
    def now(cls, role: str, content: str) -> "ChatMessage":
        return cls(role=role, content=content, timestamp=datetime.now(timezone.utc))
