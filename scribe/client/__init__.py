# Client half: context, stream consumption, typing reveal, chat session.

from .api import GenerationClient
from .consumer import StreamConsumer
from .context import build_context_prompt, build_contextual_prompt
from .events import ChatEvents
from .renderer import TypingRenderer, tokenize
from .session import ChatSession

__all__ = [
    "GenerationClient",
    "StreamConsumer",
    "build_context_prompt",
    "build_contextual_prompt",
    "ChatEvents",
    "TypingRenderer",
    "tokenize",
    "ChatSession",
]
