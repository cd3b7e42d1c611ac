from .echo_dev_client import EchoDevClient
from .gemini_client import GeminiClient
from .openai_client import OpenAIClient

__all__ = ["EchoDevClient", "GeminiClient", "OpenAIClient"]
