# Server-side dispatch: routing, provider clients, grounded generation.

from .errors import EmptyResponseError, GenerationError, InvalidModelError
from .grounded import GroundedGenerator, GroundedResult
from .router import ProviderRouter
from .types import ChatMessage, Completion, DeliveryMode, GenerationRequest, ModelParams, StreamHandle

__all__ = [
    "ProviderRouter",
    "GroundedGenerator",
    "GroundedResult",
    "GenerationRequest",
    "ModelParams",
    "Completion",
    "StreamHandle",
    "DeliveryMode",
    "ChatMessage",
    "GenerationError",
    "InvalidModelError",
    "EmptyResponseError",
]
