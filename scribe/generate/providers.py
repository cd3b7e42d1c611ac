# ============================================================
# Provider routing table
# ------------------------------------------------------------
# Ordered (predicate -> descriptor) rules. The order is product
# intent: the free streaming model beats every other rule, the
# vision prefix beats the namespace separator, and so on.
# ============================================================

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .types import Content, DeliveryMode

VISION_PREFIX = "gemini-"
BATCH_PREFIX = "together/"
NAMESPACE_SEPARATOR = "/"

# Direct single-model integrations: model id -> (provider key, upstream model).
DIRECT_MODELS: Dict[str, Tuple[str, str]] = {
    "open-mistral-nemo": ("mistral", "open-mistral-nemo"),
    "mistral-large": ("mistral", "mistral-large-2407"),
    "groq": ("groq", "llama-3.2-90b-text-preview"),
    "xai": ("xai", "grok-beta"),
}

IMAGE_URL_RE = re.compile(
    r"https?://[^\s\"'<>]+?\.(?:png|jpe?g|gif|webp|bmp)(?:\?[^\s\"'<>]*)?(?=[)\].,!?;:\"'>]*(?:\s|$))",
    re.IGNORECASE,
)


def find_image_urls(prompt: str) -> List[str]:
    return IMAGE_URL_RE.findall(prompt)


def plain_content(prompt: str) -> Content:
    return prompt


def vision_content(prompt: str) -> Content:
    """Multi-part content array when the prompt links images, else the prompt."""
    urls = find_image_urls(prompt)
    if not urls:
        return prompt
    parts: List[Dict] = [{"type": "text", "text": prompt}]
    parts.extend({"type": "image_url", "image_url": {"url": url}} for url in urls)
    return parts


def keep_model(model_id: str) -> str:
    return model_id


def strip_batch_prefix(model_id: str) -> str:
    return model_id[len(BATCH_PREFIX):]


@dataclass(frozen=True)
class ProviderDescriptor:
    """How one family of model ids is called and delivered."""
    name: str
    provider: str
    delivery: DeliveryMode
    matches: Callable[[str], bool]
    upstream_model: Callable[[str], str] = keep_model
    shape_content: Callable[[str], Content] = plain_content


def default_rules(
    free_streaming_model: str,
    direct_models: Optional[Mapping[str, Tuple[str, str]]] = None,
) -> List[ProviderDescriptor]:
    direct = dict(DIRECT_MODELS if direct_models is None else direct_models)

    rules = [
        ProviderDescriptor(
            name="free-streaming",
            provider="openrouter",
            delivery=DeliveryMode.STREAMING,
            matches=lambda m: m == free_streaming_model,
        ),
        ProviderDescriptor(
            name="vision",
            provider="gemini",
            delivery=DeliveryMode.ONE_SHOT,
            matches=lambda m: m.startswith(VISION_PREFIX),
            shape_content=vision_content,
        ),
        ProviderDescriptor(
            name="batch",
            provider="together",
            delivery=DeliveryMode.ONE_SHOT,
            matches=lambda m: m.startswith(BATCH_PREFIX),
            upstream_model=strip_batch_prefix,
        ),
        ProviderDescriptor(
            name="aggregator",
            provider="openrouter",
            delivery=DeliveryMode.ONE_SHOT,
            matches=lambda m: NAMESPACE_SEPARATOR in m,
        ),
    ]
    for model_id, (provider, upstream) in direct.items():
        rules.append(
            ProviderDescriptor(
                name=f"direct:{model_id}",
                provider=provider,
                delivery=DeliveryMode.ONE_SHOT,
                matches=lambda m, _id=model_id: m == _id,
                upstream_model=lambda m, _up=upstream: _up,
            )
        )
    return rules
