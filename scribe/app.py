# ============================================================
# Creative Scribe FastAPI App
# ------------------------------------------------------------
# This app wires everything together:
#   - Provider clients (OpenRouter, Together, Gemini, Mistral,
#     Groq, xAI; Echo when a key is missing)
#   - Provider Router + streaming transport for /generate
#   - Grounded generation with fallback for /lively
# ============================================================

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

# --- Local imports ---
from scribe.settings import settings
from scribe.generate import (
    Completion,
    GenerationError,
    GenerationRequest,
    GroundedGenerator,
    ModelParams,
    ProviderRouter,
)
from scribe.generate.catalog import load_catalog
from scribe.generate.clients import EchoDevClient, GeminiClient, OpenAIClient
from scribe.stream import event_stream_response
from scribe.utils.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# 🔧 Provider client selection
# ------------------------------------------------------------
def _openai_compatible(name: str, api_key: Optional[str], base_url: str, **kwargs):
    if not api_key:
        logger.info("no API key for %s, using echo client", name)
        return EchoDevClient(name)
    return OpenAIClient(name, api_key, base_url, timeout=settings.REQUEST_TIMEOUT, **kwargs)


def build_clients() -> Dict[str, Any]:
    return {
        "openrouter": _openai_compatible(
            "openrouter",
            settings.OPENROUTER_API_KEY,
            settings.OPENROUTER_BASE_URL,
            default_headers={"HTTP-Referer": settings.APP_URL, "X-Title": settings.APP_NAME},
        ),
        "together": _openai_compatible("together", settings.TOGETHER_API_KEY, settings.TOGETHER_BASE_URL),
        "gemini": _openai_compatible("gemini", settings.GOOGLE_API_KEY, settings.GEMINI_OPENAI_BASE_URL),
        "mistral": _openai_compatible("mistral", settings.MISTRAL_API_KEY, settings.MISTRAL_BASE_URL),
        "groq": _openai_compatible("groq", settings.GROQ_API_KEY, settings.GROQ_BASE_URL),
        "xai": _openai_compatible("xai", settings.XAI_API_KEY, settings.XAI_BASE_URL),
    }


@lru_cache(maxsize=1)
def get_router() -> ProviderRouter:
    return ProviderRouter.with_default_rules(build_clients(), settings.FREE_STREAMING_MODEL)


@lru_cache(maxsize=1)
def get_grounded() -> GroundedGenerator:
    if settings.GOOGLE_API_KEY:
        client = GeminiClient(settings.GOOGLE_API_KEY, settings.GEMINI_REST_URL, timeout=settings.REQUEST_TIMEOUT)
    else:
        client = EchoDevClient("gemini")
    return GroundedGenerator(client, settings.LIVELY_MODEL, max_tokens=settings.LIVELY_MAX_TOKENS)

# ------------------------------------------------------------
# 🚀 FastAPI init
# ------------------------------------------------------------
app = FastAPI(title="Creative Scribe API", version="0.3")

# ------------------------------------------------------------
# 📦 Pydantic models
# ------------------------------------------------------------
class GenerateOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    temperature: Optional[float] = None
    top_p: Optional[float] = Field(default=None, alias="topP")


class GenerateBody(BaseModel):
    model: Optional[str] = None
    prompt: Optional[str] = None
    options: Optional[GenerateOptions] = None


class LivelyBody(BaseModel):
    prompt: Optional[str] = None


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError):
    # malformed bodies get the same {error} shape as every other failure
    errors = exc.errors()
    if not errors:
        return _error("Invalid request", 400)
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "invalid value")
    return _error(f"Invalid request: {field}: {message}" if field else f"Invalid request: {message}", 400)

# ------------------------------------------------------------
# 💬 Generation route
# ------------------------------------------------------------
@app.post("/generate")
async def generate(body: Optional[GenerateBody] = None, router: ProviderRouter = Depends(get_router)):
    if body is None or not body.prompt or not body.prompt.strip():
        return _error("Prompt is required", 400)

    options = body.options.model_dump(by_alias=True) if body.options else None
    request = GenerationRequest(
        model_id=body.model or "",
        prompt=body.prompt,
        params=ModelParams.from_options(options),
    )
    try:
        routed = await router.route(request)
    except GenerationError as e:
        logger.error("AI generation error (%s): %s", request.model_id, e)
        return _error(str(e) or "Failed to generate content", 500)

    if isinstance(routed, Completion):
        return {"result": routed.text}
    return event_stream_response(routed.deltas)

# ------------------------------------------------------------
# 🌐 Grounded ("lively") route
# ------------------------------------------------------------
@app.post("/lively")
async def lively(body: Optional[LivelyBody] = None, grounded: GroundedGenerator = Depends(get_grounded)):
    if body is None or not body.prompt or not body.prompt.strip():
        return _error("Prompt is required", 400)
    try:
        out = await grounded.generate(body.prompt)
    except GenerationError as e:
        logger.error("Lively generation error: %s", e)
        return _error(str(e) or "Failed to generate content", 500)
    return {"result": out.text, "groundingMetadata": out.grounding, "fallback": out.fallback}

# ------------------------------------------------------------
# 🤖 Model discovery
# ------------------------------------------------------------
@app.get("/models")
def list_models(router: ProviderRouter = Depends(get_router)):
    items: List[Dict[str, Any]] = []
    for entry in load_catalog():
        model_id = str(entry.get("id", ""))
        try:
            rule = router.resolve(model_id)
        except GenerationError:
            logger.warning("catalog model %s has no route, hiding it", model_id)
            continue
        items.append({
            "id": model_id,
            "label": entry.get("label", model_id),
            "provider": entry.get("provider", rule.provider),
            "delivery": rule.delivery.value,
        })
    return {"models": items, "status": "success"}

# ------------------------------------------------------------
# 🧭 Health checks
# ------------------------------------------------------------
@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "env": settings.ENV,
        "debug": settings.DEBUG,
        "app": settings.APP_NAME,
    }

@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}

@app.get("/")
def hello():
    return {"message": "Creative Scribe service running."}
