# Client for the Gemini REST generateContent API.
# Blocking (requests); async callers run it in the threadpool.

from typing import Any, Dict, Optional, Tuple

import requests

from ..types import ModelParams


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(
        self,
        model: str,
        prompt: str,
        params: ModelParams,
        grounded: bool = False,
    ) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Return (text, grounding metadata). Grounding adds the search tool."""
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": int(params.max_tokens),
                "temperature": float(params.temperature),
                "topP": float(params.top_p),
            },
        }
        if grounded:
            payload["tools"] = [{"google_search": {}}]

        url = f"{self.base_url}/models/{model}:generateContent"
        resp = self.session.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()

        candidates = data.get("candidates") or []
        if not candidates:
            return "", None
        first = candidates[0]
        parts = (first.get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts).strip()
        return text, first.get("groundingMetadata")
