# ============================================================
# Provider Router
# ------------------------------------------------------------
# Picks a provider rule for a model id, shapes the outbound call,
# and collapses the answer into one of two results:
#   - Completion   (one-shot providers)
#   - StreamHandle (streaming providers)
# Provider clients are injected by key; the router keeps no state
# between requests.
# ============================================================

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Union

from .errors import EmptyResponseError, GenerationError, InvalidModelError
from .providers import ProviderDescriptor, default_rules
from .types import Completion, DeliveryMode, GenerationRequest, ModelParams, StreamHandle

logger = logging.getLogger(__name__)

RouteResult = Union[Completion, StreamHandle]


class ProviderRouter:
    def __init__(self, clients: Mapping[str, object], rules: List[ProviderDescriptor]):
        self.clients = dict(clients)
        self.rules = list(rules)

    @classmethod
    def with_default_rules(cls, clients: Mapping[str, object], free_streaming_model: str) -> "ProviderRouter":
        return cls(clients, default_rules(free_streaming_model))

    def resolve(self, model_id: Optional[str]) -> ProviderDescriptor:
        """First matching rule wins."""
        if model_id:
            for rule in self.rules:
                if rule.matches(model_id):
                    return rule
        raise InvalidModelError()

    def _client_for(self, rule: ProviderDescriptor):
        client = self.clients.get(rule.provider)
        if client is None:
            raise GenerationError(f"Provider '{rule.provider}' is not configured")
        return client

    async def route(self, request: GenerationRequest) -> RouteResult:
        rule = self.resolve(request.model_id)
        client = self._client_for(rule)
        model = rule.upstream_model(request.model_id)
        content = rule.shape_content(request.prompt)
        logger.debug("route %s -> %s (%s, %s)", request.model_id, rule.provider, model, rule.delivery.value)

        if rule.delivery is DeliveryMode.STREAMING:
            deltas = await self._call(rule, client.stream(model, content, request.params))
            return StreamHandle(provider=rule.provider, model=model, deltas=deltas)

        text = await self._call(rule, client.complete(model, content, request.params))
        if not text:
            raise EmptyResponseError()
        return Completion(text=text, provider=rule.provider, model=model)

    async def generate(
        self,
        model_id: str,
        prompt: str,
        params: Optional[ModelParams] = None,
    ) -> RouteResult:
        return await self.route(GenerationRequest(model_id=model_id, prompt=prompt, params=params or ModelParams()))

    async def _call(self, rule: ProviderDescriptor, pending):
        try:
            return await pending
        except GenerationError:
            raise
        except Exception as e:
            logger.error("provider %s failed: %s", rule.provider, e)
            raise GenerationError(str(e) or "Failed to generate content") from e
