# ============================================================
# ChatSession
# ------------------------------------------------------------
# Owns one conversation on the client:
#   - `messages`: finalized turns (immutable tuple, append-only)
#   - `pending`:  the assistant reply still being revealed
# The pending reply joins `messages` once, after the reveal ends
# and the turn is saved. A failed generation or save adds nothing.
# ============================================================

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional, Tuple

import httpx

from scribe.generate.errors import GenerationError
from scribe.generate.types import ChatMessage, ModelParams
from scribe.history import ConversationStore

from .api import GenerationClient
from .context import build_contextual_prompt
from .events import ChatEvents
from .renderer import TypingRenderer

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def log_notifier(title: str, description: str) -> None:
    logger.warning("%s: %s", title, description)


class ChatSession:
    def __init__(
        self,
        api: GenerationClient,
        history: ConversationStore,
        model: str,
        session_id: Optional[str] = None,
        params: Optional[ModelParams] = None,
        events: Optional[ChatEvents] = None,
        notify: Notifier = log_notifier,
        renderer_factory: Callable[[Callable[[str], None]], TypingRenderer] = TypingRenderer,
    ):
        self.api = api
        self.history = history
        self.model = model
        self.session_id = session_id or str(uuid.uuid4())
        self.params = params or ModelParams()
        self.events = events or ChatEvents()
        self.notify = notify
        self.renderer_factory = renderer_factory
        self.on_change: Optional[Callable[["ChatSession"], None]] = None

        self._messages: Tuple[ChatMessage, ...] = ()
        self.pending: Optional[ChatMessage] = None
        self._renderer: Optional[TypingRenderer] = None

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self._messages

    @property
    def visible(self) -> Tuple[ChatMessage, ...]:
        """What a view shows: finalized turns plus the reply being typed."""
        if self.pending is None:
            return self._messages
        return self._messages + (self.pending,)

    async def load(self) -> None:
        loaded = await self.history.load_session(self.session_id)
        if loaded:
            self._messages = tuple(loaded)
            self._changed()

    def close(self) -> None:
        """Stop rendering; an in-flight server call is left to finish on its own."""
        if self._renderer is not None:
            self._renderer.cancel()
            self._renderer = None
        self.pending = None

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def _show_pending(self, text: str) -> None:
        self.pending = ChatMessage.now("assistant", text)
        self._changed()

    async def submit(self, prompt: str) -> Optional[ChatMessage]:
        if not prompt or not prompt.strip():
            return None

        self._messages += (ChatMessage.now("user", prompt),)
        self._changed()

        contextual = await build_contextual_prompt(self.history, self.session_id, prompt)
        renderer = self.renderer_factory(self._show_pending)
        self._renderer = renderer
        try:
            text = await self.api.generate(self.model, contextual, self.params, on_text=renderer.update)
            await renderer.finish(text)
        except (GenerationError, httpx.HTTPError) as e:
            renderer.cancel()
            logger.error("generation failed for session %s: %s", self.session_id, e)
            self.notify("Generation Error", f"Failed to generate response: {e}")
            self._drop_pending()
            return None
        finally:
            self._renderer = None

        try:
            await self.history.append(self.session_id, prompt, text)
        except Exception as e:
            # the store is an outside service; any failure means the turn was not kept
            logger.error("saving turn failed for session %s: %s", self.session_id, e)
            self.notify("Save Error", f"Failed to save conversation: {e}")
            self._drop_pending()
            return None

        reply = ChatMessage.now("assistant", text)
        self.pending = None
        self._messages += (reply,)
        self._changed()
        self.events.broadcast(self.session_id)
        return reply

    def _drop_pending(self) -> None:
        self.pending = None
        self._changed()
