# Session-scoped "chat-updated" notifications. Listeners get no payload:
# the event only says that something in the session's history changed.

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

CHAT_UPDATED = "chat-updated"

Listener = Callable[[], None]


class ChatEvents:
    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, session_id: str, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners[session_id].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners.get(session_id, []):
                self._listeners[session_id].remove(listener)

        return unsubscribe

    def broadcast(self, session_id: str) -> None:
        logger.debug("%s: %s", CHAT_UPDATED, session_id)
        for listener in list(self._listeners.get(session_id, [])):
            listener()
