# ============================================================
# Conversation history
# ------------------------------------------------------------
# The hosted database is an outside collaborator; the pipeline
# only needs "append one (prompt, response) pair" and "load the
# most recent turns". InMemoryConversationStore backs dev/tests.
# ============================================================

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Protocol

from scribe.generate.types import ChatMessage


@dataclass
class Turn:
    """One saved exchange."""
    session_id: str
    message_id: str
    prompt: str
    response: str
    timestamp: datetime
    metadata: Dict = field(default_factory=dict)
    is_deleted: bool = False


class ConversationStore(Protocol):
    async def append(self, session_id: str, prompt: str, response: str, metadata: Dict | None = None) -> str: ...

    async def recent(self, session_id: str, limit: int = 5) -> List[Turn]: ...

    async def load_session(self, session_id: str) -> List[ChatMessage]: ...

    async def clear(self, session_id: str) -> None: ...


class InMemoryConversationStore:
    def __init__(self):
        self._turns: List[Turn] = []

    async def append(self, session_id: str, prompt: str, response: str, metadata: Dict | None = None) -> str:
        turn = Turn(
            session_id=session_id,
            message_id=str(uuid.uuid4()),
            prompt=prompt,
            response=response,
            timestamp=datetime.now(timezone.utc),
            metadata=dict(metadata or {}),
        )
        self._turns.append(turn)
        return turn.message_id

    def _live(self, session_id: str) -> List[Turn]:
        return [t for t in self._turns if t.session_id == session_id and not t.is_deleted]

    async def recent(self, session_id: str, limit: int = 5) -> List[Turn]:
        """Up to `limit` most recent turns, oldest first."""
        if limit <= 0:
            return []
        return self._live(session_id)[-limit:]

    async def load_session(self, session_id: str) -> List[ChatMessage]:
        messages: List[ChatMessage] = []
        for t in self._live(session_id):
            messages.append(ChatMessage(role="user", content=t.prompt, timestamp=t.timestamp))
            messages.append(ChatMessage(role="assistant", content=t.response, timestamp=t.timestamp))
        return messages

    async def clear(self, session_id: str) -> None:
        for t in self._turns:
            if t.session_id == session_id:
                t.is_deleted = True
