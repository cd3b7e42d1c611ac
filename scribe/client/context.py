# Reusable prompt template for carrying recent turns into a new request.

from __future__ import annotations

import logging
from typing import List

from scribe.history import ConversationStore, Turn

logger = logging.getLogger(__name__)

CONTEXT_TURNS = 5

CONTEXT_GUIDELINES = """\
Use the previous conversation only if it is relevant to the current request.
If the current request is ambiguous, favor the current request over the previous conversation.
If the user has changed the topic, ignore the previous conversation entirely.
"""


def format_turns(turns: List[Turn]) -> str:
    return "\n\n".join(f"User: {t.prompt}\nAssistant: {t.response}" for t in turns)


def build_context_prompt(turns: List[Turn], new_prompt: str) -> str:
    if not turns:
        return new_prompt
    return f"""Previous conversation:
{format_turns(turns)}

Current request:
User: {new_prompt}

Instructions:
{CONTEXT_GUIDELINES}"""


async def build_contextual_prompt(
    history: ConversationStore,
    session_id: str,
    new_prompt: str,
    limit: int = CONTEXT_TURNS,
) -> str:
    """Wrap the prompt with recent turns. History failures degrade to the bare prompt."""
    try:
        turns = await history.recent(session_id, limit)
    except Exception as e:
        logger.warning("could not load history for %s, sending prompt without context: %s", session_id, e)
        return new_prompt
    return build_context_prompt(turns[-limit:], new_prompt)
