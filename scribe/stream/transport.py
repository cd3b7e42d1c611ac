# ============================================================
# Streaming transport
# ------------------------------------------------------------
# Turns an upstream sequence of text deltas into the envelope
# event stream. Every envelope carries the running total; the
# last one has an empty delta and done=true.
# ============================================================

from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import BackgroundTasks
from fastapi.responses import StreamingResponse

from .envelope import StreamEnvelope, encode_event

logger = logging.getLogger(__name__)

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "X-Accel-Buffering": "no",
}


async def close_upstream(deltas: AsyncIterator[str]) -> None:
    aclose = getattr(deltas, "aclose", None)
    if aclose is not None:
        await aclose()


async def relay(deltas: AsyncIterator[str]) -> AsyncIterator[str]:
    """Yield encoded events. An upstream error aborts the stream without a done event."""
    accumulated = ""
    try:
        async for delta in deltas:
            if not delta:
                continue
            accumulated += delta
            yield encode_event(StreamEnvelope(delta_text=delta, accumulated_text=accumulated))
        yield encode_event(StreamEnvelope(delta_text="", accumulated_text=accumulated, done=True))
    except Exception as e:
        logger.error("stream aborted after %d chars: %s", len(accumulated), e)
        raise
    finally:
        await close_upstream(deltas)


def event_stream_response(deltas: AsyncIterator[str]) -> StreamingResponse:
    # the background task also covers a client gone before the body starts
    cleanup = BackgroundTasks()
    cleanup.add_task(close_upstream, deltas)
    return StreamingResponse(
        relay(deltas),
        media_type="text/event-stream",
        headers=EVENT_STREAM_HEADERS,
        background=cleanup,
    )
