"""Client-side reader for the envelope event stream.

The consumer never concatenates deltas itself: every parsed envelope
replaces the current text with its ``accumulatedText``. Replaying an
envelope is therefore harmless, and a dropped envelope is repaired by
the next one.
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import AsyncIterator, Callable, List, Optional

from scribe.generate.errors import StreamInterruptedError
from scribe.stream.envelope import StreamEnvelope, decode_line

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


class StreamConsumer:
    def __init__(self, on_text: Optional[Callable[[str], None]] = None):
        self.on_text = on_text
        self.text = ""
        self.done = False
        self.skipped_lines = 0

    @property
    def paragraphs(self) -> List[str]:
        """Current text split on blank lines."""
        return [p for p in _PARAGRAPH_BREAK.split(self.text) if p.strip()]

    def feed_line(self, line: str) -> Optional[StreamEnvelope]:
        try:
            envelope = decode_line(line)
        except ValueError as e:
            self.skipped_lines += 1
            logger.warning("skipping malformed stream line: %s", e)
            return None
        if envelope is None:
            return None

        self.text = envelope.accumulated_text
        if envelope.done:
            self.done = True
        if self.on_text is not None:
            self.on_text(self.text)
        return envelope

    async def consume(self, chunks: AsyncIterator[bytes]) -> str:
        """Read until the terminal envelope and return the final text."""
        # undecodable bytes become U+FFFD instead of aborting the read
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        try:
            async for chunk in chunks:
                buffer += decoder.decode(chunk)
                lines = buffer.split("\n")
                buffer = lines.pop()
                for line in lines:
                    self.feed_line(line.rstrip("\r"))
                    if self.done:
                        return self.text
            buffer += decoder.decode(b"", final=True)
            if buffer:
                self.feed_line(buffer.rstrip("\r"))
            if not self.done:
                raise StreamInterruptedError()
            return self.text
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()
