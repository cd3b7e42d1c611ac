"""Progressive text reveal at a bounded frame rate.

Text is cut into reveal units (words, whitespace runs, newlines and
markdown markers) so a marker is never shown half-typed. Each frame
reveals up to ``batch_size`` units; frames are at least
``frame_interval`` seconds apart. The callback always receives the
whole revealed prefix, and that prefix only ever grows.

While the source is still streaming, the last unit is held back in
``pending_buffer`` because it may still be growing (half a word, a
lone ``*`` that becomes ``**``), together with any run of marker
characters in front of it (two backticks may still become a fence).
``finish`` releases it.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
FRAME_INTERVAL = 0.007  # ~144 Hz

_UNIT = re.compile(
    r"```"                  # code fence
    r"|\n"
    r"|[ \t]+"
    r"|#{1,6}(?=[ \t])"     # heading
    r"|\*\*|__|~~|[*_`]"    # emphasis, inline code
    r"|>"                   # blockquote
    r"|\d+\.(?=[ \t])"      # ordered list
    r"|[-+](?=[ \t])"       # bullet
    r"|[^\s*_`~#>]+"
    r"|.",
    re.DOTALL,
)
_MARKER_CHARS = "`#*_~>"


def tokenize(text: str) -> List[str]:
    """Split into reveal units; ``"".join(tokenize(t)) == t``."""
    return _UNIT.findall(text)


def _hold_back(units: List[str]) -> str:
    """Pop the growing tail off ``units`` and return it."""
    held = [units.pop()] if units else []
    while units and not units[-1].strip(_MARKER_CHARS):
        held.append(units.pop())
    return "".join(reversed(held))


@dataclass
class RenderState:
    revealed_text: str = ""
    pending_buffer: str = ""
    last_frame_at: float = float("-inf")


class TypingRenderer:
    def __init__(
        self,
        on_frame: Callable[[str], None],
        batch_size: int = DEFAULT_BATCH_SIZE,
        frame_interval: float = FRAME_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.on_frame = on_frame
        self.batch_size = batch_size
        self.frame_interval = frame_interval
        self.clock = clock

        self.state: Optional[RenderState] = None
        self._target = ""
        self._final = False
        self._frames = 0
        self._handle: Optional[asyncio.TimerHandle] = None
        self._finished: Optional[asyncio.Future] = None

    @property
    def active(self) -> bool:
        return self.state is not None

    def begin(self, text: str = "", final: bool = False) -> asyncio.Future:
        """Start a new reveal; any reveal in progress is dropped."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self.state = RenderState()
        self._target = text
        self._final = final
        self._frames = 0
        self._finished = loop.create_future()
        self._schedule(loop)
        return self._finished

    def update(self, accumulated: str) -> None:
        """New snapshot of a source that is still streaming."""
        if self.state is None:
            self.begin(accumulated)
            return
        self._target = accumulated
        self._schedule()

    def finish(self, text: Optional[str] = None) -> asyncio.Future:
        """Mark the source complete; the future resolves once everything is shown."""
        if self.state is None:
            return self.begin(self._target if text is None else text, final=True)
        if text is not None:
            self._target = text
        self._final = True
        self._schedule()
        return self._finished

    async def reveal(self, text: str) -> str:
        return await self.begin(text, final=True)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._finished is not None and not self._finished.done():
            self._finished.cancel()
        self.state = None

    def _schedule(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        # one pending frame per reveal
        if self._handle is not None or self.state is None:
            return
        loop = loop or asyncio.get_running_loop()
        elapsed = self.clock() - self.state.last_frame_at
        delay = max(0.0, self.frame_interval - elapsed)
        self._handle = loop.call_later(delay, self._tick)

    def _tick(self) -> None:
        self._handle = None
        state = self.state
        if state is None:
            return

        if self._target.startswith(state.revealed_text):
            remaining = self._target[len(state.revealed_text):]
        else:
            logger.warning("source text no longer extends the revealed text; holding reveal")
            remaining = ""

        units = tokenize(remaining)
        state.pending_buffer = "" if self._final else _hold_back(units)
        batch = units[: self.batch_size]
        if batch:
            state.revealed_text += "".join(batch)
            state.last_frame_at = self.clock()
            self._frames += 1
            self.on_frame(state.revealed_text)

        if len(units) > len(batch):
            self._schedule()
        elif self._final:
            if self._frames == 0:
                self.on_frame(state.revealed_text)
            self._complete()

    def _complete(self) -> None:
        revealed = self.state.revealed_text if self.state else ""
        self.state = None
        if self._finished is not None and not self._finished.done():
            self._finished.set_result(revealed)
