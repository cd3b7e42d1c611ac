# ============================================================
# scribe-chat: terminal front end for a running Scribe server.
# Usage: scribe-chat --model groq --url http://localhost:8000
# ============================================================

from __future__ import annotations

import argparse
import asyncio
import sys

from scribe.generate.types import ModelParams
from scribe.history import InMemoryConversationStore
from scribe.settings import settings
from scribe.utils.logging import configure_logging

from .api import GenerationClient
from .session import ChatSession


class TerminalView:
    """Prints only the part of each frame that is new."""

    def __init__(self, out=sys.stdout):
        self.out = out
        self.shown = 0

    def frame(self, text: str) -> None:
        self.out.write(text[self.shown:])
        self.out.flush()
        self.shown = len(text)

    def reset(self) -> None:
        self.shown = 0


def print_error(title: str, description: str) -> None:
    print(f"\n[{title}] {description}", file=sys.stderr)


async def run(args: argparse.Namespace) -> None:
    api = GenerationClient.for_url(args.url, timeout=settings.REQUEST_TIMEOUT)
    view = TerminalView()
    session = ChatSession(
        api=api,
        history=InMemoryConversationStore(),
        model=args.model,
        params=ModelParams(max_tokens=args.max_tokens, temperature=args.temperature, top_p=args.top_p),
        notify=print_error,
    )
    session.on_change = lambda s: view.frame(s.pending.content) if s.pending else None
    try:
        while True:
            try:
                prompt = await asyncio.to_thread(input, "\nyou> ")
            except EOFError:
                break
            if prompt.strip() in {"/quit", "/exit"}:
                break
            view.reset()
            print("bot> ", end="", flush=True)
            await session.submit(prompt)
            print()
    finally:
        session.close()
        await api.aclose()


def main(argv=None) -> None:
    p = argparse.ArgumentParser(description="Chat with a Scribe server from the terminal.")
    p.add_argument("--url", default=settings.API_BASE_URL)
    p.add_argument("--model", default=settings.DEFAULT_MODEL)
    p.add_argument("--max-tokens", type=int, default=4096)
    p.add_argument("--temperature", type=float, default=0.7)
    p.add_argument("--top-p", type=float, default=0.4)
    p.add_argument("--log-level", default="WARNING")
    args = p.parse_args(argv)

    configure_logging(args.log_level)
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
