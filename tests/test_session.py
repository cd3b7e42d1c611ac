# End-to-end: ChatSession -> HTTP -> router -> fake provider -> stream back.

import asyncio
from functools import partial

import httpx

from conftest import FREE_MODEL, FakeProvider
from scribe.app import app
from scribe.client import ChatEvents, ChatSession, GenerationClient, TypingRenderer
from scribe.history import InMemoryConversationStore


def _run_session(model, prompts, session_id="s1", history=None, events=None):
    history = history or InMemoryConversationStore()
    notices = []
    seen = []

    async def run():
        # app errors reach the client as a truncated body, like a dropped connection
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        async with httpx.AsyncClient(transport=transport, base_url="http://scribe.test") as http:
            session = ChatSession(
                api=GenerationClient(http),
                history=history,
                model=model,
                session_id=session_id,
                events=events,
                notify=lambda title, desc: notices.append((title, desc)),
                renderer_factory=partial(TypingRenderer, frame_interval=0),
            )
            session.on_change = lambda s: seen.append(s.visible)
            replies = [await session.submit(p) for p in prompts]
            return session, replies

    session, replies = asyncio.run(run())
    return session, replies, history, notices, seen


def test_streamed_reply_is_saved_as_one_assistant_message(use_router):
    use_router(openrouter=FakeProvider(chunks=["Hi", " there", "!"]))
    events = ChatEvents()
    updates = []
    events.subscribe("s1", lambda: updates.append("changed"))

    session, replies, history, notices, seen = _run_session(FREE_MODEL, ["Hello"], events=events)

    assert replies[0].content == "Hi there!"
    assert [(m.role, m.content) for m in session.messages] == [("user", "Hello"), ("assistant", "Hi there!")]
    assert session.pending is None
    assert notices == []
    assert updates == ["changed"]

    saved = asyncio.run(history.recent("s1"))
    assert [(t.prompt, t.response) for t in saved] == [("Hello", "Hi there!")]


def test_in_progress_reply_replaces_itself_until_final(use_router):
    use_router(openrouter=FakeProvider(chunks=["one ", "two ", "three"]))
    session, _, _, _, seen = _run_session(FREE_MODEL, ["count"])

    in_progress = [v for v in seen if len(v) == 2 and v[-1].role == "assistant"]
    assert in_progress
    assert all(len(v) <= 2 for v in seen)
    lengths = [len(v[-1].content) for v in in_progress]
    assert lengths == sorted(lengths)
    assert len(session.messages) == 2


def test_one_shot_reply_and_context_on_second_turn(use_router):
    groq = FakeProvider(reply="It rains a lot.")
    use_router(groq=groq)
    session, replies, _, _, _ = _run_session("groq", ["Weather in Bergen?", "And in summer?"])

    assert [r.content for r in replies] == ["It rains a lot.", "It rains a lot."]
    assert groq.calls[0]["content"] == "Weather in Bergen?"
    second = groq.calls[1]["content"]
    assert second.startswith("Previous conversation:\nUser: Weather in Bergen?\nAssistant: It rains a lot.")
    assert "User: And in summer?" in second
    assert len(session.messages) == 4


def test_failed_generation_adds_no_assistant_message(use_router):
    use_router(xai=FakeProvider(error=RuntimeError("quota exceeded")))
    session, replies, history, notices, _ = _run_session("xai", ["Hello"])

    assert replies == [None]
    assert [m.role for m in session.messages] == ["user"]
    assert session.pending is None
    assert notices and "quota exceeded" in notices[0][1]
    assert asyncio.run(history.recent("s1")) == []


def test_invalid_model_is_notified(use_router):
    use_router()
    session, replies, _, notices, _ = _run_session("not-a-real-model", ["Hello"])
    assert replies == [None]
    assert "Invalid model selected" in notices[0][1]


def test_broken_stream_is_not_persisted(use_router):
    use_router(openrouter=FakeProvider(chunks=["partial ", RuntimeError("connection reset")]))
    session, replies, history, notices, _ = _run_session(FREE_MODEL, ["Hello"])

    assert replies == [None]
    assert [m.role for m in session.messages] == ["user"]
    assert notices
    assert asyncio.run(history.recent("s1")) == []


def test_blank_prompt_is_ignored(use_router):
    groq = FakeProvider()
    use_router(groq=groq)
    session, replies, _, _, _ = _run_session("groq", ["   "])
    assert replies == [None]
    assert session.messages == ()
    assert groq.calls == []


def test_load_restores_saved_pairs():
    history = InMemoryConversationStore()
    asyncio.run(history.append("s9", "Hi", "Hello!"))

    async def run():
        async with httpx.AsyncClient(base_url="http://unused") as http:
            session = ChatSession(GenerationClient(http), history, model="groq", session_id="s9")
            await session.load()
            return session

    session = asyncio.run(run())
    assert [(m.role, m.content) for m in session.messages] == [("user", "Hi"), ("assistant", "Hello!")]


class _UnreachableStore(InMemoryConversationStore):
    async def append(self, session_id, prompt, response, metadata=None):
        raise ConnectionError("db down")


def test_failed_save_is_notified_and_clears_the_pending_reply(use_router):
    use_router(groq=FakeProvider(reply="ok"))
    events = ChatEvents()
    updates = []
    events.subscribe("s1", lambda: updates.append("changed"))

    session, replies, _, notices, seen = _run_session("groq", ["Hello"], history=_UnreachableStore(), events=events)

    assert replies == [None]
    assert session.pending is None
    assert [m.role for m in session.messages] == ["user"]
    assert notices and notices[0][0] == "Save Error"
    assert "db down" in notices[0][1]
    assert seen[-1] == session.messages
    assert updates == []
