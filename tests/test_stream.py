import asyncio

import pytest

from scribe.client.consumer import StreamConsumer
from scribe.generate.errors import StreamInterruptedError
from scribe.stream import StreamEnvelope, decode_line, encode_event, event_stream_response, relay


async def _agen(items):
    for item in items:
        if isinstance(item, Exception):
            raise item
        await asyncio.sleep(0)
        yield item


def _collect(deltas, into):
    async def run():
        async for event in relay(deltas):
            into.append(event)
    asyncio.run(run())
    return into


def _decode(event: str) -> StreamEnvelope:
    assert event.endswith("\n\n")
    return decode_line(event.splitlines()[0])


# -------------------------
# relay
# -------------------------
def test_relay_accumulates_and_terminates_once():
    events = _collect(_agen(["Hel", "", "lo", " world"]), [])
    envelopes = [_decode(e) for e in events]

    lengths = [len(e.accumulated_text) for e in envelopes]
    assert lengths == sorted(lengths)
    assert [e.done for e in envelopes].count(True) == 1
    assert envelopes[-1].done
    assert envelopes[-1].delta_text == ""
    assert envelopes[-1].accumulated_text == "Hello world"
    assert [e.delta_text for e in envelopes[:-1]] == ["Hel", "lo", " world"]


def test_relay_of_empty_upstream_sends_only_done():
    envelopes = [_decode(e) for e in _collect(_agen([]), [])]
    assert envelopes == [StreamEnvelope(delta_text="", accumulated_text="", done=True)]


def test_relay_aborts_without_done_on_upstream_error():
    closed = []

    async def upstream():
        try:
            yield "partial"
            raise RuntimeError("upstream dropped")
        finally:
            closed.append(True)

    events = []
    with pytest.raises(RuntimeError, match="upstream dropped"):
        _collect(upstream(), events)
    assert [_decode(e).done for e in events] == [False]
    assert closed == [True]


class _OpenUpstream:
    """An upstream that was opened but never read."""

    def __init__(self):
        self.closed = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        raise StopAsyncIteration

    async def aclose(self):
        self.closed += 1


def test_response_closes_upstream_even_if_body_never_starts():
    upstream = _OpenUpstream()
    response = event_stream_response(upstream)
    assert response.background is not None

    asyncio.run(response.background())
    assert upstream.closed == 1


def test_envelope_wire_shape():
    event = encode_event(StreamEnvelope("é", "café", False))
    assert event == 'data: {"deltaText": "é", "accumulatedText": "café", "done": false}\n\n'


# -------------------------
# consumer
# -------------------------
def _wire(deltas):
    return "".join(_collect(_agen(deltas), [])).encode("utf-8")


def _chunks(data: bytes, size: int):
    return [data[i:i + size] for i in range(0, len(data), size)]


def test_consumer_reassembles_split_chunks():
    data = _wire(["Grüße ", "aus ", "Köln"])
    snapshots = []
    consumer = StreamConsumer(on_text=snapshots.append)
    text = asyncio.run(consumer.consume(_agen(_chunks(data, 7))))
    assert text == "Grüße aus Köln"
    assert snapshots == ["Grüße ", "Grüße aus ", "Grüße aus Köln", "Grüße aus Köln"]
    assert consumer.done


def test_replaying_an_envelope_is_idempotent():
    line = encode_event(StreamEnvelope("lo", "Hello", False)).strip()
    consumer = StreamConsumer()
    consumer.feed_line(line)
    first = consumer.text
    consumer.feed_line(line)
    assert consumer.text == first == "Hello"


def test_malformed_and_comment_lines_are_skipped():
    consumer = StreamConsumer()
    lines = [
        ": keep-alive",
        "data: {not json",
        'data: {"deltaText": "x"}',
        "event: ping",
        encode_event(StreamEnvelope("Hi", "Hi", True)).strip(),
    ]
    payload = ("\n".join(lines) + "\n").encode("utf-8")
    text = asyncio.run(consumer.consume(_agen([payload])))
    assert text == "Hi"
    assert consumer.skipped_lines == 2


def test_consumer_stops_at_done_and_releases_reader():
    released = []

    async def reader():
        try:
            yield encode_event(StreamEnvelope("a", "a", True)).encode("utf-8")
            yield encode_event(StreamEnvelope("b", "ab", False)).encode("utf-8")
        finally:
            released.append(True)

    consumer = StreamConsumer()
    assert asyncio.run(consumer.consume(reader())) == "a"
    assert released == [True]


def test_stream_without_done_is_an_error():
    data = encode_event(StreamEnvelope("a", "a", False)).encode("utf-8")
    consumer = StreamConsumer()
    with pytest.raises(StreamInterruptedError):
        asyncio.run(consumer.consume(_agen([data])))
    assert consumer.text == "a"


def test_paragraphs():
    consumer = StreamConsumer()
    consumer.feed_line(encode_event(StreamEnvelope("", "One\n\nTwo\n \nThree", False)).strip())
    assert consumer.paragraphs == ["One", "Two", "Three"]


def test_invalid_utf8_does_not_abort_the_read():
    payload = (
        b"\xff\xfe stray bytes\n"
        + b'data: {"deltaText": "caf\xc3", "accumulatedText": "caf\xc3", "done": false}\n'
        + encode_event(StreamEnvelope("!", "cafe!", True)).encode("utf-8")
    )
    snapshots = []
    consumer = StreamConsumer(on_text=snapshots.append)
    text = asyncio.run(consumer.consume(_agen(_chunks(payload, 5))))

    assert text == "cafe!"
    assert snapshots[0] == "caf\ufffd"
    assert consumer.done
