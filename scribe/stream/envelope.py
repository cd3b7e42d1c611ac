"""Wire format shared by the server relay and the client consumer.

Each event is one ``data: <json>`` line followed by a blank line. The JSON
object is a StreamEnvelope: ``deltaText`` (new text), ``accumulatedText``
(everything so far) and ``done`` (true only on the last event).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

DATA_PREFIX = "data:"


@dataclass(frozen=True)
class StreamEnvelope:
    delta_text: str
    accumulated_text: str
    done: bool = False

    def to_dict(self) -> dict:
        return {
            "deltaText": self.delta_text,
            "accumulatedText": self.accumulated_text,
            "done": self.done,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StreamEnvelope":
        if not isinstance(data, dict) or not isinstance(data.get("accumulatedText"), str):
            raise ValueError("not a stream envelope")
        return cls(
            delta_text=str(data.get("deltaText") or ""),
            accumulated_text=data["accumulatedText"],
            done=bool(data.get("done", False)),
        )


def encode_event(envelope: StreamEnvelope) -> str:
    return f"{DATA_PREFIX} {json.dumps(envelope.to_dict(), ensure_ascii=False)}\n\n"


def decode_line(line: str) -> Optional[StreamEnvelope]:
    """Parse one line. Returns None for non-data lines; raises ValueError on a bad payload."""
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    return StreamEnvelope.from_dict(json.loads(payload))
