from .envelope import DATA_PREFIX, StreamEnvelope, decode_line, encode_event
from .transport import event_stream_response, relay

__all__ = ["DATA_PREFIX", "StreamEnvelope", "decode_line", "encode_event", "event_stream_response", "relay"]
