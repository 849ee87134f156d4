"""
Streaming relay pipeline.

Raw upstream bytes -> SSE frames -> normalized events -> outbound SSE frames.
"""

from llm_sandbox.streaming.normalizer import StreamAccumulator, normalize_events
from llm_sandbox.streaming.relay import RelayState, StreamRelay
from llm_sandbox.streaming.sse import SSEFrameDecoder, format_sse, iter_frames

__all__ = [
    "RelayState",
    "SSEFrameDecoder",
    "StreamAccumulator",
    "StreamRelay",
    "format_sse",
    "iter_frames",
    "normalize_events",
]
