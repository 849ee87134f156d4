"""
Server-sent event frame decoding.

Turns a provider's raw response body into parsed JSON frames, independent of
how the bytes were split across network reads.
"""

import codecs
import json
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_LINE = "data: [DONE]"
DONE_FRAME = f"{DONE_LINE}\n\n"


class SSEFrameDecoder:
    """
    Incremental decoder for ``data: {...}`` lines.

    The only state is the text of the current, not yet terminated line. A
    trailing line the upstream never terminates is dropped when the stream
    ends; there is no flush.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.buffer = ""

    def feed(self, chunk: bytes) -> list[dict[str, Any]]:
        """
        Consume one network chunk and return the frames it completes.

        Args:
            chunk: Raw bytes as read from the response body

        Returns:
            Parsed JSON objects, in arrival order
        """
        self.buffer += self._decoder.decode(chunk)
        *lines, self.buffer = self.buffer.split("\n")

        frames = []
        for line in lines:
            frame = self._parse_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    @staticmethod
    def _parse_line(line: str) -> dict[str, Any] | None:
        trimmed = line.strip()
        if not trimmed or trimmed == DONE_LINE or not trimmed.startswith(DATA_PREFIX):
            return None

        try:
            frame = json.loads(trimmed[len(DATA_PREFIX) :])
        except json.JSONDecodeError:
            logger.debug("Skipping malformed SSE frame", extra={"frame": trimmed[:200]})
            return None

        if not isinstance(frame, dict):
            logger.debug("Skipping non-object SSE frame", extra={"frame": trimmed[:200]})
            return None
        return frame


async def iter_frames(byte_stream: AsyncIterable[bytes]) -> AsyncIterator[dict[str, Any]]:
    """Decode an async byte stream into parsed SSE frames."""
    decoder = SSEFrameDecoder()
    async for chunk in byte_stream:
        for frame in decoder.feed(chunk):
            yield frame

    if decoder.buffer.strip():
        logger.debug(
            "Discarding unterminated trailing SSE line",
            extra={"trailing_bytes": len(decoder.buffer.encode("utf-8"))},
        )


def format_sse(data: str) -> str:
    """Wrap a serialized payload as one SSE data frame."""
    return f"{DATA_PREFIX}{data}\n\n"
