"""Line framing for streamed HTTP response bodies."""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)


async def iter_frames(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
    """Split a streamed body into newline-terminated frames.

    Only complete lines are emitted. A trailing segment without a newline is
    kept for the next read and dropped when the body ends.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""

    async for chunk in chunks:
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        *lines, buffer = buffer.split("\n")
        for line in lines:
            yield line.rstrip("\r")

    buffer += decoder.decode(b"", final=True)
    if buffer:
        logger.debug("Discarding unterminated trailing frame: %r", buffer)
