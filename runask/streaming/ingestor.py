"""Incremental server-sent event parser.

Turns raw network reads into typed ``Chunk`` records. Reads may split a
frame, the blank-line delimiter, or a multi-byte UTF-8 character at any
byte; the ingestor buffers whatever is incomplete until the next read.
"""

from __future__ import annotations

import codecs
import logging

from runask.errors import FrameParseError
from runask.schemas.chunks import Chunk

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"


class StreamIngestor:
    """Splits a byte stream into event frames and parses each into a Chunk.

    Only text-bearing chunks (``generation_in_progress`` with non-empty
    content) are returned to the caller. The first non-empty session id
    seen on any chunk is kept in ``session_id``.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.raw_buffer: str = ""
        self.session_id: int | None = None
        self.finished: bool = False
        self.frame_count: int = 0
        self.dropped_frames: int = 0

    def seed_session(self, session_id: int | None) -> None:
        """Carry over the session id from an earlier request."""
        if session_id and not self.session_id:
            self.session_id = session_id

    def feed(self, data: bytes) -> list[Chunk]:
        """Consume one network read and return the text-bearing chunks it completed.

        Raises:
            RuntimeError: If called after ``finish()``.
        """
        if self.finished:
            raise RuntimeError("StreamIngestor.feed() called after finish()")

        self.raw_buffer += self._decoder.decode(data)

        *frames, self.raw_buffer = self.raw_buffer.split(FRAME_DELIMITER)
        return self._process_frames(frames)

    def finish(self) -> list[Chunk]:
        """Process any trailing partial frame and make the ingestor terminal."""
        if self.finished:
            raise RuntimeError("StreamIngestor.finish() called twice")

        self.raw_buffer += self._decoder.decode(b"", final=True)
        self.finished = True

        frames = self.raw_buffer.split(FRAME_DELIMITER)
        self.raw_buffer = ""
        return self._process_frames(frames)

    def _process_frames(self, frames: list[str]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for frame in frames:
            if not frame.strip():
                continue
            chunk = self._parse_frame(frame)
            if chunk is None:
                continue

            if chunk.session_id and not self.session_id:
                self.session_id = chunk.session_id
                logger.debug("Captured session id %d", chunk.session_id)

            logger.debug(
                "Received chunk: type=%s, length=%d",
                chunk.chunk_type, len(chunk.content),
            )
            if chunk.carries_text:
                chunks.append(chunk)
        return chunks

    def _parse_frame(self, frame: str) -> Chunk | None:
        self.frame_count += 1
        try:
            chunk = Chunk.from_frame(frame)
        except FrameParseError as e:
            self.dropped_frames += 1
            logger.warning("Dropping malformed event frame: %s", e)
            return None
        if chunk is None:
            self.dropped_frames += 1
            logger.debug("Dropping event frame without a data line")
        return chunk
