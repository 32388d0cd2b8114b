"""Per-request stream state.

One ``StreamState`` belongs to exactly one in-flight request. It owns the
ingestor and the reveal scheduler, and its ``current`` flag gates both the
network continuation and the timer: once cancelled, every method is a
no-op.
"""

from __future__ import annotations

import logging

from runask.schemas.chunks import Chunk
from runask.streaming.ingestor import StreamIngestor
from runask.streaming.reveal import (
    DEFAULT_INTERVAL,
    CallLater,
    RevealScheduler,
    RevealState,
    UpdateCallback,
)

logger = logging.getLogger(__name__)


class StreamState:
    """Network-true text plus its animated reveal, for one request."""

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        *,
        session_id: int | None = None,
        call_later: CallLater | None = None,
        on_update: UpdateCallback | None = None,
    ) -> None:
        self.ingestor = StreamIngestor()
        self.ingestor.seed_session(session_id)
        self.reveal = RevealScheduler(
            interval, call_later=call_later, on_update=on_update,
        )
        self.current: bool = True
        self.chunk_count: int = 0

    # ── Views ────────────────────────────────────────────────────

    @property
    def session_id(self) -> int | None:
        return self.ingestor.session_id

    @property
    def raw_buffer(self) -> str:
        return self.ingestor.raw_buffer

    @property
    def confirmed_text(self) -> str:
        return self.reveal.confirmed_text

    @property
    def pending_text(self) -> str:
        return self.reveal.pending_text

    @property
    def displayed_text(self) -> str:
        return self.reveal.displayed_text

    @property
    def finished(self) -> bool:
        return self.ingestor.finished

    # ── Operations ───────────────────────────────────────────────

    def feed(self, data: bytes) -> list[Chunk]:
        """Ingest one network read and queue its text for reveal."""
        if not self.current:
            return []
        return self._accept(self.ingestor.feed(data))

    def finish(self) -> list[Chunk]:
        """Flush the trailing partial frame at end of stream."""
        if not self.current or self.ingestor.finished:
            return []
        chunks = self._accept(self.ingestor.finish())
        logger.debug(
            "Stream finished: %d content chunks, %d characters, %d dropped frames",
            self.chunk_count, len(self.confirmed_text), self.ingestor.dropped_frames,
        )
        return chunks

    def tick(self) -> bool:
        """Advance the reveal by one character."""
        if not self.current:
            return False
        return self.reveal.tick()

    def flush(self) -> None:
        if self.current:
            self.reveal.flush()

    def cancel(self) -> None:
        """Tear down: stop the timer and refuse any further work."""
        self.current = False
        self.reveal.cancel()

    async def wait_revealed(self) -> None:
        """Wait until the reveal has caught up with the confirmed text."""
        if self.current and self.reveal.state == RevealState.REVEALING:
            await self.reveal.wait_idle()

    def _accept(self, chunks: list[Chunk]) -> list[Chunk]:
        for chunk in chunks:
            self.chunk_count += 1
            self.reveal.append(chunk.content)
        return chunks
