"""Test helpers: a deterministic stand-in for loop.call_later and SSE frame builders."""

from __future__ import annotations

import json


class FakeHandle:
    def __init__(self, callback) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """Records scheduled callbacks and runs them on demand."""

    def __init__(self) -> None:
        self.scheduled: list[FakeHandle] = []
        self.delays: list[float] = []

    def call_later(self, delay, callback) -> FakeHandle:
        handle = FakeHandle(callback)
        self.scheduled.append(handle)
        self.delays.append(delay)
        return handle

    @property
    def live(self) -> list[FakeHandle]:
        return [h for h in self.scheduled if not h.cancelled and h.callback is not None]

    def fire_next(self) -> bool:
        """Run the oldest live callback. Returns False when none remain."""
        live = self.live
        if not live:
            return False
        handle = live[0]
        callback, handle.callback = handle.callback, None
        callback()
        return True

    def run_all(self, limit: int = 100_000) -> int:
        fired = 0
        while fired < limit and self.fire_next():
            fired += 1
        return fired


def sse(chunk_type: str = "generation_in_progress", content: str = "", **fields) -> str:
    """Build one ``data: <json>\\n\\n`` event frame."""
    payload = {
        "chunk_type": chunk_type,
        "chat_id": fields.pop("chat_id", 1),
        "session_id": fields.pop("session_id", 0),
        "content": content,
        "model_id": fields.pop("model_id", 7),
        "classified_case": fields.pop("classified_case", None),
        **fields,
    }
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
