"""Tests for runask.streaming.state — the per-request owned state."""

from __future__ import annotations

from helpers import sse
from runask.streaming.reveal import RevealState
from runask.streaming.state import StreamState


def _invariant(state: StreamState) -> bool:
    return (
        state.confirmed_text.startswith(state.displayed_text)
        and len(state.displayed_text) + len(state.pending_text) == len(state.confirmed_text)
    )


class TestFeedAndReveal:
    def test_hello_scenario(self, timers):
        state = StreamState(call_later=timers.call_later)
        state.feed((sse(content="Hel", session_id=5) + sse(content="lo", session_id=5)).encode())
        assert state.confirmed_text == "Hello"
        timers.run_all()
        assert state.displayed_text == "Hello"
        assert state.session_id == 5

    def test_other_kinds_contribute_no_text(self, timers):
        state = StreamState(call_later=timers.call_later)
        state.feed((
            sse("retrieval", content="source doc", session_id=8)
            + sse("classification", content="case")
            + sse("generation_starts", content="?")
            + sse(content="answer")
        ).encode())
        assert state.confirmed_text == "answer"
        assert state.session_id == 8
        assert state.chunk_count == 1

    def test_invariant_after_every_feed_and_tick(self, timers):
        state = StreamState(call_later=timers.call_later)
        data = "".join(sse(content=w) for w in ["one ", "two ", "three"]).encode()
        for i in range(0, len(data), 9):
            state.feed(data[i:i + 9])
            assert _invariant(state)
            timers.fire_next()
            assert _invariant(state)
        state.finish()
        while timers.fire_next():
            assert _invariant(state)
        assert state.displayed_text == state.confirmed_text == "one two three"

    def test_finish_processes_remainder(self, timers):
        state = StreamState(call_later=timers.call_later)
        state.feed(sse(content="tail").rstrip("\n").encode())
        assert state.confirmed_text == ""
        state.finish()
        assert state.confirmed_text == "tail"
        assert state.finished is True

    def test_seeded_session_id(self, timers):
        state = StreamState(session_id=77, call_later=timers.call_later)
        state.feed(sse(content="x", session_id=1).encode())
        assert state.session_id == 77

    def test_manual_tick(self, timers):
        state = StreamState(call_later=timers.call_later)
        state.feed(sse(content="ab").encode())
        assert state.tick() is True
        assert state.displayed_text == "a"


class TestCancel:
    def test_teardown_mid_reveal(self, timers):
        state = StreamState(call_later=timers.call_later)
        state.feed(sse(content="streaming text").encode())
        timers.fire_next()
        ticks = state.reveal.tick_count

        state.cancel()

        assert state.current is False
        assert timers.live == []
        assert timers.run_all() == 0
        assert state.reveal.tick_count == ticks
        assert state.reveal.state == RevealState.CANCELLED

    def test_everything_is_noop_after_cancel(self, timers):
        state = StreamState(call_later=timers.call_later)
        state.cancel()
        assert state.feed(sse(content="late").encode()) == []
        assert state.finish() == []
        assert state.tick() is False
        state.flush()
        assert state.confirmed_text == ""
        assert timers.scheduled == []
