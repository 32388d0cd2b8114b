"""Tests for runask.streaming.ingestor — incremental SSE frame parsing."""

from __future__ import annotations

import pytest

from helpers import sse
from runask.streaming.ingestor import StreamIngestor

_ANSWER = "Héllo, 世界! 🙂 Ça va?"


def _stream_bytes() -> bytes:
    parts = [
        sse("retrieval", session_id=321),
        sse("classification", classified_case="question"),
        sse("generation_starts"),
        sse(content="Héllo, "),
        sse(content="世界! "),
        "event: ping\n\n",
        sse(content="🙂 Ça"),
        "data: {broken\n\n",
        sse(content=" va?"),
    ]
    return "".join(parts).encode("utf-8")


def _feed_in_pieces(data: bytes, size: int) -> str:
    ingestor = StreamIngestor()
    text = ""
    for start in range(0, len(data), size):
        text += "".join(c.content for c in ingestor.feed(data[start:start + size]))
    text += "".join(c.content for c in ingestor.finish())
    return text


class TestFeed:
    def test_hello_scenario(self):
        ingestor = StreamIngestor()
        data = (
            'data: {"chunk_type":"generation_in_progress","content":"Hel","chat_id":1,'
            '"session_id":5,"model_id":2,"classified_case":null}\n\n'
            'data: {"chunk_type":"generation_in_progress","content":"lo","chat_id":1,'
            '"session_id":5,"model_id":2,"classified_case":null}\n\n'
        ).encode()
        chunks = ingestor.feed(data)
        assert "".join(c.content for c in chunks) == "Hello"
        assert ingestor.raw_buffer == ""

    def test_partial_frame_stays_buffered(self):
        ingestor = StreamIngestor()
        frame = sse(content="abc")
        assert ingestor.feed(frame[:10].encode()) == []
        assert ingestor.raw_buffer == frame[:10]
        chunks = ingestor.feed(frame[10:].encode())
        assert [c.content for c in chunks] == ["abc"]

    def test_split_mid_delimiter(self):
        ingestor = StreamIngestor()
        frame = sse(content="abc")
        assert ingestor.feed(frame[:-1].encode()) == []
        assert [c.content for c in ingestor.feed(b"\n")] == ["abc"]

    def test_split_mid_multibyte_character(self):
        ingestor = StreamIngestor()
        data = sse(content="🙂").encode("utf-8")
        cut = data.index("🙂".encode()) + 2
        assert ingestor.feed(data[:cut]) == []
        assert "�" not in ingestor.raw_buffer
        assert [c.content for c in ingestor.feed(data[cut:])] == ["🙂"]

    def test_only_text_chunks_returned(self):
        ingestor = StreamIngestor()
        data = (sse("retrieval", content="docs") + sse("generation_starts")).encode()
        assert ingestor.feed(data) == []

    def test_malformed_frames_do_not_stop_stream(self):
        ingestor = StreamIngestor()
        data = ("data: {oops\n\n" + "no data line\n\n" + sse(content="ok")).encode()
        chunks = ingestor.feed(data)
        assert [c.content for c in chunks] == ["ok"]
        assert ingestor.dropped_frames == 2

    def test_malformed_frame_logged(self, caplog):
        ingestor = StreamIngestor()
        with caplog.at_level("WARNING", logger="runask.streaming.ingestor"):
            ingestor.feed(b"data: {oops\n\n")
        assert "malformed" in caplog.text.lower()

    def test_empty_data_line_not_logged_as_malformed(self, caplog):
        ingestor = StreamIngestor()
        with caplog.at_level("WARNING", logger="runask.streaming.ingestor"):
            ingestor.feed(b"data:\n\n" + sse(content="ok").encode())
        assert "malformed" not in caplog.text.lower()
        assert ingestor.dropped_frames == 1

    def test_blank_frames_skipped(self):
        ingestor = StreamIngestor()
        ingestor.feed(b"\n\n\n\n  \n\n")
        assert ingestor.dropped_frames == 0
        assert ingestor.frame_count == 0


class TestSessionCapture:
    def test_first_non_empty_wins(self):
        ingestor = StreamIngestor()
        ingestor.feed((
            sse("retrieval", session_id=0)
            + sse("classification", session_id=11)
            + sse(content="x", session_id=22)
        ).encode())
        assert ingestor.session_id == 11

    def test_unrecognised_chunk_kind_feeds_session(self, caplog):
        ingestor = StreamIngestor()
        with caplog.at_level("WARNING", logger="runask.streaming.ingestor"):
            chunks = ingestor.feed(
                (sse("citations", session_id=42) + sse(content="x")).encode()
            )
        assert ingestor.session_id == 42
        assert [c.content for c in chunks] == ["x"]
        assert caplog.text == ""

    def test_seeded_session_not_overwritten(self):
        ingestor = StreamIngestor()
        ingestor.seed_session(5)
        ingestor.feed(sse(content="x", session_id=9).encode())
        assert ingestor.session_id == 5

    def test_seed_none_is_ignored(self):
        ingestor = StreamIngestor()
        ingestor.seed_session(None)
        ingestor.feed(sse(content="x", session_id=9).encode())
        assert ingestor.session_id == 9


class TestFinish:
    def test_undelimited_remainder_processed(self):
        ingestor = StreamIngestor()
        frame = sse(content="tail").rstrip("\n")
        assert ingestor.feed(frame.encode()) == []
        assert [c.content for c in ingestor.finish()] == ["tail"]
        assert ingestor.raw_buffer == ""

    def test_whitespace_remainder_ignored(self):
        ingestor = StreamIngestor()
        ingestor.feed(sse(content="a").encode() + b"\n")
        assert ingestor.finish() == []
        assert ingestor.dropped_frames == 0

    def test_feed_after_finish_rejected(self):
        ingestor = StreamIngestor()
        ingestor.finish()
        with pytest.raises(RuntimeError):
            ingestor.feed(b"data: {}\n\n")

    def test_double_finish_rejected(self):
        ingestor = StreamIngestor()
        ingestor.finish()
        with pytest.raises(RuntimeError):
            ingestor.finish()

    def test_truncated_multibyte_at_end_replaced(self):
        ingestor = StreamIngestor()
        ingestor.feed(sse(content="ok").encode())
        ingestor.feed("é".encode()[:1])
        # A dangling lead byte is not a frame; it must not raise.
        assert ingestor.finish() == []
        assert ingestor.dropped_frames == 1


class TestChunkingInvariance:
    def test_single_call_reference(self):
        assert _feed_in_pieces(_stream_bytes(), len(_stream_bytes())) == _ANSWER

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 13, 64])
    def test_fixed_piece_sizes(self, size):
        assert _feed_in_pieces(_stream_bytes(), size) == _ANSWER

    def test_every_two_way_split(self):
        data = _stream_bytes()
        for cut in range(1, len(data)):
            ingestor = StreamIngestor()
            text = "".join(c.content for c in ingestor.feed(data[:cut]))
            text += "".join(c.content for c in ingestor.feed(data[cut:]))
            text += "".join(c.content for c in ingestor.finish())
            assert text == _ANSWER, f"split at byte {cut}"

    def test_session_capture_independent_of_split(self):
        data = _stream_bytes()
        ingestor = StreamIngestor()
        for byte in data:
            ingestor.feed(bytes([byte]))
        ingestor.finish()
        assert ingestor.session_id == 321
