"""Tests for runask.schemas.chunks — Chunk parsing from event frames."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from helpers import sse
from runask.errors import FrameParseError
from runask.schemas.chunks import Chunk, ChunkType


class TestChunkType:
    def test_wire_values(self):
        assert ChunkType.RETRIEVAL == "retrieval"
        assert ChunkType.CLASSIFICATION == "classification"
        assert ChunkType.GENERATION_STARTS == "generation_starts"
        assert ChunkType.GENERATION_IN_PROGRESS == "generation_in_progress"


class TestChunkModel:
    def test_full_payload(self):
        chunk = Chunk.model_validate({
            "chunk_type": "generation_in_progress",
            "chat_id": 3,
            "session_id": 99,
            "content": "Hi",
            "model_id": 12,
            "classified_case": "how_to",
        })
        assert chunk.chunk_type == ChunkType.GENERATION_IN_PROGRESS
        assert chunk.session_id == 99
        assert chunk.classified_case == "how_to"
        assert chunk.carries_text is True

    def test_null_content_becomes_empty(self):
        chunk = Chunk.model_validate({"chunk_type": "retrieval", "content": None})
        assert chunk.content == ""

    def test_extra_fields_ignored(self):
        chunk = Chunk.model_validate({"chunk_type": "retrieval", "sources": [1, 2]})
        assert not hasattr(chunk, "sources")

    def test_frozen(self):
        chunk = Chunk.model_validate({"chunk_type": "retrieval"})
        with pytest.raises(ValidationError):
            chunk.content = "changed"

    def test_empty_generation_does_not_carry_text(self):
        chunk = Chunk.model_validate({"chunk_type": "generation_in_progress", "content": ""})
        assert chunk.carries_text is False

    @pytest.mark.parametrize("kind", ["retrieval", "classification", "generation_starts"])
    def test_other_kinds_do_not_carry_text(self, kind):
        chunk = Chunk.model_validate({"chunk_type": kind, "content": "ignored"})
        assert chunk.carries_text is False


class TestFromFrame:
    def test_parses_data_line(self):
        chunk = Chunk.from_frame(sse(content="Hello").rstrip("\n"))
        assert chunk is not None
        assert chunk.content == "Hello"

    def test_no_space_after_prefix(self):
        chunk = Chunk.from_frame('data:{"chunk_type":"retrieval"}')
        assert chunk is not None
        assert chunk.chunk_type == ChunkType.RETRIEVAL

    def test_first_data_line_wins(self):
        frame = (
            "event: message\n"
            'data: {"chunk_type":"generation_in_progress","content":"first"}\n'
            'data: {"chunk_type":"generation_in_progress","content":"second"}'
        )
        assert Chunk.from_frame(frame).content == "first"

    def test_crlf_line_endings(self):
        frame = 'id: 1\r\ndata: {"chunk_type":"retrieval"}\r'
        assert Chunk.from_frame(frame).chunk_type == ChunkType.RETRIEVAL

    def test_missing_data_line_returns_none(self):
        assert Chunk.from_frame("event: ping\nid: 4") is None

    def test_prefix_is_case_sensitive(self):
        assert Chunk.from_frame('DATA: {"chunk_type":"retrieval"}') is None

    def test_invalid_json_raises(self):
        with pytest.raises(FrameParseError):
            Chunk.from_frame("data: {not json")

    def test_unknown_chunk_type_kept(self):
        chunk = Chunk.from_frame(
            'data: {"chunk_type":"telemetry","session_id":8,"content":"x"}'
        )
        assert chunk.chunk_type == "telemetry"
        assert chunk.session_id == 8
        assert chunk.carries_text is False

    def test_missing_chunk_type_raises(self):
        with pytest.raises(FrameParseError):
            Chunk.from_frame('data: {"content":"x"}')

    def test_empty_data_line_returns_none(self):
        assert Chunk.from_frame("data:") is None
        assert Chunk.from_frame("data:   \r") is None

    def test_empty_data_line_skipped_for_next(self):
        frame = 'data:\ndata: {"chunk_type":"retrieval"}'
        assert Chunk.from_frame(frame).chunk_type == ChunkType.RETRIEVAL

    def test_content_preserves_whitespace(self):
        chunk = Chunk.from_frame(
            'data: {"chunk_type":"generation_in_progress","content":"  indented\\n"}'
        )
        assert chunk.content == "  indented\n"
