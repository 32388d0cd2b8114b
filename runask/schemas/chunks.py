"""Chunk schemas for the RunLLM server-sent event stream.

Each event frame on the wire looks like ``data: <json>`` followed by a
blank line. The JSON payload is validated into an immutable ``Chunk``.
"""

from __future__ import annotations

import json
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from runask.errors import FrameParseError

DATA_PREFIX = "data:"


class ChunkType(StrEnum):
    """Kinds of chunks the pipeline emits while answering."""

    RETRIEVAL = "retrieval"
    CLASSIFICATION = "classification"
    GENERATION_STARTS = "generation_starts"
    GENERATION_IN_PROGRESS = "generation_in_progress"


class Chunk(BaseModel):
    """A single parsed payload from one event frame."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Plain str so unrecognised kinds still parse and feed session capture.
    chunk_type: str = Field(description="Stage of the pipeline that produced it")
    chat_id: int | None = Field(default=None, description="Chat identifier")
    session_id: int | None = Field(
        default=None, description="Conversation identifier for follow-ups"
    )
    content: str = Field(default="", description="Text fragment, possibly empty")
    model_id: int | None = Field(default=None, description="Opaque model identifier")
    classified_case: str | None = Field(default=None, description="Opaque classification")

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def carries_text(self) -> bool:
        """True when this chunk contributes text to the answer."""
        return self.chunk_type == ChunkType.GENERATION_IN_PROGRESS and self.content != ""

    @classmethod
    def from_frame(cls, frame: str) -> Chunk | None:
        """Parse one event frame.

        Returns None when the frame has no ``data:`` line with a payload.

        Raises:
            FrameParseError: If the payload is not valid JSON or does not
                match the chunk shape.
        """
        payload = _extract_data(frame)
        if payload is None:
            return None
        try:
            return cls.model_validate(json.loads(payload))
        except (json.JSONDecodeError, ValidationError) as e:
            raise FrameParseError(f"Malformed chunk payload: {e}") from e


def _extract_data(frame: str) -> str | None:
    """Return the payload of the first non-empty ``data:`` line, or None."""
    for line in frame.split("\n"):
        line = line.rstrip("\r")
        if line.startswith(DATA_PREFIX):
            payload = line[len(DATA_PREFIX):].lstrip()
            if payload:
                return payload
    return None
