"""Pydantic schemas for stream chunks and configuration."""

from runask.schemas.chunks import Chunk, ChunkType
from runask.schemas.config import AskConfig

__all__ = ["AskConfig", "Chunk", "ChunkType"]
