"""Stream ingestion and animated reveal."""

from runask.streaming.ingestor import StreamIngestor
from runask.streaming.reveal import RevealScheduler, RevealState
from runask.streaming.state import StreamState

__all__ = ["RevealScheduler", "RevealState", "StreamIngestor", "StreamState"]
