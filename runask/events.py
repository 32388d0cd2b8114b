"""Request lifecycle events.

The orchestrator emits an event at every milestone of a request: start,
each content chunk, session capture, end of stream, and the single
terminal outcome. The terminal display (and tests) subscribe as
listeners.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AskEventType(StrEnum):
    """Types of request lifecycle events."""

    REQUEST_STARTED = "request_started"
    CHUNK_RECEIVED = "chunk_received"
    SESSION_CAPTURED = "session_captured"
    STREAM_FINISHED = "stream_finished"
    COMPLETED = "completed"
    FAILED = "failed"


class AskEvent(BaseModel):
    """A single request lifecycle event."""

    type: AskEventType = Field(description="Event type")
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp when the event occurred",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Event payload, varies by event type",
    )


EventListener = Callable[[AskEvent], Any]


class AskEventEmitter:
    """Broadcasts request events to registered listeners.

    Listeners can be sync or async callables. Listener exceptions are
    logged and never reach the request.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []
        self._history: list[AskEvent] = []

    @property
    def history(self) -> list[AskEvent]:
        return list(self._history)

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        self._listeners = [ln for ln in self._listeners if ln != listener]

    async def emit(self, event_type: AskEventType, **data: Any) -> None:
        """Create an event and dispatch it to every listener."""
        event = AskEvent(type=event_type, data=data)
        self._history.append(event)

        for listener in self._listeners:
            try:
                result = listener(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Event listener error for %s", event_type)
