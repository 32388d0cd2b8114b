"""Drives one question from HTTP request to revealed, copied answer.

The orchestrator owns at most one ``StreamState`` at a time. Asking a new
question first tears down the previous state; only the session id is
carried from one request to the next so follow-ups stay in the same
conversation. Every call to ``ask()`` ends in exactly one ``AskResult``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from runask.clipboard import Clipboard
from runask.client import RunLLMClient
from runask.errors import (
    AskError,
    ClipboardError,
    ConfigurationError,
    EmptyResultError,
    RequestCancelledError,
    UnknownAskError,
)
from runask.events import AskEventEmitter, AskEventType
from runask.schemas.config import AskConfig
from runask.streaming.reveal import CallLater, UpdateCallback
from runask.streaming.state import StreamState

logger = logging.getLogger(__name__)


@dataclass
class AskResult:
    """Terminal outcome of one question."""

    ok: bool
    text: str = ""
    error: AskError | None = None
    partial_text: str = ""
    session_id: int | None = None
    copied: bool = False


class AskOrchestrator:
    """Asks questions of one pipeline and reveals the streamed answers."""

    def __init__(
        self,
        client: RunLLMClient,
        *,
        config: AskConfig | None = None,
        clipboard: Clipboard | None = None,
        emitter: AskEventEmitter | None = None,
        call_later: CallLater | None = None,
        on_update: UpdateCallback | None = None,
    ) -> None:
        self._client = client
        self._config = config or client.config
        self._clipboard = clipboard
        self._emitter = emitter or AskEventEmitter()
        self._call_later = call_later
        self.on_update = on_update

        self.session_id: int | None = None
        self._state: StreamState | None = None
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> StreamState | None:
        """The state of the current (or most recent) request."""
        return self._state

    @property
    def emitter(self) -> AskEventEmitter:
        return self._emitter

    @property
    def config(self) -> AskConfig:
        return self._config

    def reset_session(self) -> None:
        """Forget the carried session id so the next question starts fresh."""
        self.session_id = None

    def cancel(self) -> None:
        """Tear down the in-flight request, if any.

        Stops the reveal timer, marks the state as no longer current, and
        interrupts a pending network read.
        """
        state = self._state
        if state is None or not state.current:
            return
        state.cancel()
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def ask(self, question: str, *, animate: bool = True) -> AskResult:
        """Ask one question and return its single terminal outcome."""
        self.cancel()
        self._state = None

        try:
            self._config.validate_credentials()
            if not question.strip():
                raise ConfigurationError("Please enter a question.")
        except ConfigurationError as e:
            return await self._fail(e, None)

        state = StreamState(
            self._config.tick_interval,
            session_id=self.session_id,
            call_later=self._call_later,
            on_update=self.on_update,
        )
        self._state = state
        self._task = asyncio.current_task()

        await self._emitter.emit(
            AskEventType.REQUEST_STARTED,
            question=question.strip(),
            session_id=self.session_id,
            url=self._config.chat_url,
        )

        try:
            await self._drive(state, question.strip())
            return await self._succeed(state, animate=animate)
        except asyncio.CancelledError:
            if state.current:
                state.cancel()
                raise
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            return await self._fail(RequestCancelledError(), state)
        except AskError as e:
            return await self._fail(e, state)
        except Exception as e:
            logger.exception("Unexpected error while asking")
            return await self._fail(UnknownAskError(e), state)
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    async def _drive(self, state: StreamState, question: str) -> None:
        stream = self._client.stream_chat(question, self.session_id)
        try:
            async for data in stream:
                if not state.current:
                    break
                for chunk in state.feed(data):
                    await self._emitter.emit(
                        AskEventType.CHUNK_RECEIVED,
                        chunk_type=chunk.chunk_type,
                        length=len(chunk.content),
                        total=len(state.confirmed_text),
                    )
                await self._capture_session(state)
        finally:
            await stream.aclose()

        if not state.current:
            raise RequestCancelledError()

        for chunk in state.finish():
            await self._emitter.emit(
                AskEventType.CHUNK_RECEIVED,
                chunk_type=chunk.chunk_type,
                length=len(chunk.content),
                total=len(state.confirmed_text),
            )
        await self._capture_session(state)
        await self._emitter.emit(
            AskEventType.STREAM_FINISHED,
            chunks=state.chunk_count,
            length=len(state.confirmed_text),
            dropped_frames=state.ingestor.dropped_frames,
        )

        if not state.confirmed_text:
            raise EmptyResultError()

    async def _capture_session(self, state: StreamState) -> None:
        if state.session_id and not self.session_id:
            self.session_id = state.session_id
            await self._emitter.emit(
                AskEventType.SESSION_CAPTURED, session_id=self.session_id,
            )

    async def _succeed(self, state: StreamState, *, animate: bool) -> AskResult:
        if animate:
            await state.wait_revealed()
        else:
            state.flush()

        if not state.current:
            raise RequestCancelledError()

        text = state.confirmed_text
        copied = self._copy(text)
        await self._emitter.emit(
            AskEventType.COMPLETED,
            length=len(text),
            session_id=self.session_id,
            copied=copied,
        )
        return AskResult(ok=True, text=text, session_id=self.session_id, copied=copied)

    def _copy(self, text: str) -> bool:
        if self._clipboard is None or not self._config.copy_to_clipboard:
            return False
        try:
            self._clipboard.copy(text)
        except ClipboardError as e:
            logger.warning("Could not copy response to clipboard: %s", e)
            return False
        return True

    async def _fail(self, error: AskError, state: StreamState | None) -> AskResult:
        partial = ""
        if state is not None:
            partial = state.displayed_text
            state.cancel()

        logger.debug("Request failed: %s: %s", type(error).__name__, error)
        await self._emitter.emit(
            AskEventType.FAILED,
            error=error.user_message(),
            title=error.title,
            kind=type(error).__name__,
        )
        return AskResult(
            ok=False, error=error, partial_text=partial, session_id=self.session_id,
        )
