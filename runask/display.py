"""Live terminal view of a streaming answer.

A Rich Live panel renders the revealed text as Markdown while the answer
streams in, with a status line driven by request events. After the
request ends, ``render_result`` prints the final answer or error.
"""

from __future__ import annotations

import time
from enum import StrEnum

from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from runask.events import AskEvent, AskEventType, EventListener
from runask.orchestrator import AskResult


class DisplayStatus(StrEnum):
    """Visual state of the answer panel."""

    THINKING = "thinking"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


_STATUS_MARKUP: dict[DisplayStatus, str] = {
    DisplayStatus.THINKING: "[bold cyan]◉[/bold cyan] RunLLM thinking...",
    DisplayStatus.STREAMING: "[bold green]●[/bold green] Streaming",
    DisplayStatus.DONE: "[bold green]✓[/bold green] Response processing complete",
    DisplayStatus.FAILED: "[bold red]✗[/bold red] Failed",
}


class AnswerDisplay:
    """Live panel showing the revealed answer for one question."""

    def __init__(self, console: Console, question: str) -> None:
        self._console = console
        self._question = question
        self._text: str = ""
        self._status = DisplayStatus.THINKING
        self._error: str = ""
        self._chars_received: int = 0
        self._start_time = time.monotonic()
        self._live: Live | None = None

    @property
    def status(self) -> DisplayStatus:
        return self._status

    @property
    def text(self) -> str:
        return self._text

    def __enter__(self) -> AnswerDisplay:
        self._start_time = time.monotonic()
        self._live = Live(
            self._build_panel(),
            console=self._console,
            refresh_per_second=20,
            transient=True,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    def update_text(self, displayed: str) -> None:
        """Reveal callback: show the currently displayed prefix."""
        self._text = displayed
        self._refresh()

    def create_listener(self) -> EventListener:
        """Create an event listener for the request event emitter."""

        def _handle(event: AskEvent) -> None:
            self._handle_event(event)
            self._refresh()

        return _handle

    def _handle_event(self, event: AskEvent) -> None:
        etype = event.type
        data = event.data

        if etype == AskEventType.REQUEST_STARTED:
            self._status = DisplayStatus.THINKING
            self._text = ""
            self._error = ""
            self._chars_received = 0

        elif etype == AskEventType.CHUNK_RECEIVED:
            self._status = DisplayStatus.STREAMING
            self._chars_received = data.get("total", self._chars_received)

        elif etype == AskEventType.COMPLETED:
            self._status = DisplayStatus.DONE

        elif etype == AskEventType.FAILED:
            self._status = DisplayStatus.FAILED
            self._error = data.get("error", "Unknown error")

    def _refresh(self) -> None:
        if self._live:
            try:
                self._live.update(self._build_panel())
            except Exception:
                pass  # Swallow rendering errors during rapid updates

    def _build_status(self) -> Text:
        elapsed = time.monotonic() - self._start_time
        status = Text.from_markup(_STATUS_MARKUP[self._status])
        status.append(f"  {elapsed:.1f}s", style="dim")
        if self._chars_received:
            shown = len(self._text)
            status.append(f"  {shown:,}/{self._chars_received:,} chars", style="dim")
        return status

    def _build_panel(self) -> Panel:
        if self._text:
            body = Markdown(self._text)
        elif self._status == DisplayStatus.FAILED:
            body = Text(self._error, style="red")
        else:
            body = Text("Waiting for response...", style="dim", justify="center")

        return Panel(
            Group(body, Text(""), self._build_status()),
            title=f"[bold blue]RunLLM[/bold blue] — {self._question}",
            border_style="red" if self._status == DisplayStatus.FAILED else "blue",
        )


def render_result(console: Console, result: AskResult) -> None:
    """Print the terminal outcome of a request."""
    if result.ok:
        subtitle = "[dim]Copied to clipboard[/dim]" if result.copied else None
        console.print(
            Panel(
                Markdown(result.text),
                title="[bold green]Response[/bold green]",
                subtitle=subtitle,
                border_style="green",
            )
        )
        return

    error = result.error
    title = error.title if error else "Error"
    message = error.user_message() if error else "An unknown error occurred"
    if result.partial_text:
        console.print(
            Panel(
                Markdown(result.partial_text),
                title="[dim]Partial response[/dim]",
                border_style="dim",
            )
        )
    console.print(
        Panel(
            Text(message),
            title=f"[bold red]{title}[/bold red]",
            border_style="red",
        )
    )
