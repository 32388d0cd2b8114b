"""Interactive follow-up chat.

Keeps one orchestrator (and so one RunLLM session id) across questions
so follow-ups land in the same conversation. Launch with `runask chat`.
"""

from __future__ import annotations

import asyncio
import logging

from rich.console import Console
from rich.text import Text

from runask.clipboard import Clipboard
from runask.client import RunLLMClient
from runask.orchestrator import AskOrchestrator, AskResult
from runask.runner import ask_with_display
from runask.schemas.config import AskConfig

logger = logging.getLogger(__name__)

_EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}
_NEW_COMMANDS = {"/new", "/reset"}
_HELP_COMMANDS = {"/help", "help", "?"}


class ChatREPL:
    """Interactive question loop bound to one pipeline session."""

    def __init__(
        self,
        config: AskConfig,
        *,
        animate: bool = True,
        clipboard: Clipboard | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config
        self.animate = animate
        self.console = console or Console()
        self.client = RunLLMClient(config)
        self.orchestrator = AskOrchestrator(
            self.client, config=config, clipboard=clipboard,
        )
        self.last_result: AskResult | None = None
        self._runner: asyncio.Runner | None = None

    def run(self) -> None:
        """Main loop. Ctrl+C or Ctrl+D leaves."""
        self.console.print(
            "[dim]Ask a question. /new starts a new conversation, "
            "/help lists commands, exit quits.[/dim]"
        )
        with asyncio.Runner() as runner:
            self._runner = runner
            try:
                while True:
                    prompt = Text()
                    prompt.append("\nrunask", style="bold blue")
                    prompt.append(" ▸ ", style="cyan")
                    try:
                        line = self.console.input(prompt)
                    except (KeyboardInterrupt, EOFError):
                        self.console.print("\n[dim]Goodbye.[/dim]")
                        break
                    if not self._dispatch(line):
                        self.console.print("[dim]Goodbye.[/dim]")
                        break
            finally:
                runner.run(self.client.aclose())
                self._runner = None

    def _dispatch(self, line: str) -> bool:
        """Handle one input line. Returns False to leave the loop."""
        text = line.strip()
        if not text:
            return True

        command = text.lower()
        if command in _EXIT_COMMANDS:
            return False
        if command in _NEW_COMMANDS:
            self.orchestrator.reset_session()
            self.console.print("[dim]Started a new conversation.[/dim]")
            return True
        if command in _HELP_COMMANDS:
            self._print_help()
            return True

        try:
            self.last_result = self._ask(text)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]Cancelled.[/yellow]")
        return True

    def _ask(self, question: str) -> AskResult:
        coro = ask_with_display(
            self.orchestrator, self.console, question, animate=self.animate,
        )
        if self._runner is None:
            return asyncio.run(coro)
        return self._runner.run(coro)

    def _print_help(self) -> None:
        self.console.print(
            "  [bold]/new[/bold]   start a new conversation (forget session)\n"
            "  [bold]/help[/bold]  show this help\n"
            "  [bold]exit[/bold]   leave"
        )
