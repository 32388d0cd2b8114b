"""Glue between the orchestrator and the live terminal display."""

from __future__ import annotations

from rich.console import Console

from runask.display import AnswerDisplay, render_result
from runask.orchestrator import AskOrchestrator, AskResult


async def ask_with_display(
    orchestrator: AskOrchestrator,
    console: Console,
    question: str,
    *,
    animate: bool = True,
) -> AskResult:
    """Ask one question with a live panel, then print the outcome."""
    with AnswerDisplay(console, question) as display:
        listener = display.create_listener()
        orchestrator.emitter.add_listener(listener)
        orchestrator.on_update = display.update_text
        try:
            result = await orchestrator.ask(question, animate=animate)
        finally:
            orchestrator.emitter.remove_listener(listener)
            orchestrator.on_update = None

    render_result(console, result)
    return result
