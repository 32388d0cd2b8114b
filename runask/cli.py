"""runask CLI — Typer + Rich terminal interface.

Commands: ask, chat, setup, config.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from runask import __version__
from runask.clipboard import SystemClipboard
from runask.config_loader import load_config
from runask.errors import ConfigurationError
from runask.schemas.config import AskConfig

console = Console()

app = typer.Typer(
    name="runask",
    help="Ask a RunLLM pipeline and watch the answer stream in.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"runask {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """runask — ask a RunLLM pipeline from the terminal."""


# ── Helpers ──────────────────────────────────────────────────────


def _configure_logging(verbose: bool) -> None:
    """Log to stderr only; stdout belongs to the live display."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_config(config_file: Path | None = None, **overrides) -> AskConfig:
    """Load configuration, exit on error."""
    try:
        return load_config(config_file, **overrides)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


# ── runask ask ───────────────────────────────────────────────────


@app.command()
def ask(
    question: str = typer.Argument(..., help="The question to ask"),
    speed: int = typer.Option(
        None, "--speed", "-s", min=0,
        help="Reveal speed in milliseconds per character",
    ),
    no_animate: bool = typer.Option(
        False, "--no-animate",
        help="Show the answer without the typing animation",
    ),
    no_copy: bool = typer.Option(
        False, "--no-copy",
        help="Don't copy the answer to the clipboard",
    ),
    pipeline: str = typer.Option(
        None, "--pipeline", "-p",
        help="Pipeline ID (overrides RUNLLM_PIPELINE_ID)",
    ),
    config_file: Path = typer.Option(
        None, "--config",
        help="Alternate defaults TOML file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Ask one question and copy the answer to the clipboard."""
    from runask.client import RunLLMClient
    from runask.orchestrator import AskOrchestrator
    from runask.runner import ask_with_display

    _configure_logging(verbose)
    config = _load_config(
        config_file,
        streaming_speed_ms=speed,
        pipeline_id=pipeline,
        copy_to_clipboard=False if no_copy else None,
    )

    async def _run():
        async with RunLLMClient(config) as client:
            orchestrator = AskOrchestrator(
                client, config=config, clipboard=SystemClipboard(),
            )
            return await ask_with_display(
                orchestrator, console, question, animate=not no_animate,
            )

    try:
        result = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(130) from None

    if not result.ok:
        raise typer.Exit(1)


# ── runask chat ──────────────────────────────────────────────────


@app.command()
def chat(
    speed: int = typer.Option(
        None, "--speed", "-s", min=0,
        help="Reveal speed in milliseconds per character",
    ),
    no_animate: bool = typer.Option(
        False, "--no-animate",
        help="Show answers without the typing animation",
    ),
    no_copy: bool = typer.Option(
        False, "--no-copy",
        help="Don't copy answers to the clipboard",
    ),
    pipeline: str = typer.Option(
        None, "--pipeline", "-p",
        help="Pipeline ID (overrides RUNLLM_PIPELINE_ID)",
    ),
    config_file: Path = typer.Option(
        None, "--config",
        help="Alternate defaults TOML file",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging to stderr"),
) -> None:
    """Interactive chat; follow-up questions stay in the same session."""
    from runask.repl import ChatREPL

    _configure_logging(verbose)
    config = _load_config(
        config_file,
        streaming_speed_ms=speed,
        pipeline_id=pipeline,
        copy_to_clipboard=False if no_copy else None,
    )
    ChatREPL(
        config,
        animate=not no_animate,
        clipboard=SystemClipboard(),
        console=console,
    ).run()


# ── runask setup ─────────────────────────────────────────────────


@app.command()
def setup(
    reset: bool = typer.Option(
        False, "--reset",
        help="Clear saved preferences and re-run setup",
    ),
) -> None:
    """Save your RunLLM API key, pipeline ID, and reveal speed.

    Preferences are written to ~/.runask/keys.env.
    """
    from rich.prompt import Prompt

    from runask.keys import (
        API_KEY_ENV,
        KEYS_FILE,
        PIPELINE_ID_ENV,
        PREFERENCES,
        clear_keys,
        save_keys,
    )

    if reset:
        if clear_keys():
            console.print(f"[dim]Cleared {KEYS_FILE}[/dim]\n")
        else:
            console.print("[dim]No saved preferences to clear.[/dim]\n")
        for env_var, _, _, _ in PREFERENCES:
            os.environ.pop(env_var, None)

    collected: dict[str, str] = {}
    for env_var, display_name, description, secret in PREFERENCES:
        existing = os.environ.get(env_var, "")
        console.print(f"  [bold]{display_name}[/bold] — {description}")
        value = Prompt.ask(
            f"      {env_var}",
            default=existing,
            show_default=bool(existing) and not secret,
            password=secret,
            console=console,
        )
        collected[env_var] = value.strip()

    saved_path = save_keys(collected)
    console.print(f"\n  [green]✓ Saved to {saved_path}[/green]")

    try:
        AskConfig(
            api_key=collected.get(API_KEY_ENV, ""),
            pipeline_id=collected.get(PIPELINE_ID_ENV, ""),
        ).validate_credentials()
    except ConfigurationError as e:
        console.print(f"  [yellow]Warning:[/yellow] {e}")


# ── runask config ────────────────────────────────────────────────


@app.command("config")
def show_config(
    config_file: Path = typer.Option(
        None, "--config",
        help="Alternate defaults TOML file",
    ),
) -> None:
    """Show the resolved configuration (API key masked)."""
    config = _load_config(config_file)

    table = Table(title="runask configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("API key", config.masked_key() or "[red]not set[/red]")
    table.add_row("Pipeline ID", config.pipeline_id or "[red]not set[/red]")
    table.add_row("Endpoint", config.chat_url)
    table.add_row("Streaming speed", f"{config.streaming_speed_ms} ms/char")
    table.add_row("Timeout", f"{config.timeout:g}s")
    table.add_row("Copy to clipboard", "yes" if config.copy_to_clipboard else "no")

    console.print(table)
