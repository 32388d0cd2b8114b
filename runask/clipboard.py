"""System clipboard access for delivering the final answer."""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from typing import Protocol

from runask.errors import ClipboardError

logger = logging.getLogger(__name__)

# Linux candidates in preference order: (executable, extra args)
_LINUX_TOOLS: list[tuple[str, list[str]]] = [
    ("wl-copy", []),
    ("xclip", ["-selection", "clipboard"]),
    ("xsel", ["--clipboard", "--input"]),
]


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class MemoryClipboard:
    """Keeps copied text in memory. Used headless and in tests."""

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def text(self) -> str | None:
        return self.history[-1] if self.history else None

    def copy(self, text: str) -> None:
        self.history.append(text)


class SystemClipboard:
    """Copies text through the platform's clipboard command."""

    def __init__(self, command: list[str] | None = None) -> None:
        self._command = command

    def _resolve_command(self) -> list[str]:
        if self._command:
            return self._command

        system = platform.system()
        if system == "Darwin":
            return ["pbcopy"]
        if system == "Windows":
            return ["clip"]

        for tool, args in _LINUX_TOOLS:
            if shutil.which(tool):
                return [tool, *args]
        raise ClipboardError(
            "No clipboard tool found (install wl-copy, xclip, or xsel)"
        )

    def copy(self, text: str) -> None:
        """Copy text to the clipboard.

        Raises:
            ClipboardError: If no tool is available or the tool fails.
        """
        command = self._resolve_command()
        try:
            subprocess.run(
                command,
                input=text.encode("utf-8"),
                check=True,
                timeout=5,
                capture_output=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise ClipboardError(f"Clipboard command {command[0]} failed: {e}") from e
        logger.debug("Copied %d characters with %s", len(text), command[0])
