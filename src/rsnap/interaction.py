"""Operator interaction adapters for confirmation and selection prompts."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Protocol

from prompt_toolkit import prompt as pt_prompt


class InteractionPort(Protocol):
    """Minimal interaction contract used by prune flows."""

    def notify(self, message: str) -> None:
        """Display one-way informational output."""

    def prompt_text(self, prompt: str) -> Optional[str]:
        """Prompt for one line of input; None when input is closed or interrupted."""


class TerminalInteraction:
    """Console adapter backed by prompt_toolkit."""

    def notify(self, message: str) -> None:
        print(message)

    def prompt_text(self, prompt: str) -> Optional[str]:
        try:
            return pt_prompt(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            return None


class ScriptedInteraction:
    """Replays canned responses and records everything shown.

    Used for non-interactive runs and tests.
    """

    def __init__(self, responses: Iterable[Optional[str]] = ()) -> None:
        self._responses = list(responses)
        self.messages: list[str] = []
        self.prompts: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)

    def prompt_text(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if not self._responses:
            return None
        return self._responses.pop(0)
