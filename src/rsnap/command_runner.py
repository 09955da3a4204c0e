"""External backup tool invocation."""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import TransferError

_STDERR_TAIL_LINES = 5


@dataclass(frozen=True)
class CommandOutput:
    returncode: int
    stdout: str
    stderr: str


# Called as runner(command, cwd=...); cwd None means the current directory.
CommandRunner = Callable[..., CommandOutput]


def run_command(command: Sequence[str], *, cwd: Path | None = None) -> CommandOutput:
    try:
        completed = subprocess.run(
            list(command),
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise TransferError(f"Command not found: {command[0]}") from exc
    except OSError as exc:
        raise TransferError(f"Failed to run {command[0]}: {exc}") from exc
    return CommandOutput(
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


def run_checked(
    runner: CommandRunner,
    command: Sequence[str],
    *,
    action: str,
    cwd: Path | None = None,
) -> CommandOutput:
    """Run ``command`` and raise TransferError on a non-zero exit status."""
    output = runner(command, cwd=cwd)
    if output.returncode != 0:
        raise TransferError(
            f"{action} failed ({command[0]} exit {output.returncode}): "
            f"{stderr_tail(output.stderr)}"
        )
    return output


def stderr_tail(stderr: str) -> str:
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    if not lines:
        return "(no error output)"
    return " | ".join(lines[-_STDERR_TAIL_LINES:])
