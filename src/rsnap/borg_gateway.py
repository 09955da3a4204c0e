"""Content-addressed archive backend driven by the borg CLI."""

from __future__ import annotations

from pathlib import Path

from .command_runner import CommandRunner, run_checked, run_command
from .models import Repository


class BorgEngine:
    """Deduplication makes every archive incremental against the whole repository.

    borg keeps no separate "latest" pointer, so the newest listed archive is the
    most recent one and updating the marker is a no-op.
    """

    def __init__(self, *, runner: CommandRunner = run_command) -> None:
        self._runner = runner

    def list_archives(self, repository: Repository) -> list[str]:
        output = run_checked(
            self._runner,
            ["borg", "list", "--short", str(repository.storage_dir)],
            action="borg list",
        )
        return [line.strip() for line in output.stdout.splitlines() if line.strip()]

    def create(
        self,
        repository: Repository,
        identifier: str,
        *,
        incremental_ref: str | None,
        force_full: bool,
        dry_run: bool,
    ) -> None:
        command = ["borg", "create"]
        if dry_run:
            command.append("--dry-run")
        if force_full:
            # Re-read every file instead of trusting the files cache.
            command.append("--files-cache=disabled")
        for pattern in repository.excludes:
            command.extend(["--exclude", pattern])
        command.append(_archive_ref(repository, identifier))
        command.append(str(repository.source_dir))
        run_checked(self._runner, command, action="borg create")

    def delete(self, repository: Repository, identifier: str) -> None:
        run_checked(
            self._runner,
            ["borg", "delete", _archive_ref(repository, identifier)],
            action="borg delete",
        )

    def restore(
        self, repository: Repository, identifier: str, *, dry_run: bool
    ) -> None:
        # borg stores the source path without its leading separator.
        source_dir = repository.source_dir
        command = ["borg", "extract"]
        if dry_run:
            command.append("--dry-run")
        command.append(_archive_ref(repository, identifier))
        command.append(str(source_dir.relative_to(source_dir.anchor)))
        run_checked(
            self._runner,
            command,
            action="borg extract",
            cwd=Path(source_dir.anchor),
        )

    def most_recent_marker(self, repository: Repository) -> str | None:
        archives = sorted(self.list_archives(repository))
        return archives[-1] if archives else None

    def update_most_recent(self, repository: Repository, identifier: str) -> None:
        return None

    def initialize_storage(self, repository: Repository) -> None:
        run_checked(
            self._runner,
            ["borg", "init", "--encryption=none", str(repository.storage_dir)],
            action="borg init",
        )


def _archive_ref(repository: Repository, identifier: str) -> str:
    return f"{repository.storage_dir}::{identifier}"
