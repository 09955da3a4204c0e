"""Backup engine capability shared by the hard-link and content-addressed backends."""

from __future__ import annotations

from typing import Protocol

from .borg_gateway import BorgEngine
from .command_runner import CommandRunner, run_command
from .constants import ENGINE_BORG, ENGINE_RSYNC
from .errors import ConfigurationError
from .models import Repository
from .rsync_gateway import RsyncEngine


class BackupEngine(Protocol):
    """Primitives the catalog, deletion, and chain services rely on."""

    def list_archives(self, repository: Repository) -> list[str]:
        """Return archive identifiers in any order; empty when none exist."""

    def create(
        self,
        repository: Repository,
        identifier: str,
        *,
        incremental_ref: str | None,
        force_full: bool,
        dry_run: bool,
    ) -> None:
        """Transfer the source directory into a new archive or raise TransferError."""

    def delete(self, repository: Repository, identifier: str) -> None:
        """Remove one archive or raise TransferError."""

    def restore(
        self, repository: Repository, identifier: str, *, dry_run: bool
    ) -> None:
        """Copy one archive back over the source directory or raise TransferError."""

    def most_recent_marker(self, repository: Repository) -> str | None:
        """Return the identifier the "most recent" marker points at, if any."""

    def update_most_recent(self, repository: Repository, identifier: str) -> None:
        """Point the "most recent" marker at ``identifier``."""

    def initialize_storage(self, repository: Repository) -> None:
        """Create the storage location for a new repository."""


def build_engine(
    repository: Repository, *, runner: CommandRunner = run_command
) -> BackupEngine:
    if repository.engine == ENGINE_RSYNC:
        return RsyncEngine(runner=runner)
    if repository.engine == ENGINE_BORG:
        return BorgEngine(runner=runner)
    raise ConfigurationError(f"Unsupported engine: {repository.engine}")
