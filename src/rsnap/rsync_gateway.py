"""Hard-link snapshot backend driven by rsync --link-dest.

Storage layout::

    <storage_dir>/
        2025-01-01_10:00:00/     one directory per snapshot
        2025-01-02_10:00:00/
        latest -> 2025-01-02_10:00:00
        .partial-<identifier>/   staging area while rsync runs
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from .command_runner import CommandRunner, run_checked, run_command
from .constants import LATEST_ALIAS, PARTIAL_PREFIX
from .errors import ArchiveCollisionError, ConfigurationError, TransferError
from .logging_utils import log_event
from .models import Repository

_MARKER_TEMP_NAME = ".latest.tmp"


class RsyncEngine:
    def __init__(self, *, runner: CommandRunner = run_command) -> None:
        self._runner = runner

    def list_archives(self, repository: Repository) -> list[str]:
        storage_dir = repository.storage_dir
        if not storage_dir.is_dir():
            return []
        try:
            entries = list(storage_dir.iterdir())
        except OSError as exc:
            raise TransferError(
                f"Failed to list storage directory: {storage_dir}"
            ) from exc
        return [
            entry.name
            for entry in entries
            if _is_snapshot_name(entry.name)
            and entry.is_dir()
            and not entry.is_symlink()
        ]

    def create(
        self,
        repository: Repository,
        identifier: str,
        *,
        incremental_ref: str | None,
        force_full: bool,
        dry_run: bool,
    ) -> None:
        storage_dir = repository.storage_dir
        if not storage_dir.is_dir():
            raise TransferError(f"Storage directory does not exist: {storage_dir}")

        target_dir = storage_dir / identifier
        if target_dir.exists() or target_dir.is_symlink():
            raise ArchiveCollisionError(
                f"Snapshot already exists. Refusing to overwrite: {target_dir}"
            )

        link_dest = None
        if incremental_ref is not None and not force_full:
            link_dest = storage_dir / incremental_ref

        if dry_run:
            self._run_rsync(
                repository, destination=target_dir, link_dest=link_dest, dry_run=True
            )
            return

        staging_dir = storage_dir / f"{PARTIAL_PREFIX}{identifier}"
        if staging_dir.exists():
            log_event(
                "stale_staging_removed",
                level=logging.WARNING,
                staging_dir=staging_dir,
            )
            _remove_tree(staging_dir)

        try:
            self._run_rsync(
                repository, destination=staging_dir, link_dest=link_dest, dry_run=False
            )
            staging_dir.rename(target_dir)
        except OSError as exc:
            shutil.rmtree(staging_dir, ignore_errors=True)
            raise TransferError(f"Failed to finalize snapshot: {target_dir}") from exc
        except Exception:
            shutil.rmtree(staging_dir, ignore_errors=True)
            raise

    def delete(self, repository: Repository, identifier: str) -> None:
        if not _is_snapshot_name(identifier) or Path(identifier).name != identifier:
            raise TransferError(f"Refusing to delete non-snapshot entry: {identifier}")
        target_dir = repository.storage_dir / identifier
        if not target_dir.is_dir() or target_dir.is_symlink():
            raise TransferError(f"Snapshot not found: {target_dir}")
        _remove_tree(target_dir)

    def restore(
        self, repository: Repository, identifier: str, *, dry_run: bool
    ) -> None:
        if not _is_snapshot_name(identifier) or Path(identifier).name != identifier:
            raise TransferError(f"Refusing to restore non-snapshot entry: {identifier}")
        snapshot_dir = repository.storage_dir / identifier
        if not snapshot_dir.is_dir() or snapshot_dir.is_symlink():
            raise TransferError(f"Snapshot not found: {snapshot_dir}")

        # No --delete: files created after the snapshot are left in place.
        command = ["rsync", "-a"]
        if dry_run:
            command.append("--dry-run")
        command.append(f"{snapshot_dir}/")
        command.append(f"{repository.source_dir}/")
        run_checked(self._runner, command, action="rsync restore")

    def most_recent_marker(self, repository: Repository) -> str | None:
        alias = repository.storage_dir / LATEST_ALIAS
        if not alias.is_symlink():
            return None
        try:
            target_name = Path(os.readlink(alias)).name
        except OSError as exc:
            raise TransferError(f"Failed to read snapshot alias: {alias}") from exc
        if not (repository.storage_dir / target_name).is_dir():
            return None
        return target_name

    def update_most_recent(self, repository: Repository, identifier: str) -> None:
        alias = repository.storage_dir / LATEST_ALIAS
        temp_alias = repository.storage_dir / _MARKER_TEMP_NAME
        try:
            temp_alias.unlink(missing_ok=True)
            os.symlink(identifier, temp_alias)
            os.replace(temp_alias, alias)
        except OSError as exc:
            temp_alias.unlink(missing_ok=True)
            raise TransferError(
                f"Failed to point {alias} at {identifier}"
            ) from exc

    def initialize_storage(self, repository: Repository) -> None:
        try:
            repository.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(
                f"Failed to create storage directory: {repository.storage_dir}"
            ) from exc

    def _run_rsync(
        self,
        repository: Repository,
        *,
        destination: Path,
        link_dest: Path | None,
        dry_run: bool,
    ) -> None:
        command = ["rsync", "-a", "--delete"]
        if dry_run:
            command.append("--dry-run")
        command.extend(f"--exclude={pattern}" for pattern in repository.excludes)
        if link_dest is not None:
            command.append(f"--link-dest={link_dest}")
        # Trailing slashes copy directory contents rather than the directory itself.
        command.append(f"{repository.source_dir}/")
        command.append(f"{destination}/")
        run_checked(self._runner, command, action="rsync transfer")


def _is_snapshot_name(name: str) -> bool:
    return name != LATEST_ALIAS and not name.startswith(".")


def _remove_tree(directory: Path) -> None:
    try:
        shutil.rmtree(directory)
    except OSError as exc:
        raise TransferError(f"Failed to remove snapshot: {directory}") from exc
