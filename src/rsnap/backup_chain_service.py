"""Backup creation for a repository and every repository enclosing it."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from .backup_engine import BackupEngine, build_engine
from .catalog_service import list_archives
from .errors import ArchiveCollisionError, ConfigurationError
from .logging_utils import log_event
from .models import BackupFlags, BackupResult, ChainResult, Repository, TransferMode
from .repository_config import load_repository
from .repository_locator import locate_parent
from .timestamps import format_identifier, local_now


def run_backup(
    *,
    repository: Repository,
    flags: BackupFlags,
    engine_factory: Callable[[Repository], BackupEngine] = build_engine,
    now_fn: Callable[[], datetime] = local_now,
    on_leg_complete: Callable[[BackupResult], None] | None = None,
) -> ChainResult:
    """Back up ``repository``, then each enclosing parent repository, with the same flags.

    A TransferError on any leg propagates immediately, so parents of a failed
    repository are never backed up.
    """
    legs: list[BackupResult] = []
    visited: set[Path] = set()
    current: Repository | None = repository

    while current is not None:
        if current.root_dir in visited:
            raise ConfigurationError(
                f"Repository chain revisits {current.root_dir}; check source_dir settings."
            )
        visited.add(current.root_dir)

        result = backup_repository(
            repository=current,
            flags=flags,
            engine=engine_factory(current),
            now=now_fn(),
        )
        legs.append(result)
        if on_leg_complete is not None:
            on_leg_complete(result)

        parent_root = find_parent_root(current)
        if parent_root is None:
            break
        log_event(
            "chain_parent_found",
            repository_root=current.root_dir,
            parent_root=parent_root,
        )
        current = load_repository(parent_root)

    return ChainResult(legs=legs)


def backup_repository(
    *,
    repository: Repository,
    flags: BackupFlags,
    engine: BackupEngine,
    now: datetime,
) -> BackupResult:
    identifier = format_identifier(now)
    if identifier in list_archives(repository=repository, engine=engine):
        raise ArchiveCollisionError(
            f"Archive {identifier} already exists in {repository.storage_dir}. "
            "Refusing to overwrite."
        )

    repository = replace(repository, most_recent=engine.most_recent_marker(repository))

    incremental_ref: str | None = None
    if flags.force_full:
        mode = TransferMode.FULL
    elif repository.most_recent is None:
        mode = TransferMode.FULL
        log_event(
            "backup_full_fallback",
            level=logging.WARNING,
            repository_root=repository.root_dir,
            reason="no previous archive",
        )
    else:
        mode = TransferMode.INCREMENTAL
        incremental_ref = repository.most_recent

    log_event(
        "backup_start",
        repository_root=repository.root_dir,
        source_dir=repository.source_dir,
        storage_dir=repository.storage_dir,
        engine=repository.engine,
        archive=identifier,
        mode=mode.value,
        incremental_ref=incremental_ref,
        dry_run=flags.dry_run,
    )

    engine.create(
        repository,
        identifier,
        incremental_ref=incremental_ref,
        force_full=flags.force_full,
        dry_run=flags.dry_run,
    )

    if flags.dry_run:
        log_event(
            "backup_dry_run", repository_root=repository.root_dir, archive=identifier
        )
    else:
        engine.update_most_recent(repository, identifier)
        log_event(
            "backup_complete", repository_root=repository.root_dir, archive=identifier
        )

    return BackupResult(
        repository_root=repository.root_dir,
        identifier=identifier,
        mode=mode,
        incremental_ref=incremental_ref,
        dry_run=flags.dry_run,
    )


def find_parent_root(repository: Repository) -> Path | None:
    """Find the repository enclosing ``repository``'s source directory.

    The search starts above the source directory. A source directory nested
    inside its own repository root finds that root first, which is skipped.
    """
    candidate = locate_parent(repository.source_dir)
    while candidate is not None and candidate == repository.root_dir:
        candidate = locate_parent(candidate)
    return candidate
