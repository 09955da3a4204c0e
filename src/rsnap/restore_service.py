"""Restore workflow: copy one archive back over the source directory."""

from __future__ import annotations

from collections.abc import Sequence

from .backup_engine import BackupEngine
from .deletion_service import is_affirmative
from .errors import ConfigurationError, NotFoundError
from .interaction import InteractionPort
from .logging_utils import log_event
from .models import Repository, RestoreOutcome, RestoreResult
from .presenters import render_restore_plan

RESTORE_PROMPT = "Restore this archive? [y/N]: "


def resolve_restore_target(
    catalog: Sequence[str],
    *,
    identifier: str | None,
    use_latest: bool,
    most_recent: str | None,
) -> str:
    """Pick the archive to restore: an explicit identifier or the most recent one."""
    if identifier is not None and use_latest:
        raise ConfigurationError("Give an archive identifier or --latest, not both.")
    if identifier is None and not use_latest:
        raise ConfigurationError("Give an archive identifier or --latest.")

    if identifier is not None:
        if identifier not in catalog:
            raise NotFoundError(f"Archive not found: {identifier}")
        return identifier

    if not catalog:
        raise NotFoundError("No archives to restore.")
    # A missing or dangling marker falls back to the newest archive.
    if most_recent is not None and most_recent in catalog:
        return most_recent
    return catalog[-1]


def restore_archive(
    *,
    repository: Repository,
    identifier: str,
    engine: BackupEngine,
    interaction: InteractionPort,
    dry_run: bool = False,
) -> RestoreResult:
    for line in render_restore_plan(repository, identifier):
        interaction.notify(line)

    if not dry_run:
        response = interaction.prompt_text(RESTORE_PROMPT)
        if not is_affirmative(response):
            log_event(
                "restore_aborted",
                repository_root=repository.root_dir,
                archive=identifier,
            )
            return RestoreResult(
                outcome=RestoreOutcome.ABORTED,
                identifier=identifier,
                target_dir=repository.source_dir,
            )

    log_event(
        "restore_start",
        repository_root=repository.root_dir,
        source_dir=repository.source_dir,
        engine=repository.engine,
        archive=identifier,
        dry_run=dry_run,
    )
    engine.restore(repository, identifier, dry_run=dry_run)
    log_event(
        "restore_complete",
        repository_root=repository.root_dir,
        archive=identifier,
        dry_run=dry_run,
    )
    return RestoreResult(
        outcome=RestoreOutcome.RESTORED,
        identifier=identifier,
        target_dir=repository.source_dir,
        dry_run=dry_run,
    )
