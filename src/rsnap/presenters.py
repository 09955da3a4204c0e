"""User-facing text rendering."""

from __future__ import annotations

from collections.abc import Sequence

from .models import (
    BackupResult,
    DeleteFailure,
    Repository,
    RestoreResult,
    TransferMode,
)

_LIST_SEPARATOR = " | "
_WARNING_PREFIX = "WARNING:"
_ERROR_PREFIX = "ERROR:"
_MOST_RECENT_TAG = "(latest)"


def render_error(message: str) -> str:
    return f"{_ERROR_PREFIX} {message}"


def render_warning(message: str) -> str:
    return f"{_WARNING_PREFIX} {message}"


def render_repository(repository: Repository) -> list[str]:
    return [
        f"Repository: {repository.root_dir}",
        f"Source: {repository.source_dir}",
        f"Storage: {repository.storage_dir}",
        f"Engine: {repository.engine}",
    ]


def render_archive_rows(
    archive_ids: Sequence[str], *, most_recent: str | None = None
) -> list[str]:
    if not archive_ids:
        return []

    width = len(str(len(archive_ids)))
    rows: list[str] = []
    for index, archive_id in enumerate(archive_ids, start=1):
        columns = [f"{index:>{width}}", archive_id]
        if most_recent is not None and archive_id == most_recent:
            columns.append(_MOST_RECENT_TAG)
        rows.append(_LIST_SEPARATOR.join(columns))
    return rows


def render_selection(selection: Sequence[str]) -> list[str]:
    return [f"Selected for deletion ({len(selection)}):"] + [
        f"  {archive_id}" for archive_id in selection
    ]


def render_backup_result(result: BackupResult) -> str:
    prefix = "[dry run] " if result.dry_run else ""
    if result.mode is TransferMode.INCREMENTAL:
        detail = f"incremental from {result.incremental_ref}"
    else:
        detail = "full"
    return f"{prefix}{result.repository_root}: {result.identifier} ({detail})"


def render_delete_failures(failures: Sequence[DeleteFailure]) -> list[str]:
    return [
        render_warning(f"Failed to delete {failure.identifier}: {failure.message}")
        for failure in failures
    ]


def render_restore_plan(repository: Repository, identifier: str) -> list[str]:
    return [
        f"Archive: {identifier}",
        f"Restore into: {repository.source_dir}",
        "Existing files with the same names will be overwritten.",
    ]


def render_restore_result(result: RestoreResult) -> str:
    if result.dry_run:
        return f"[dry run] Checked restore of {result.identifier} into {result.target_dir}."
    return f"Restored {result.identifier} into {result.target_dir}."
