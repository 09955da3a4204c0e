"""Confirmation-gated, best-effort archive deletion."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from .backup_engine import BackupEngine
from .errors import TransferError
from .interaction import InteractionPort
from .logging_utils import log_event
from .models import DeleteFailure, DeletionOutcome, DeletionResult, Repository
from .presenters import render_selection

_AFFIRMATIVE_RE = re.compile(r"^(y|yes)$", re.IGNORECASE)

CONFIRM_PROMPT = "Delete these archives? [y/N]: "


def is_affirmative(response: str | None) -> bool:
    if response is None:
        return False
    return _AFFIRMATIVE_RE.match(response.strip()) is not None


def confirm_and_delete(
    *,
    repository: Repository,
    selection: Sequence[str],
    engine: BackupEngine,
    interaction: InteractionPort,
) -> DeletionResult:
    """Show the selection, ask once, then delete every selected archive in order.

    An empty selection returns NOTHING_TO_DO without prompting. Declining returns
    ABORTED with nothing deleted. A failed delete is recorded and the remaining
    archives are still attempted.
    """
    if not selection:
        return DeletionResult(outcome=DeletionOutcome.NOTHING_TO_DO)

    for line in render_selection(selection):
        interaction.notify(line)

    response = interaction.prompt_text(CONFIRM_PROMPT)
    if not is_affirmative(response):
        log_event(
            "prune_aborted",
            repository_root=repository.root_dir,
            selected_count=len(selection),
        )
        return DeletionResult(outcome=DeletionOutcome.ABORTED)

    deleted: list[str] = []
    failures: list[DeleteFailure] = []
    for identifier in selection:
        try:
            engine.delete(repository, identifier)
        except TransferError as exc:
            failures.append(DeleteFailure(identifier=identifier, message=str(exc)))
            log_event(
                "archive_delete_failed",
                level=logging.ERROR,
                repository_root=repository.root_dir,
                archive=identifier,
                error=str(exc),
            )
            continue
        deleted.append(identifier)
        log_event(
            "archive_deleted",
            repository_root=repository.root_dir,
            archive=identifier,
        )

    return DeletionResult(
        outcome=DeletionOutcome.DELETED,
        deleted=deleted,
        failures=failures,
    )
