"""Archive listing for retention and display."""

from __future__ import annotations

from .backup_engine import BackupEngine
from .models import Repository


def list_archives(*, repository: Repository, engine: BackupEngine) -> list[str]:
    """Return archive identifiers oldest first.

    Identifiers are ``YYYY-MM-DD_HH:MM:SS`` strings, so lexicographic order is
    chronological order. An empty repository yields an empty list.
    """
    return sorted(engine.list_archives(repository))
