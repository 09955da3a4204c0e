"""Pytest configuration and fixtures for rsnap tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from rsnap.constants import MARKER_FILENAME
from rsnap.errors import TransferError
from rsnap.models import Repository


class FakeEngine:
    """In-memory BackupEngine keyed by repository root."""

    def __init__(self) -> None:
        self.archives: dict[Path, list[str]] = {}
        self.markers: dict[Path, str] = {}
        self.created: list[dict[str, object]] = []
        self.deleted: list[str] = []
        self.restored: list[dict[str, object]] = []
        self.fail_create_for: set[Path] = set()
        self.fail_delete_for: set[str] = set()

    def list_archives(self, repository: Repository) -> list[str]:
        return list(self.archives.get(repository.root_dir, []))

    def create(
        self,
        repository: Repository,
        identifier: str,
        *,
        incremental_ref: str | None,
        force_full: bool,
        dry_run: bool,
    ) -> None:
        if repository.root_dir in self.fail_create_for:
            raise TransferError(f"transfer failed for {repository.root_dir}")
        self.created.append(
            {
                "root": repository.root_dir,
                "identifier": identifier,
                "incremental_ref": incremental_ref,
                "force_full": force_full,
                "dry_run": dry_run,
            }
        )
        if not dry_run:
            self.archives.setdefault(repository.root_dir, []).append(identifier)

    def delete(self, repository: Repository, identifier: str) -> None:
        if identifier in self.fail_delete_for:
            raise TransferError(f"cannot delete {identifier}")
        self.archives[repository.root_dir].remove(identifier)
        self.deleted.append(identifier)

    def restore(
        self, repository: Repository, identifier: str, *, dry_run: bool
    ) -> None:
        if identifier not in self.archives.get(repository.root_dir, []):
            raise TransferError(f"no archive {identifier}")
        self.restored.append({"identifier": identifier, "dry_run": dry_run})

    def most_recent_marker(self, repository: Repository) -> str | None:
        return self.markers.get(repository.root_dir)

    def update_most_recent(self, repository: Repository, identifier: str) -> None:
        self.markers[repository.root_dir] = identifier

    def initialize_storage(self, repository: Repository) -> None:
        repository.storage_dir.mkdir(parents=True, exist_ok=True)


def write_marker(
    root_dir: Path,
    *,
    source_dir: str = ".",
    storage_dir: str | None = None,
    engine: str = "rsync",
) -> Path:
    root_dir.mkdir(parents=True, exist_ok=True)
    payload = {
        "source_dir": source_dir,
        "storage_dir": storage_dir or str(root_dir.parent / f"{root_dir.name}-storage"),
        "engine": engine,
    }
    marker_path = root_dir / MARKER_FILENAME
    marker_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return marker_path


@pytest.fixture(autouse=True)
def _reenable_logging():
    """cli.main() disables logging or installs a file handler; undo both."""
    root_logger = logging.getLogger()
    saved_handlers = list(root_logger.handlers)
    saved_level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)
    logging.disable(logging.NOTSET)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def sample_catalog() -> list[str]:
    return [
        "2024-01-01_00:00:00",
        "2024-03-15_12:30:00",
        "2024-06-01_00:00:00",
        "2024-09-30_23:59:59",
        "2025-01-01_00:00:00",
    ]


@pytest.fixture
def nested_repositories(tmp_path: Path) -> dict[str, Path]:
    """outer/ holds middle/ which holds inner/, each a repository."""
    outer = tmp_path / "outer"
    middle = outer / "middle"
    inner = middle / "inner"
    write_marker(outer, storage_dir=str(tmp_path / "store-outer"))
    write_marker(middle, storage_dir=str(tmp_path / "store-middle"))
    write_marker(inner, storage_dir=str(tmp_path / "store-inner"))
    return {
        "outer": outer.resolve(),
        "middle": middle.resolve(),
        "inner": inner.resolve(),
    }
