"""Repository initialization: storage setup and marker file creation."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from .backup_engine import BackupEngine, build_engine
from .constants import MARKER_FILENAME
from .errors import ConfigurationError
from .logging_utils import log_event
from .models import Repository
from .repository_config import parse_repository_config, write_repository_config


def initialize_repository(
    *,
    root_dir: Path,
    storage_arg: str,
    source_arg: str | None = None,
    engine: str,
    excludes: Sequence[str] = (),
    create_storage: bool = False,
    engine_factory: Callable[[Repository], BackupEngine] = build_engine,
) -> Repository:
    root_dir = Path(root_dir).resolve(strict=False)
    if not root_dir.is_dir():
        raise ConfigurationError(f"Repository root must be a directory: {root_dir}")

    marker_path = root_dir / MARKER_FILENAME
    if marker_path.exists():
        raise ConfigurationError(f"Repository already initialized: {marker_path}")

    source_text = source_arg if source_arg is not None else "."
    repository = parse_repository_config(
        {
            "source_dir": source_text,
            "storage_dir": storage_arg,
            "engine": engine,
            "excludes": list(excludes),
        },
        root_dir=root_dir,
        marker_path=marker_path,
    )

    _validate_source(repository.source_dir)
    _validate_no_overlap(repository.source_dir, repository.storage_dir)

    if create_storage:
        engine_factory(repository).initialize_storage(repository)
    elif not repository.storage_dir.exists():
        raise ConfigurationError(
            f"Storage location does not exist: {repository.storage_dir} "
            "(use --create to create it)."
        )

    write_repository_config(
        root_dir=root_dir,
        source_dir=source_text,
        storage_dir=storage_arg,
        engine=engine,
        excludes=list(excludes),
    )
    log_event(
        "repository_initialized",
        repository_root=root_dir,
        source_dir=repository.source_dir,
        storage_dir=repository.storage_dir,
        engine=engine,
    )
    return repository


def _validate_source(source_dir: Path) -> None:
    if not source_dir.exists():
        raise ConfigurationError(f"Source directory does not exist: {source_dir}")
    if not source_dir.is_dir():
        raise ConfigurationError(f"Source must be a directory: {source_dir}")


def _validate_no_overlap(source_dir: Path, storage_dir: Path) -> None:
    if source_dir == storage_dir or _is_ancestor(source_dir, storage_dir) or _is_ancestor(
        storage_dir, source_dir
    ):
        raise ConfigurationError(
            "Source and storage must not overlap (same path, ancestor, or descendant)."
        )


def _is_ancestor(ancestor: Path, descendant: Path) -> bool:
    try:
        descendant.relative_to(ancestor)
    except ValueError:
        return False
    return True
