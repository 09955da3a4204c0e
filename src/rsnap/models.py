"""Dataclasses shared across rsnap layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .constants import MARKER_FILENAME


@dataclass(frozen=True)
class Repository:
    root_dir: Path
    source_dir: Path
    storage_dir: Path
    engine: str
    excludes: list[str] = field(default_factory=list)
    most_recent: str | None = None

    @property
    def marker_path(self) -> Path:
        return self.root_dir / MARKER_FILENAME


class PolicyMode(str, Enum):
    LAST = "last"
    FIRST = "first"
    OLDER = "older"
    NEWER = "newer"
    ALL = "all"
    INTERACTIVE = "interactive"


@dataclass(frozen=True)
class RetentionPolicy:
    mode: PolicyMode
    value: int | None = None

    def describe(self) -> str:
        if self.mode in (PolicyMode.LAST, PolicyMode.FIRST):
            return f"{self.mode.value} {self.value}"
        if self.mode in (PolicyMode.OLDER, PolicyMode.NEWER):
            return f"{self.mode.value} than {self.value} day(s)"
        return self.mode.value


@dataclass(frozen=True)
class BackupFlags:
    dry_run: bool = False
    force_full: bool = False


class TransferMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class BackupResult:
    repository_root: Path
    identifier: str
    mode: TransferMode
    incremental_ref: str | None
    dry_run: bool


@dataclass(frozen=True)
class ChainResult:
    legs: list[BackupResult]

    @property
    def leg_count(self) -> int:
        return len(self.legs)


class DeletionOutcome(str, Enum):
    DELETED = "deleted"
    ABORTED = "aborted"
    NOTHING_TO_DO = "nothing_to_do"


@dataclass(frozen=True)
class DeleteFailure:
    identifier: str
    message: str


@dataclass(frozen=True)
class DeletionResult:
    outcome: DeletionOutcome
    deleted: list[str] = field(default_factory=list)
    failures: list[DeleteFailure] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


class RestoreOutcome(str, Enum):
    RESTORED = "restored"
    ABORTED = "aborted"


@dataclass(frozen=True)
class RestoreResult:
    outcome: RestoreOutcome
    identifier: str
    target_dir: Path
    dry_run: bool = False
