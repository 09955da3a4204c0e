"""Marker file loading, validation, and writing."""

from __future__ import annotations

import json
import re
import unicodedata
from pathlib import Path
from typing import Any

from .constants import DEFAULT_ENGINE, MARKER_FILENAME, SUPPORTED_ENGINES
from .errors import ConfigurationError, RepositoryNotFoundError
from .models import Repository
from .repository_locator import locate_root

_WINDOWS_DRIVE_RELATIVE_RE = re.compile(r"^[A-Za-z]:[^/\\]")

REQUIRED_KEYS = ("source_dir", "storage_dir")


def find_repository(start_dir: Path) -> Repository:
    """Locate and load the repository enclosing ``start_dir``."""
    root_dir = locate_root(start_dir)
    if root_dir is None:
        raise RepositoryNotFoundError(
            f"No {MARKER_FILENAME} found in {Path(start_dir).resolve(strict=False)} "
            "or any parent directory."
        )
    return load_repository(root_dir)


def load_repository(root_dir: Path) -> Repository:
    root_dir = Path(root_dir).resolve(strict=False)
    marker_path = root_dir / MARKER_FILENAME
    try:
        raw_text = marker_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Marker file not found: {marker_path}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed to read marker file: {marker_path}") from exc

    try:
        payload = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid marker JSON: {marker_path}") from exc

    return parse_repository_config(payload, root_dir=root_dir, marker_path=marker_path)


def parse_repository_config(
    payload: Any, *, root_dir: Path, marker_path: Path
) -> Repository:
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Marker file must hold a JSON object: {marker_path}")

    missing = [key for key in REQUIRED_KEYS if key not in payload]
    if missing:
        raise ConfigurationError(
            f"Marker file missing required keys ({', '.join(missing)}): {marker_path}"
        )

    source_dir = map_config_path(
        _get_required_str(payload, "source_dir", marker_path), root_dir=root_dir
    )
    storage_dir = map_config_path(
        _get_required_str(payload, "storage_dir", marker_path), root_dir=root_dir
    )

    engine = payload.get("engine", DEFAULT_ENGINE)
    if engine not in SUPPORTED_ENGINES:
        raise ConfigurationError(
            f"Unsupported engine {engine!r} in {marker_path}. "
            f"Expected one of: {', '.join(SUPPORTED_ENGINES)}"
        )

    excludes = payload.get("excludes", [])
    if not isinstance(excludes, list) or not all(
        isinstance(item, str) for item in excludes
    ):
        raise ConfigurationError(
            f"Marker key 'excludes' must be a list of strings: {marker_path}"
        )

    return Repository(
        root_dir=root_dir,
        source_dir=source_dir,
        storage_dir=storage_dir,
        engine=engine,
        excludes=list(excludes),
    )


def write_repository_config(
    *,
    root_dir: Path,
    source_dir: str,
    storage_dir: str,
    engine: str,
    excludes: list[str],
) -> Path:
    marker_path = root_dir / MARKER_FILENAME
    payload = {
        "source_dir": source_dir,
        "storage_dir": storage_dir,
        "engine": engine,
        "excludes": excludes,
    }
    try:
        with marker_path.open("x", encoding="utf-8") as handle:
            handle.write(f"{json.dumps(payload, ensure_ascii=False, indent=2)}\n")
    except FileExistsError as exc:
        raise ConfigurationError(f"Repository already initialized: {marker_path}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed to write marker file: {marker_path}") from exc
    return marker_path


def map_config_path(path_text: str, *, root_dir: Path) -> Path:
    """Resolve a marker path value to an absolute path.

    ~ or ~/...  -> user home directory
    Absolute    -> used as-is
    Relative    -> resolved against the repository root
    """
    normalized = unicodedata.normalize("NFC", path_text)
    if "\0" in normalized:
        raise ConfigurationError("Path cannot contain NUL bytes")
    if _is_windows_rooted_not_qualified(normalized):
        raise ConfigurationError(
            f"Invalid path: {path_text}. Windows rooted path must be fully qualified."
        )

    candidate = Path(normalized)
    if normalized.startswith("~"):
        try:
            candidate = candidate.expanduser()
        except RuntimeError as exc:
            raise ConfigurationError(
                f"Failed to expand user home in path: {path_text}"
            ) from exc
    if not candidate.is_absolute():
        candidate = root_dir / candidate
    return candidate.resolve(strict=False)


def _is_windows_rooted_not_qualified(path_text: str) -> bool:
    if _WINDOWS_DRIVE_RELATIVE_RE.match(path_text):
        return True
    return path_text.startswith("\\") and not path_text.startswith("\\\\")


def _get_required_str(payload: dict[str, Any], key: str, marker_path: Path) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f"Marker key '{key}' must be a non-empty string: {marker_path}"
        )
    return value
