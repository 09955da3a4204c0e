"""Retention policy evaluation: which archives a prune run deletes."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

from .constants import SELECT_ALL_TOKEN
from .errors import (
    ConfigurationError,
    InsufficientArchivesError,
    InvalidPolicyError,
    InvalidSelectionError,
    PolicyConflictError,
)
from .interaction import InteractionPort
from .models import PolicyMode, RetentionPolicy
from .presenters import render_archive_rows
from .timestamps import identifier_moment, local_now

_VALUE_MODES = (PolicyMode.LAST, PolicyMode.FIRST, PolicyMode.OLDER, PolicyMode.NEWER)

SELECTION_PROMPT = (
    f"Archives to delete (numbers separated by spaces, or '{SELECT_ALL_TOKEN}'): "
)


def build_policy(requested: Sequence[tuple[PolicyMode, int | None]]) -> RetentionPolicy:
    """Build the single active policy from the modes requested on the command line.

    No request means interactive selection. More than one request is a conflict,
    including the same mode given twice.
    """
    if not requested:
        return RetentionPolicy(mode=PolicyMode.INTERACTIVE)
    if len(requested) > 1:
        given = ", ".join(f"--{mode.value}" for mode, _ in requested)
        raise PolicyConflictError(
            f"Retention modes are mutually exclusive; got {given}."
        )

    mode, value = requested[0]
    if mode in _VALUE_MODES:
        if value is None:
            raise InvalidPolicyError(f"--{mode.value} requires a number.")
        if value < 0:
            raise InvalidPolicyError(
                f"--{mode.value} must not be negative (got {value})."
            )
        return RetentionPolicy(mode=mode, value=value)
    return RetentionPolicy(mode=mode)


def select_for_deletion(
    catalog: Sequence[str],
    policy: RetentionPolicy,
    *,
    now: datetime | None = None,
    selector: InteractionPort | None = None,
) -> list[str]:
    """Return the archives ``policy`` selects, in catalog (oldest first) order.

    Only interactive mode touches ``selector``; every other mode is a pure
    function of the catalog, the policy, and ``now``.
    """
    if policy.mode is PolicyMode.ALL:
        return list(catalog)

    if policy.mode is PolicyMode.INTERACTIVE:
        if selector is None:
            raise ConfigurationError("Interactive selection needs an operator prompt.")
        return _select_interactively(catalog, selector)

    value = _require_value(policy)

    if policy.mode is PolicyMode.LAST:
        _require_archive_count(catalog, value)
        return list(catalog[len(catalog) - value :])

    if policy.mode is PolicyMode.FIRST:
        _require_archive_count(catalog, value)
        return list(catalog[:value])

    cutoff = _age_cutoff(now if now is not None else local_now(), days=value)
    if policy.mode is PolicyMode.OLDER:
        # Unparsable names count as the epoch.
        return [item for item in catalog if identifier_moment(item) < cutoff]
    if policy.mode is PolicyMode.NEWER:
        return [item for item in catalog if identifier_moment(item) > cutoff]

    raise ConfigurationError(f"Unknown retention mode: {policy.mode}")


def parse_interactive_selection(
    raw_selection: str | None, catalog: Sequence[str]
) -> list[str]:
    """Map operator input (ordinals or the select-all token) onto the catalog.

    Any invalid token rejects the whole request.
    """
    if raw_selection is None:
        return []
    tokens = raw_selection.split()
    if not tokens:
        return []

    if any(token.lower() == SELECT_ALL_TOKEN for token in tokens):
        if len(tokens) != 1:
            raise InvalidSelectionError(
                f"'{SELECT_ALL_TOKEN}' cannot be combined with archive numbers."
            )
        return list(catalog)

    selected_indexes: set[int] = set()
    for token in tokens:
        if not (token.isascii() and token.isdigit()):
            raise InvalidSelectionError(f"Selection must be numbers: {token!r}")
        index = int(token)
        if index < 1 or index > len(catalog):
            raise InvalidSelectionError(
                f"Selection {index} is out of range (1-{len(catalog)})."
            )
        selected_indexes.add(index)

    return [catalog[index - 1] for index in sorted(selected_indexes)]


def _select_interactively(
    catalog: Sequence[str], selector: InteractionPort
) -> list[str]:
    if not catalog:
        return []
    selector.notify("Available archives:")
    for row in render_archive_rows(catalog):
        selector.notify(row)
    raw_selection = selector.prompt_text(SELECTION_PROMPT)
    return parse_interactive_selection(raw_selection, catalog)


def _age_cutoff(now: datetime, *, days: int) -> datetime:
    try:
        return now - timedelta(days=days)
    except OverflowError:
        return datetime.min


def _require_value(policy: RetentionPolicy) -> int:
    if policy.value is None or policy.value < 0:
        raise InvalidPolicyError(
            f"Policy '{policy.mode.value}' needs a non-negative number."
        )
    return policy.value


def _require_archive_count(catalog: Sequence[str], count: int) -> None:
    if len(catalog) < count:
        raise InsufficientArchivesError(
            f"Requested {count} archive(s) but only {len(catalog)} exist."
        )
