from __future__ import annotations

from datetime import datetime

import pytest
from freezegun import freeze_time

from rsnap.errors import (
    ConfigurationError,
    InsufficientArchivesError,
    InvalidPolicyError,
    InvalidSelectionError,
    PolicyConflictError,
)
from rsnap.interaction import ScriptedInteraction
from rsnap.models import PolicyMode, RetentionPolicy
from rsnap.retention_service import (
    build_policy,
    parse_interactive_selection,
    select_for_deletion,
)


def _policy(mode: PolicyMode, value: int | None = None) -> RetentionPolicy:
    return RetentionPolicy(mode=mode, value=value)


@pytest.mark.parametrize("count", [0, 1, 3, 5])
def test_last_and_first_take_tail_and_head(sample_catalog: list[str], count: int) -> None:
    last = select_for_deletion(sample_catalog, _policy(PolicyMode.LAST, count))
    first = select_for_deletion(sample_catalog, _policy(PolicyMode.FIRST, count))

    assert last == sample_catalog[len(sample_catalog) - count :]
    assert first == sample_catalog[:count]


@pytest.mark.parametrize("mode", [PolicyMode.LAST, PolicyMode.FIRST])
def test_count_beyond_catalog_raises(sample_catalog: list[str], mode: PolicyMode) -> None:
    with pytest.raises(InsufficientArchivesError):
        select_for_deletion(sample_catalog, _policy(mode, len(sample_catalog) + 1))


def test_older_selects_archives_before_cutoff() -> None:
    catalog = ["2024-01-01_00:00:00", "2024-06-01_00:00:00", "2025-01-01_00:00:00"]
    now = datetime(2025, 1, 1, 0, 0, 0)

    selection = select_for_deletion(catalog, _policy(PolicyMode.OLDER, 200), now=now)

    assert selection == ["2024-01-01_00:00:00", "2024-06-01_00:00:00"]


def test_older_and_newer_zero_partition_catalog(sample_catalog: list[str]) -> None:
    now = datetime(2025, 6, 1, 8, 0, 0)

    older = select_for_deletion(sample_catalog, _policy(PolicyMode.OLDER, 0), now=now)
    newer = select_for_deletion(sample_catalog, _policy(PolicyMode.NEWER, 0), now=now)

    assert set(older).isdisjoint(newer)
    assert sorted(older + newer) == sample_catalog


def test_cutoff_boundary_is_retained_by_both_modes() -> None:
    catalog = ["2024-12-22_00:00:00", "2024-12-22_00:00:01", "2024-12-21_23:59:59"]
    now = datetime(2025, 1, 1, 0, 0, 0)

    older = select_for_deletion(sorted(catalog), _policy(PolicyMode.OLDER, 10), now=now)
    newer = select_for_deletion(sorted(catalog), _policy(PolicyMode.NEWER, 10), now=now)

    assert older == ["2024-12-21_23:59:59"]
    assert newer == ["2024-12-22_00:00:01"]


def test_malformed_identifier_always_counts_as_old() -> None:
    catalog = ["2024-12-31_00:00:00", "corrupted-name"]
    now = datetime(2025, 1, 1, 0, 0, 0)

    older = select_for_deletion(catalog, _policy(PolicyMode.OLDER, 3650), now=now)
    newer = select_for_deletion(catalog, _policy(PolicyMode.NEWER, 3650), now=now)

    assert older == ["corrupted-name"]
    assert newer == ["2024-12-31_00:00:00"]


@freeze_time("2025-01-01 00:00:00")
def test_older_defaults_to_current_time() -> None:
    catalog = ["2024-12-01_00:00:00", "2024-12-31_12:00:00"]

    assert select_for_deletion(catalog, _policy(PolicyMode.OLDER, 7)) == [
        "2024-12-01_00:00:00"
    ]


@freeze_time("2025-01-01 00:00:00")
@pytest.mark.parametrize("days", [1_000_000, 999_999_999, 10**12])
def test_day_counts_past_the_calendar_cap_the_cutoff(days: int) -> None:
    catalog = ["2024-01-01_00:00:00", "bad-name"]

    assert select_for_deletion(catalog, _policy(PolicyMode.OLDER, days)) == []
    assert select_for_deletion(catalog, _policy(PolicyMode.NEWER, days)) == catalog


def test_older_with_nothing_qualifying_is_empty(sample_catalog: list[str]) -> None:
    now = datetime(2025, 1, 2, 0, 0, 0)

    assert select_for_deletion(sample_catalog, _policy(PolicyMode.OLDER, 3650), now=now) == []


def test_all_returns_catalog_and_empty_on_empty(sample_catalog: list[str]) -> None:
    assert select_for_deletion(sample_catalog, _policy(PolicyMode.ALL)) == sample_catalog
    assert select_for_deletion([], _policy(PolicyMode.ALL)) == []


def test_interactive_lists_ordinals_and_applies_choice(sample_catalog: list[str]) -> None:
    interaction = ScriptedInteraction(["4 1"])

    selection = select_for_deletion(
        sample_catalog, _policy(PolicyMode.INTERACTIVE), selector=interaction
    )

    assert selection == [sample_catalog[0], sample_catalog[3]]
    assert interaction.messages[0] == "Available archives:"
    assert interaction.messages[1] == f"1 | {sample_catalog[0]}"
    assert len(interaction.prompts) == 1


def test_interactive_on_empty_catalog_does_not_prompt() -> None:
    interaction = ScriptedInteraction(["1"])

    assert select_for_deletion([], _policy(PolicyMode.INTERACTIVE), selector=interaction) == []
    assert interaction.prompts == []


def test_interactive_without_selector_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        select_for_deletion(["2024-01-01_00:00:00"], _policy(PolicyMode.INTERACTIVE))


@pytest.mark.parametrize("raw", ["0", "6", "1 6", "two", "1,2", "-1", "all 1"])
def test_interactive_invalid_tokens_reject_whole_request(
    sample_catalog: list[str], raw: str
) -> None:
    with pytest.raises(InvalidSelectionError):
        parse_interactive_selection(raw, sample_catalog)


def test_interactive_all_token_and_blank_input(sample_catalog: list[str]) -> None:
    assert parse_interactive_selection("ALL", sample_catalog) == sample_catalog
    assert parse_interactive_selection("   ", sample_catalog) == []
    assert parse_interactive_selection(None, sample_catalog) == []


def test_interactive_duplicates_collapse_in_catalog_order(sample_catalog: list[str]) -> None:
    assert parse_interactive_selection("5 2 5", sample_catalog) == [
        sample_catalog[1],
        sample_catalog[4],
    ]


def test_build_policy_defaults_to_interactive() -> None:
    assert build_policy([]) == RetentionPolicy(mode=PolicyMode.INTERACTIVE)


def test_build_policy_rejects_second_mode() -> None:
    with pytest.raises(PolicyConflictError, match="--last, --older"):
        build_policy([(PolicyMode.LAST, 2), (PolicyMode.OLDER, 30)])


def test_build_policy_rejects_repeated_mode() -> None:
    with pytest.raises(PolicyConflictError):
        build_policy([(PolicyMode.FIRST, 1), (PolicyMode.FIRST, 2)])


def test_build_policy_validates_numbers() -> None:
    with pytest.raises(InvalidPolicyError):
        build_policy([(PolicyMode.NEWER, -1)])
    with pytest.raises(InvalidPolicyError):
        build_policy([(PolicyMode.LAST, None)])
    assert build_policy([(PolicyMode.ALL, None)]) == RetentionPolicy(mode=PolicyMode.ALL)
