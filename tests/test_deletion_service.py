from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeEngine

from rsnap.deletion_service import confirm_and_delete, is_affirmative
from rsnap.interaction import ScriptedInteraction
from rsnap.models import DeletionOutcome, Repository


def _repository(tmp_path: Path) -> Repository:
    return Repository(
        root_dir=tmp_path,
        source_dir=tmp_path,
        storage_dir=tmp_path / "store",
        engine="rsync",
    )


def _seed(engine: FakeEngine, repository: Repository, archives: list[str]) -> None:
    engine.archives[repository.root_dir] = list(archives)


@pytest.mark.parametrize("response", [None, "", "n", "no", "nope", "yess", "  "])
def test_declining_aborts_without_deleting(
    tmp_path: Path, fake_engine: FakeEngine, response: str | None
) -> None:
    repository = _repository(tmp_path)
    _seed(fake_engine, repository, ["a", "b"])
    interaction = ScriptedInteraction([response])

    result = confirm_and_delete(
        repository=repository,
        selection=["a", "b"],
        engine=fake_engine,
        interaction=interaction,
    )

    assert result.outcome is DeletionOutcome.ABORTED
    assert result.deleted_count == 0
    assert fake_engine.deleted == []


@pytest.mark.parametrize("response", ["y", "Y", "yes", "YES", " Yes "])
def test_affirmative_responses(response: str) -> None:
    assert is_affirmative(response)


def test_selection_is_shown_in_full_before_prompting(
    tmp_path: Path, fake_engine: FakeEngine
) -> None:
    repository = _repository(tmp_path)
    _seed(fake_engine, repository, ["a", "b", "c"])
    interaction = ScriptedInteraction(["y"])

    result = confirm_and_delete(
        repository=repository,
        selection=["a", "c"],
        engine=fake_engine,
        interaction=interaction,
    )

    assert interaction.messages == ["Selected for deletion (2):", "  a", "  c"]
    assert result.outcome is DeletionOutcome.DELETED
    assert result.deleted == ["a", "c"]
    assert fake_engine.archives[repository.root_dir] == ["b"]


def test_empty_selection_skips_confirmation(tmp_path: Path, fake_engine: FakeEngine) -> None:
    interaction = ScriptedInteraction(["y"])

    result = confirm_and_delete(
        repository=_repository(tmp_path),
        selection=[],
        engine=fake_engine,
        interaction=interaction,
    )

    assert result.outcome is DeletionOutcome.NOTHING_TO_DO
    assert interaction.prompts == []
    assert interaction.messages == []


def test_failed_delete_does_not_stop_the_rest(tmp_path: Path, fake_engine: FakeEngine) -> None:
    repository = _repository(tmp_path)
    _seed(fake_engine, repository, ["a", "b", "c"])
    fake_engine.fail_delete_for.add("b")

    result = confirm_and_delete(
        repository=repository,
        selection=["a", "b", "c"],
        engine=fake_engine,
        interaction=ScriptedInteraction(["yes"]),
    )

    assert result.outcome is DeletionOutcome.DELETED
    assert result.deleted == ["a", "c"]
    assert [failure.identifier for failure in result.failures] == ["b"]
    assert "cannot delete b" in result.failures[0].message
    assert fake_engine.archives[repository.root_dir] == ["b"]
