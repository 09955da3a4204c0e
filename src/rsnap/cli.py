"""CLI entry and command wiring."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from pathlib import Path

from .backup_chain_service import run_backup
from .backup_engine import BackupEngine, build_engine
from .catalog_service import list_archives
from .constants import APP_NAME, DEFAULT_ENGINE, SUPPORTED_ENGINES
from .deletion_service import confirm_and_delete
from .errors import RsnapError
from .init_service import initialize_repository
from .interaction import InteractionPort, TerminalInteraction
from .logging_utils import log_event, setup_logging, summarize_text
from .models import (
    BackupFlags,
    DeletionOutcome,
    PolicyMode,
    Repository,
    RestoreOutcome,
)
from .presenters import (
    render_archive_rows,
    render_backup_result,
    render_delete_failures,
    render_error,
    render_repository,
    render_restore_result,
)
from .repository_config import find_repository
from .restore_service import resolve_restore_target, restore_archive
from .retention_service import build_policy, select_for_deletion

EngineFactory = Callable[[Repository], BackupEngine]


def main(
    argv: list[str] | None = None,
    *,
    interaction: InteractionPort | None = None,
    engine_factory: EngineFactory = build_engine,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        setup_logging(args.log_file)
    except RsnapError as exc:
        print(render_error(str(exc)))
        return 1

    start_dir = Path(args.directory).expanduser()
    active_interaction = interaction if interaction is not None else TerminalInteraction()

    try:
        if args.command == "init":
            return _run_init(args, start_dir=start_dir, engine_factory=engine_factory)
        if args.command == "snapshot":
            return _run_snapshot(args, start_dir=start_dir, engine_factory=engine_factory)
        if args.command == "prune":
            return _run_prune(
                args,
                start_dir=start_dir,
                engine_factory=engine_factory,
                interaction=active_interaction,
            )
        if args.command == "restore":
            return _run_restore(
                args,
                start_dir=start_dir,
                engine_factory=engine_factory,
                interaction=active_interaction,
            )
        return _run_list(start_dir=start_dir, engine_factory=engine_factory)
    except RsnapError as exc:
        log_event(
            "command_failed",
            level=logging.ERROR,
            command=args.command,
            error_type=type(exc).__name__,
            error=summarize_text(exc),
        )
        print(render_error(str(exc)))
        return 1


def _run_init(
    args: argparse.Namespace, *, start_dir: Path, engine_factory: EngineFactory
) -> int:
    repository = initialize_repository(
        root_dir=start_dir,
        storage_arg=args.storage,
        source_arg=args.source,
        engine=args.engine,
        excludes=args.exclude or [],
        create_storage=args.create,
        engine_factory=engine_factory,
    )
    print(f"Initialized repository: {repository.marker_path}")
    for line in render_repository(repository):
        print(line)
    return 0


def _run_snapshot(
    args: argparse.Namespace, *, start_dir: Path, engine_factory: EngineFactory
) -> int:
    repository = find_repository(start_dir)
    flags = BackupFlags(dry_run=args.dry_run, force_full=args.force_full)
    chain_result = run_backup(
        repository=repository,
        flags=flags,
        engine_factory=engine_factory,
        on_leg_complete=lambda result: print(render_backup_result(result)),
    )
    noun = "repository" if chain_result.leg_count == 1 else "repositories"
    verb = "Checked" if flags.dry_run else "Backed up"
    print(f"{verb} {chain_result.leg_count} {noun}.")
    return 0


def _run_prune(
    args: argparse.Namespace,
    *,
    start_dir: Path,
    engine_factory: EngineFactory,
    interaction: InteractionPort,
) -> int:
    policy = build_policy(args.policy_modes or [])
    repository = find_repository(start_dir)
    engine = engine_factory(repository)
    catalog = list_archives(repository=repository, engine=engine)

    selection = select_for_deletion(catalog, policy, selector=interaction)
    log_event(
        "prune_selection",
        repository_root=repository.root_dir,
        policy=policy.describe(),
        catalog_count=len(catalog),
        selected_count=len(selection),
    )

    result = confirm_and_delete(
        repository=repository,
        selection=selection,
        engine=engine,
        interaction=interaction,
    )
    if result.outcome is DeletionOutcome.NOTHING_TO_DO:
        print("Nothing to purge.")
        return 0
    if result.outcome is DeletionOutcome.ABORTED:
        print("Prune aborted. Nothing deleted.")
        return 0

    print(f"Deleted {result.deleted_count} of {len(selection)} archive(s).")
    for line in render_delete_failures(result.failures):
        print(line)
    return 1 if result.failures else 0


def _run_list(*, start_dir: Path, engine_factory: EngineFactory) -> int:
    repository = find_repository(start_dir)
    engine = engine_factory(repository)
    catalog = list_archives(repository=repository, engine=engine)

    for line in render_repository(repository):
        print(line)
    print()
    if not catalog:
        print("No archives yet.")
        return 0
    most_recent = engine.most_recent_marker(repository)
    for row in render_archive_rows(catalog, most_recent=most_recent):
        print(row)
    return 0


def _run_restore(
    args: argparse.Namespace,
    *,
    start_dir: Path,
    engine_factory: EngineFactory,
    interaction: InteractionPort,
) -> int:
    repository = find_repository(start_dir)
    engine = engine_factory(repository)
    catalog = list_archives(repository=repository, engine=engine)
    identifier = resolve_restore_target(
        catalog,
        identifier=args.identifier,
        use_latest=args.latest,
        most_recent=engine.most_recent_marker(repository) if args.latest else None,
    )

    result = restore_archive(
        repository=repository,
        identifier=identifier,
        engine=engine,
        interaction=interaction,
        dry_run=args.dry_run,
    )
    if result.outcome is RestoreOutcome.ABORTED:
        print("Restore aborted. Nothing changed.")
        return 0
    print(render_restore_result(result))
    return 0


class _PolicyModeAction(argparse.Action):
    """Collect every retention option given so conflicts can be reported."""

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        requested = list(getattr(namespace, self.dest, None) or [])
        value = values if isinstance(values, int) else None
        requested.append((PolicyMode(self.const), value))
        setattr(namespace, self.dest, requested)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Incremental snapshots with retention pruning.",
    )
    parser.add_argument(
        "-C",
        "--directory",
        default=".",
        help="Directory to start the repository search from (default: .).",
    )
    parser.add_argument(
        "--log-file",
        required=False,
        help="Write structured event logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a repository marker file.")
    init_parser.add_argument(
        "--storage",
        required=True,
        help="Where archives are stored (relative to the repository root).",
    )
    init_parser.add_argument(
        "--source",
        required=False,
        help="Directory to back up (default: the repository root).",
    )
    init_parser.add_argument(
        "--engine",
        choices=SUPPORTED_ENGINES,
        default=DEFAULT_ENGINE,
        help=f"Backup engine (default: {DEFAULT_ENGINE}).",
    )
    init_parser.add_argument(
        "--exclude",
        action="append",
        metavar="PATTERN",
        help="Exclude pattern passed to the engine; may be repeated.",
    )
    init_parser.add_argument(
        "--create",
        action="store_true",
        help="Create the storage location if it does not exist.",
    )

    snapshot_parser = subparsers.add_parser(
        "snapshot", help="Back up this repository and every enclosing repository."
    )
    snapshot_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be transferred without writing anything.",
    )
    snapshot_parser.add_argument(
        "--force-full",
        action="store_true",
        help="Transfer everything instead of reusing the previous archive.",
    )

    prune_parser = subparsers.add_parser(
        "prune",
        help="Delete archives by retention policy (interactive when no option is given).",
    )
    for mode, metavar, help_text in (
        (PolicyMode.LAST, "N", "Delete the N most recent archives."),
        (PolicyMode.FIRST, "N", "Delete the N oldest archives."),
        (PolicyMode.OLDER, "DAYS", "Delete archives older than DAYS days."),
        (PolicyMode.NEWER, "DAYS", "Delete archives newer than DAYS days."),
    ):
        prune_parser.add_argument(
            f"--{mode.value}",
            dest="policy_modes",
            action=_PolicyModeAction,
            const=mode.value,
            type=int,
            metavar=metavar,
            help=help_text,
        )
    prune_parser.add_argument(
        "--all",
        dest="policy_modes",
        action=_PolicyModeAction,
        const=PolicyMode.ALL.value,
        nargs=0,
        help="Delete every archive.",
    )

    subparsers.add_parser("list", help="List archives, oldest first.")

    restore_parser = subparsers.add_parser(
        "restore", help="Copy an archive back into the source directory."
    )
    restore_parser.add_argument(
        "identifier",
        nargs="?",
        help="Archive to restore (see `rsnap list`).",
    )
    restore_parser.add_argument(
        "--latest",
        action="store_true",
        help="Restore the most recent archive.",
    )
    restore_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be restored without writing anything.",
    )
    return parser
