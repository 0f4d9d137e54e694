from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from contactipy.adapters.contactsplus import ContactsJsonFileSource
from contactipy.app import (
    build_queue_store,
    find_duplicate_contacts,
    import_records,
    queue_duplicate_merges,
    refresh_contacts,
    sync_approved_changes,
)
from contactipy.config import ReviewPolicy, configure_logging, get_sync_config
from contactipy.domain.model import QueueQuery, QueueStatus
from contactipy.domain.sync import CancellationToken, RunOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from contactipy.domain.model import QueueItem
    from contactipy.domain.queue import QueueStore

log = logging.getLogger(__name__)

type SignalHandler = Callable[[int, FrameType | None], None]

_FAILED_OUTCOMES = frozenset(
    {RunOutcome.CIRCUIT_OPEN, RunOutcome.MAX_RETRIES_EXCEEDED, RunOutcome.ALREADY_RUNNING}
)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile and synchronise contacts")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("refresh", help="Replace local contacts with the remote address book")

    importer = subparsers.add_parser("import", help="Match a JSON contact export and queue changes")
    importer.add_argument("path", type=str, help="JSON file with one or more contacts")
    importer.add_argument(
        "--tag",
        type=str,
        help="Origin tag recorded on queued items (defaults to the file name)",
    )
    importer.add_argument(
        "--policy",
        type=str,
        choices=[policy.value for policy in ReviewPolicy],
        help="Decision for review-band matches (defaults to config)",
    )

    duplicates = subparsers.add_parser("duplicates", help="Find likely duplicate contacts")
    duplicates.add_argument(
        "--queue",
        action="store_true",
        help="Queue merges for the pairs the review policy settles",
    )
    duplicates.add_argument(
        "--policy",
        type=str,
        choices=[policy.value for policy in ReviewPolicy],
        help="Decision for review-band pairs (defaults to config)",
    )

    queue = subparsers.add_parser("queue", help="Inspect and review queued changes")
    queue_sub = queue.add_subparsers(dest="queue_command", required=True)
    queue_list = queue_sub.add_parser("list", help="List queued changes")
    queue_list.add_argument(
        "--status",
        type=str,
        action="append",
        choices=[status.value for status in QueueStatus],
        help="Only show items in this status (repeatable)",
    )
    queue_list.add_argument("--limit", type=int, help="Maximum number of items to show")
    queue_sub.add_parser("stats", help="Count queued changes per status")
    for name, help_text in (
        ("approve", "Approve pending or failed items"),
        ("reject", "Reject pending or failed items"),
    ):
        review = queue_sub.add_parser(name, help=help_text)
        review.add_argument("ids", type=int, nargs="*", help="Queue item ids")
        review.add_argument(
            "--all",
            action="store_true",
            help="Apply to every pending item",
        )
    queue_delete = queue_sub.add_parser("delete", help="Delete queue items")
    queue_delete.add_argument("ids", type=int, nargs="+", help="Queue item ids")
    queue_sub.add_parser("retry", help="Re-approve failed items below the retry limit")
    queue_sub.add_parser("prune", help="Remove synced items")

    subparsers.add_parser("sync", help="Push approved changes to the remote address book")

    args = parser.parse_args(list(argv))
    if args.command == "queue" and args.queue_command in {"approve", "reject"}:
        if args.all and args.ids:
            raise ValueError("Pass either item ids or --all, not both")
        if not args.all and not args.ids:
            raise ValueError(f"queue {args.queue_command} needs item ids or --all")
    if args.command == "queue" and args.queue_command == "list" and args.limit is not None:
        if args.limit < 1:
            raise ValueError("--limit must be positive")
    return args


def _describe(item: QueueItem) -> str:
    line = (
        f"#{item.id} [{item.status}] {item.operation} {item.subject_record_id}"
        f" retries={item.retry_count}"
    )
    if item.origin_tag:
        line += f" from={item.origin_tag!r}"
    if item.error_message:
        line += f" error={item.error_message!r}"
    return line


def _review_ids(store: QueueStore, args: argparse.Namespace) -> list[int]:
    if not args.all:
        return list(args.ids)
    pending = store.list_items(QueueQuery.with_status(QueueStatus.PENDING))
    return [item.id for item in pending if item.id is not None]


def _run_queue_command(args: argparse.Namespace) -> None:
    store = build_queue_store()
    command = args.queue_command
    if command == "list":
        statuses = frozenset(QueueStatus(value) for value in args.status) if args.status else None
        items = store.list_items(QueueQuery(statuses=statuses, limit=args.limit))
        for item in items:
            log.info(_describe(item))
        log.info("%s item(s)", len(items))
    elif command == "stats":
        stats = store.stats()
        for status in QueueStatus:
            log.info("%-9s %s", status, stats[status])
        log.info("%-9s %s", "total", stats.total)
    elif command == "approve":
        changed = store.approve(_review_ids(store, args))
        log.info("Approved %s item(s)", len(changed))
    elif command == "reject":
        changed = store.reject(_review_ids(store, args))
        log.info("Rejected %s item(s)", len(changed))
    elif command == "delete":
        removed = sum(store.delete(item_id) for item_id in args.ids)
        log.info("Deleted %s item(s)", removed)
    elif command == "retry":
        changed = store.retry_failed()
        log.info("Re-approved %s failed item(s)", len(changed))
    elif command == "prune":
        log.info("Pruned %s synced item(s)", store.prune_synced())
    else:
        raise ValueError(f"Unsupported queue command: {command}")


def _cancel_on_sigint(cancellation: CancellationToken) -> SignalHandler:
    def handler(_signal_received: int, _frame: FrameType | None) -> None:
        if cancellation.cancelled:
            raise KeyboardInterrupt
        log.info("Stopping after the current batch (Ctrl+C again to abort)")
        cancellation.cancel()

    return handler


def _run_sync() -> int:
    cancellation = CancellationToken()
    previous = signal(SIGINT, _cancel_on_sigint(cancellation))
    try:
        result = sync_approved_changes(cancellation=cancellation)
    finally:
        signal(SIGINT, previous)
    log.info(
        "Sync %s: synced=%s, failed=%s, not_attempted=%s%s",
        result.outcome,
        result.succeeded,
        result.failed,
        result.not_attempted,
        f" ({result.message})" if result.message else "",
    )
    return 1 if result.outcome in _FAILED_OUTCOMES else 0


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    verbose = "-v" in args_list or "--verbose" in args_list
    configure_logging(level=logging.DEBUG if verbose else logging.INFO)
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    exit_code = 0
    try:
        if parsed_args.command == "refresh":
            refresh_contacts()
        elif parsed_args.command == "import":
            source = ContactsJsonFileSource(parsed_args.path)
            policy = ReviewPolicy(parsed_args.policy) if parsed_args.policy else None
            summary = import_records(
                source.list_all(),
                origin_tag=parsed_args.tag or source.path.name,
                policy=policy,
            )
            log.info(
                "Import queued %s change(s); %s need a decision",
                len(summary.queued),
                summary.undecided,
            )
            if get_sync_config().sync_on_import:
                exit_code = _run_sync()
        elif parsed_args.command == "duplicates":
            policy = ReviewPolicy(parsed_args.policy) if parsed_args.policy else None
            if parsed_args.queue:
                queue_duplicate_merges(policy=policy)
            else:
                for match in find_duplicate_contacts():
                    log.info(
                        "%.3f %-6s %s (%s) <-> %s (%s)",
                        match.score,
                        match.band,
                        match.existing.display_name,
                        match.existing.id,
                        match.incoming.display_name,
                        match.incoming.id,
                    )
        elif parsed_args.command == "queue":
            _run_queue_command(parsed_args)
        elif parsed_args.command == "sync":
            exit_code = _run_sync()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except KeyboardInterrupt:
        log.warning("Aborted by user (Ctrl+C)")
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)

    if exit_code:
        sys.exit(exit_code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
