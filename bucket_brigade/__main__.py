"""Module entry point: plan or run a migration against one bucket."""
import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError

from .controller import BrigadeController
from .logging_utils import configure_logging
from .mask import MASK_KINDS, ObjectMask
from .models import StorageTier
from .settings import SettingsStorage
from .tracker import RestoreTracker
from .ui_utils import format_record, summarize_report

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bucket_brigade",
        description="Select S3 objects with a mask and move them between storage classes.",
    )
    parser.add_argument("container", help="bucket to load")
    parser.add_argument("--mask", help="key pattern selecting the targets")
    parser.add_argument("--kind", choices=MASK_KINDS, default="prefix")
    parser.add_argument("--case-sensitive", action="store_true")
    parser.add_argument("--tier-filter", help="only target objects in this storage class")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--transition", metavar="TIER", help="move targets to this storage class")
    action.add_argument("--restore", metavar="DAYS", type=int, help="request a restore for this many days")
    parser.add_argument("--yes", action="store_true", help="execute instead of only planning")
    parser.add_argument("--workers", type=int, default=1, help="parallel per-object requests")
    parser.add_argument("--list", action="store_true", help="print the targeted objects")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    settings = SettingsStorage().load()
    controller = BrigadeController(
        settings=settings,
        tracker=RestoreTracker(),
        executor_workers=args.workers,
    )
    try:
        controller.connect()
        controller.select_container(args.container)
        controller.pagination.load_all()
    except (BotoCoreError, ClientError) as exc:
        LOGGER.debug("Could not load bucket '%s'", args.container, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.mask:
        controller.apply_mask(
            ObjectMask(
                name="cli",
                pattern=args.mask,
                kind=args.kind,
                case_sensitive=args.case_sensitive,
                storage_tier_filter=StorageTier.from_input(args.tier_filter) if args.tier_filter else None,
            )
        )

    print(f"{len(controller.catalog.records)} objects loaded, {controller.target_count()} targeted")
    print(
        f"{controller.resolver.needing_restore_count()} need restore, "
        f"{controller.resolver.restoring_count()} restoring"
    )
    pending = controller.pending_restores()
    if pending:
        print(f"{len(pending)} tracked restore requests pending")
    if args.list:
        for record in controller.resolver.target_records():
            print(format_record(record))

    if args.transition:
        staged = controller.stage_transition(StorageTier.from_input(args.transition))
    elif args.restore is not None:
        staged = controller.stage_restore(args.restore)
    else:
        return 0

    report = controller.confirm_pending() if staged is not None and args.yes else None
    for entry in controller.status.entries():
        print(entry)
    if staged is None:
        return 1
    if report is None:
        return 0
    print(summarize_report(report))
    # The status log is bounded; list every failure so none is lost.
    for outcome in report.failed:
        print(f"failed: {outcome.key}: {outcome.message}")
    return 1 if report.refused or report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
