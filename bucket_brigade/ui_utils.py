from __future__ import annotations
"""UI-agnostic helpers for formatting catalog state."""
from datetime import datetime

from .lifecycle import needs_restore
from .migration import OperationReport
from .models import ObjectRecord

BADGE_AVAILABLE = "Restored"
BADGE_RESTORING = "Restoring"
BADGE_EXPIRED = "Expired"
BADGE_NEEDS_RESTORE = "Archived"
BADGE_NONE = "-"


def restore_badge(record: ObjectRecord) -> str:
    """Short restore status label shown beside an object."""

    state = record.restore_state
    if state is not None:
        if state.is_in_progress:
            label = BADGE_RESTORING
            if state.expiry is not None:
                label = f"Restored until {state.expiry.strftime('%Y-%m-%d')}"
        elif state.is_available:
            label = BADGE_AVAILABLE
        else:
            label = BADGE_EXPIRED
        return f"{label}*" if record.unconfirmed else label
    if needs_restore(record):
        return BADGE_NEEDS_RESTORE
    return BADGE_NONE


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_last_modified(last_modified: datetime | None) -> str:
    if not last_modified:
        return "-"
    return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def format_record(record: ObjectRecord) -> str:
    return "  ".join(
        [
            f"{format_size(record.size):>10}",
            f"{record.storage_tier.label:<20}",
            f"{restore_badge(record):<12}",
            record.key,
        ]
    )


def summarize_report(report: OperationReport) -> str:
    if report.refused:
        return f"{report.operation} refused: {report.refused}"
    parts = [f"{len(report.succeeded_keys)} succeeded", f"{len(report.failed)} failed"]
    if report.skipped_restoring:
        parts.append(f"{report.skipped_restoring} already restoring")
    if report.skipped_available:
        parts.append(f"{report.skipped_available} already restored")
    if report.skipped_not_archived:
        parts.append(f"{report.skipped_not_archived} not archived")
    return f"{report.operation}: " + ", ".join(parts)
