from __future__ import annotations
"""Restore lifecycle classification for archived objects."""
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
import re
from typing import Iterable, Optional

from .models import ObjectRecord, RestoreState

_EXPIRY_PATTERN = re.compile(r'expiry-date="([^"]*)"')


def needs_restore(record: ObjectRecord) -> bool:
    """Archived objects need a restore unless one is done or under way."""

    if not record.storage_tier.is_archive:
        return False
    state = record.restore_state
    if state is None:
        return True
    return not (state.is_available or state.is_in_progress)


def is_restoring(record: ObjectRecord) -> bool:
    state = record.restore_state
    return state is not None and state.is_in_progress


def count_needing_restore(records: Iterable[ObjectRecord]) -> int:
    return sum(1 for record in records if needs_restore(record))


def count_restoring(records: Iterable[ObjectRecord]) -> int:
    return sum(1 for record in records if is_restoring(record))


def parse_restore_state(raw: str | None) -> Optional[RestoreState]:
    """Translate an ``x-amz-restore`` header into a :class:`RestoreState`.

    An expiry date that parses is reported as in progress with that expiry,
    which is how the store reports a restored copy with a retention window.
    """

    if raw is None:
        return None
    value = raw.lower()
    if 'ongoing-request="true"' in value:
        return RestoreState.in_progress()
    match = _EXPIRY_PATTERN.search(raw)
    if match:
        expiry = _parse_http_date(match.group(1))
        if expiry is None:
            return RestoreState.available()
        return RestoreState.in_progress(expiry)
    if 'ongoing-request="false"' in value:
        return RestoreState.available()
    return RestoreState.expired()


def _parse_http_date(value: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
