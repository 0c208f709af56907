from __future__ import annotations
"""Persistent record of restore requests issued from this client."""
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Iterable

from .models import RESTORE_AVAILABLE, RESTORE_EXPIRED, RestoreState, TrackedRestoreRequest

LOGGER = logging.getLogger(__name__)


class RestoreTracker:
    """JSON-backed list of :class:`TrackedRestoreRequest` entries.

    Writes are best-effort: a failed save is logged and the in-memory list
    stays authoritative for the session.
    """

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".bucket_brigade_restores.json"
        self._path = Path(storage_path)
        self._requests: list[TrackedRestoreRequest] = self._load()

    def add_request(self, container: str, key: str, days: int, *, now: datetime | None = None) -> TrackedRestoreRequest:
        request = TrackedRestoreRequest(
            container=container,
            key=key,
            requested_at=now or datetime.now(timezone.utc),
            days=days,
            current_status=RestoreState.in_progress(),
        )
        self._requests.append(request)
        self._save()
        return request

    def update_status(self, container: str, key: str, status: RestoreState | None) -> bool:
        return self.sync_statuses(container, [(key, status)]) > 0

    def sync_statuses(self, container: str, results: Iterable[tuple[str, RestoreState | None]]) -> int:
        """Record freshly observed restore states for tracked keys in ``container``."""

        observed = dict(results)
        updated = 0
        for request in self._requests:
            if request.container == container and request.key in observed:
                request.current_status = observed[request.key]
                updated += 1
        if updated:
            self._save()
        return updated

    def active_requests(self) -> list[TrackedRestoreRequest]:
        return [request for request in self._requests if not _is_settled(request.current_status)]

    def remove_completed(self) -> int:
        before = len(self._requests)
        self._requests = [request for request in self._requests if not _is_settled(request.current_status)]
        removed = before - len(self._requests)
        if removed:
            self._save()
        return removed

    def _load(self) -> list[TrackedRestoreRequest]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable restore tracker file %s", self._path)
            return []

        requests: list[TrackedRestoreRequest] = []
        for entry in data if isinstance(data, list) else []:
            try:
                requests.append(
                    TrackedRestoreRequest(
                        container=entry["container"],
                        key=entry["key"],
                        requested_at=datetime.fromisoformat(entry["requested_at"]),
                        days=int(entry["days"]),
                        current_status=_decode_status(entry.get("current_status")),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue
        return requests

    def _save(self) -> None:
        data = [
            {
                "container": request.container,
                "key": request.key,
                "requested_at": request.requested_at.isoformat(),
                "days": request.days,
                "current_status": _encode_status(request.current_status),
            }
            for request in self._requests
        ]
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError:
            LOGGER.warning("Could not write restore tracker file %s", self._path)


def _is_settled(status: RestoreState | None) -> bool:
    return status is not None and status.status in (RESTORE_AVAILABLE, RESTORE_EXPIRED)


def _encode_status(status: RestoreState | None) -> dict[str, str | None] | None:
    if status is None:
        return None
    return {
        "status": status.status,
        "expiry": status.expiry.isoformat() if status.expiry else None,
    }


def _decode_status(data: object) -> RestoreState | None:
    if not isinstance(data, dict) or "status" not in data:
        return None
    expiry = data.get("expiry")
    return RestoreState(
        status=str(data["status"]),
        expiry=datetime.fromisoformat(expiry) if expiry else None,
    )
