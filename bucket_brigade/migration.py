from __future__ import annotations
"""Bulk storage-tier transitions and archive restores over a target set.

Both operations follow the same shape: an admission check that may refuse
the whole request, an independent remote call per object, one reconciliation
of local state, and a report. One object's failure never stops the loop.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
from typing import Callable, Optional

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    ConnectTimeoutError,
    HTTPClientError,
    ReadTimeoutError,
)

from .catalog import ObjectCatalog
from .lifecycle import count_needing_restore, is_restoring
from .models import ObjectRecord, RestoreState, StorageTier
from .pagination import PaginationController
from .services import S3StoreService
from .status import StatusLog
from .targeting import TargetResolver
from .tracker import RestoreTracker

LOGGER = logging.getLogger(__name__)

FAILURE_NOT_FOUND = "not_found"
FAILURE_INVALID_STATE = "invalid_state"
FAILURE_TRANSPORT = "transport"
FAILURE_TIMEOUT = "timeout"
FAILURE_UNCLASSIFIED = "unclassified"

_NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}
_INVALID_STATE_CODES = {"InvalidObjectState", "RestoreAlreadyInProgress"}


class AdmissionError(RuntimeError):
    """Raised when a bulk operation is refused before any remote call."""

    def __init__(self, message: str, *, blocking_count: int = 0):
        super().__init__(message)
        self.blocking_count = blocking_count


@dataclass
class ObjectOutcome:
    key: str
    succeeded: bool
    failure_kind: Optional[str] = None
    message: str = ""


@dataclass
class RestorePlan:
    """Restore targets split by what has to happen to them."""

    eligible: list[str] = field(default_factory=list)
    already_restoring: list[str] = field(default_factory=list)
    already_available: list[str] = field(default_factory=list)
    not_archived: list[str] = field(default_factory=list)


@dataclass
class OperationReport:
    """What a bulk operation did, object by object."""

    operation: str
    target_count: int = 0
    refused: Optional[str] = None
    blocking_count: int = 0
    outcomes: list[ObjectOutcome] = field(default_factory=list)
    skipped_restoring: int = 0
    skipped_available: int = 0
    skipped_not_archived: int = 0
    reconciled: bool = False

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded_keys(self) -> list[str]:
        return [outcome.key for outcome in self.outcomes if outcome.succeeded]

    @property
    def failed(self) -> list[ObjectOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]


def classify_remote_error(exc: Exception) -> tuple[str, str]:
    """Map a remote failure to a failure kind and a user-facing message."""

    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {}) if isinstance(exc.response, dict) else {}
        code = str(error.get("Code") or "ServiceError")
        message = error.get("Message") or "no message provided"
        if code in _NOT_FOUND_CODES:
            return (
                FAILURE_NOT_FOUND,
                f"{code}: object was not found (mask may target stale keys or bucket differs)",
            )
        if code in _INVALID_STATE_CODES:
            return (
                FAILURE_INVALID_STATE,
                f"{code}: object is already being restored or not eligible for this operation",
            )
        return FAILURE_UNCLASSIFIED, f"{code}: {message}"
    if isinstance(exc, (ConnectTimeoutError, ReadTimeoutError)):
        return FAILURE_TIMEOUT, "request timed out; please retry"
    if isinstance(exc, (BotoConnectionError, HTTPClientError)):
        return FAILURE_TRANSPORT, f"network/dispatch failure: {exc}"
    return FAILURE_UNCLASSIFIED, str(exc)


class MigrationExecutor:
    """Applies transitions and restores to the resolved target set."""

    def __init__(
        self,
        catalog: ObjectCatalog,
        resolver: TargetResolver,
        service: S3StoreService,
        pagination: PaginationController,
        status: StatusLog,
        *,
        tracker: RestoreTracker | None = None,
        max_workers: int = 1,
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self._service = service
        self._pagination = pagination
        self._status = status
        self._tracker = tracker
        self._max_workers = max(int(max_workers), 1)

    def check_transition_admission(self, target_tier: StorageTier) -> list[ObjectRecord]:
        """Return the targets, or raise :class:`AdmissionError`.

        The check is all-or-nothing: a single archived target without a
        restore blocks the whole transition.
        """

        targets = self._resolver.target_records()
        if not targets:
            raise AdmissionError("Select at least one object (mask or row)")
        if not target_tier.is_known:
            raise AdmissionError(f"Storage class '{target_tier.label}' cannot be set via the API")
        blocking = count_needing_restore(targets)
        if blocking:
            raise AdmissionError(
                f"{blocking} objects require restore before transition. Restore them first.",
                blocking_count=blocking,
            )
        return targets

    def partition_restore_targets(self) -> RestorePlan:
        plan = RestorePlan()
        for record in self._resolver.target_records():
            state = record.restore_state
            if is_restoring(record):
                plan.already_restoring.append(record.key)
            elif state is not None and state.is_available:
                plan.already_available.append(record.key)
            elif record.storage_tier.is_archive:
                plan.eligible.append(record.key)
            else:
                plan.not_archived.append(record.key)
        return plan

    def transition(self, target_tier: StorageTier) -> OperationReport:
        report = OperationReport(operation="transition")
        try:
            container = self._require_container()
            targets = self.check_transition_admission(target_tier)
        except AdmissionError as exc:
            return self._refuse(report, exc)

        keys = [record.key for record in targets]
        report.target_count = len(keys)
        LOGGER.debug("Transitioning %d object(s) in '%s' to %s", len(keys), container, target_tier.label)

        def call(key: str) -> None:
            self._service.transition_tier(container, key, target_tier)

        for outcome in self._run_each(keys, call):
            report.outcomes.append(outcome)
            if outcome.succeeded:
                self._status.push(f"Transitioned {outcome.key} to {target_tier.label}")
            else:
                self._status.push(f"Transition failed for {outcome.key}: {outcome.message}")

        # Transitions are not instantaneous; trust whatever the store now lists.
        report.reconciled = self._pagination.reload()
        self._status.push(
            f"Transition finished: {len(report.succeeded_keys)} succeeded, {len(report.failed)} failed"
        )
        return report

    def restore(self, days: int) -> OperationReport:
        report = OperationReport(operation="restore")
        try:
            if days <= 0:
                raise AdmissionError("Restore days must be greater than zero")
            container = self._require_container()
            if self._resolver.target_count() == 0:
                raise AdmissionError("Select objects to restore first")
        except AdmissionError as exc:
            return self._refuse(report, exc)

        plan = self.partition_restore_targets()
        report.target_count = self._resolver.target_count()
        report.skipped_restoring = len(plan.already_restoring)
        report.skipped_available = len(plan.already_available)
        report.skipped_not_archived = len(plan.not_archived)
        if plan.already_restoring:
            self._status.push(f"Skipped {len(plan.already_restoring)} objects already being restored")
        if plan.already_available:
            self._status.push(f"Skipped {len(plan.already_available)} objects already restored")
        if not plan.eligible:
            self._status.push("No objects need restore")
            return report

        self._status.push(f"Requesting restore for {len(plan.eligible)} objects...")

        def call(key: str) -> None:
            self._service.request_restore(container, key, days)

        for outcome in self._run_each(plan.eligible, call):
            report.outcomes.append(outcome)
            if outcome.succeeded:
                self._status.push(f"Restore requested for {outcome.key}")
                if self._tracker is not None:
                    self._tracker.add_request(container, outcome.key, days)
            else:
                self._status.push(f"Restore failed for {outcome.key}: {outcome.message}")

        # The store does not report a restore right after accepting it, so
        # mark accepted keys locally until the next listing confirms them.
        succeeded = report.succeeded_keys
        if succeeded:
            self._catalog.patch_restore_state(succeeded, RestoreState.in_progress(), unconfirmed=True)
        report.reconciled = True
        self._status.push(
            f"Restore finished: {len(succeeded)} requested, {len(report.failed)} failed"
        )
        return report

    def _run_each(self, keys: list[str], call: Callable[[str], None]) -> list[ObjectOutcome]:
        def attempt(key: str) -> ObjectOutcome:
            try:
                call(key)
            except (BotoCoreError, ClientError) as exc:
                LOGGER.debug("Remote call failed for '%s': %s", key, exc)
                kind, message = classify_remote_error(exc)
                return ObjectOutcome(key=key, succeeded=False, failure_kind=kind, message=message)
            return ObjectOutcome(key=key, succeeded=True)

        if self._max_workers == 1 or len(keys) <= 1:
            return [attempt(key) for key in keys]
        # map() keeps results in key order, so each outcome stays attributable.
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            return list(pool.map(attempt, keys))

    def _refuse(self, report: OperationReport, exc: AdmissionError) -> OperationReport:
        report.refused = str(exc)
        report.blocking_count = exc.blocking_count
        report.target_count = self._resolver.target_count()
        self._status.push(str(exc))
        return report

    def _require_container(self) -> str:
        container = self._catalog.container
        if container is None:
            raise AdmissionError("Select a bucket first")
        return container
