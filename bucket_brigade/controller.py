from __future__ import annotations
"""Application state and the user-level operations that act on it."""
from dataclasses import dataclass
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from .catalog import ObjectCatalog
from .mask import ObjectMask
from .migration import AdmissionError, MigrationExecutor, OperationReport
from .models import ContainerInfo, StorageTier, TrackedRestoreRequest
from .pagination import PaginationController
from .services import S3StoreService
from .settings import AppSettings
from .status import StatusLog
from .targeting import TargetResolver
from .templates import MigrationTemplate, TemplateStorage
from .tracker import RestoreTracker

ALL_REGIONS = "All Regions"
ACTION_TRANSITION = "transition"
ACTION_RESTORE = "restore"

LOGGER = logging.getLogger(__name__)


class NotConnectedError(RuntimeError):
    """Raised when an S3 operation is attempted before connecting."""


@dataclass(frozen=True)
class PendingAction:
    """A bulk operation awaiting confirmation."""

    kind: str
    target_tier: Optional[StorageTier] = None
    days: int = 0


class BrigadeController:
    """Coordinates the catalog, targeting and migration components.

    Every component shares the one catalog and status log held here; nothing
    is stored at module level.
    """

    def __init__(
        self,
        service: S3StoreService | None = None,
        *,
        settings: AppSettings | None = None,
        template_storage: TemplateStorage | None = None,
        tracker: RestoreTracker | None = None,
        executor_workers: int = 1,
    ):
        self.settings = settings or AppSettings()
        self._service = service or S3StoreService(
            endpoint_url=self.settings.endpoint_url or None,
            region_name=self.settings.region or None,
        )
        self._template_storage = template_storage or TemplateStorage()
        self.status = StatusLog(self.settings.status_limit)
        self.catalog = ObjectCatalog()
        self.resolver = TargetResolver(self.catalog)
        self.pagination = PaginationController(
            self.catalog,
            self._service,
            self.status,
            settings=self.settings,
            tracker=tracker,
        )
        self.executor = MigrationExecutor(
            self.catalog,
            self.resolver,
            self._service,
            self.pagination,
            self.status,
            tracker=tracker,
            max_workers=executor_workers,
        )
        self._all_containers: list[ContainerInfo] = []
        self._region: str | None = None
        self._connected = False
        self.pending_action: PendingAction | None = None
        self._tracker = tracker

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def selected_container(self) -> str | None:
        return self.catalog.container

    @property
    def region(self) -> str | None:
        return self._region

    def connect(self) -> list[ContainerInfo]:
        containers = self._service.list_containers()
        self._all_containers = containers
        self._connected = True
        return self.containers()

    def refresh_containers(self) -> list[ContainerInfo]:
        self._require_connection()
        self._all_containers = self._service.list_containers()
        return self.containers()

    def containers(self) -> list[ContainerInfo]:
        if self._region is None:
            return list(self._all_containers)
        return [info for info in self._all_containers if info.region == self._region]

    def regions(self) -> list[str]:
        found = sorted({info.region for info in self._all_containers if info.region})
        return [ALL_REGIONS, *found]

    def set_region(self, region: str | None) -> None:
        self._region = None if region in (None, "", ALL_REGIONS) else region
        self.status.push(f"Region filter: {self._region or ALL_REGIONS}")

    def select_container(self, name: str) -> bool:
        self._require_connection()
        self.pending_action = None
        if self._tracker is not None:
            self._tracker.remove_completed()
        return self.pagination.select_container(name)

    def tick(self, now: float | None = None) -> None:
        """Run the periodic work a UI loop would drive between events."""

        if self.pagination.maybe_refresh(now):
            return
        self.pagination.maybe_load_more()

    def apply_mask(self, mask: ObjectMask | None) -> None:
        self.catalog.apply_mask(mask)
        if mask is None:
            self.status.push("Cleared mask filter")
        elif not self.catalog.filtered:
            self.status.push("Mask applied but matched no objects")
        else:
            self.status.push(f"Mask '{mask.name}' matched {len(self.catalog.filtered)} objects")

    def pending_restores(self) -> list[TrackedRestoreRequest]:
        """Tracked restore requests not yet seen as available or expired."""

        if self._tracker is None:
            return []
        return self._tracker.active_requests()

    def target_count(self) -> int:
        return self.resolver.target_count()

    def target_keys(self) -> list[str]:
        return self.resolver.target_keys()

    def refresh_selected_object(self) -> bool:
        self._require_connection()
        container = self.catalog.container
        record = self.catalog.selected_record()
        if container is None or record is None:
            self.status.push("Select an object to inspect")
            return False
        try:
            refreshed = self._service.head_object(container, record.key)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.exception("Inspect failed for '%s'", record.key)
            self.status.push(f"Inspect failed: {exc}")
            return False
        self.catalog.update_record(refreshed)
        if self._tracker is not None and refreshed.restore_state is not None:
            self._tracker.update_status(container, refreshed.key, refreshed.restore_state)
        self.status.push("Object metadata refreshed")
        return True

    def stage_transition(self, target_tier: StorageTier) -> PendingAction | None:
        try:
            self._require_container()
            self.executor.check_transition_admission(target_tier)
        except AdmissionError as exc:
            self.status.push(str(exc))
            return None
        self.pending_action = PendingAction(kind=ACTION_TRANSITION, target_tier=target_tier)
        self.status.push(f"Confirm transition to {target_tier.label} for {self.target_count()} objects")
        return self.pending_action

    def stage_restore(self, days: int | None = None) -> PendingAction | None:
        days = self.settings.restore_days if days is None else days
        if self.catalog.container is None or self.target_count() == 0:
            self.status.push("Select objects to restore first")
            return None
        need_restore = self.resolver.needing_restore_count()
        already_restoring = self.resolver.restoring_count()
        if need_restore == 0:
            if already_restoring:
                self.status.push(f"{already_restoring} objects are already being restored")
            else:
                self.status.push("No objects need restore (not archived or already restored)")
            return None
        self.pending_action = PendingAction(kind=ACTION_RESTORE, days=days)
        if already_restoring:
            self.status.push(
                f"Will restore {need_restore} objects ({already_restoring} already restoring will be skipped)"
            )
        else:
            self.status.push(f"Confirm restore request for {need_restore} objects")
        return self.pending_action

    def confirm_pending(self) -> OperationReport | None:
        action = self.pending_action
        self.pending_action = None
        if action is None:
            return None
        if action.kind == ACTION_TRANSITION and action.target_tier is not None:
            return self.executor.transition(action.target_tier)
        return self.executor.restore(action.days)

    def cancel_pending(self) -> None:
        if self.pending_action is not None:
            self.pending_action = None
            self.status.push("Cancelled")

    def transition(self, target_tier: StorageTier) -> OperationReport:
        return self.executor.transition(target_tier)

    def restore(self, days: int | None = None) -> OperationReport:
        return self.executor.restore(self.settings.restore_days if days is None else days)

    def list_templates(self) -> list[MigrationTemplate]:
        return self._template_storage.load()

    def save_template(self, target_tier: StorageTier, notes: str | None = None) -> MigrationTemplate:
        """Persist the active mask with ``target_tier``.

        Raises:
            AdmissionError: when no mask is active.
            TemplateError: when the template file cannot be written.
        """

        mask = self.catalog.active_mask
        if mask is None:
            self.status.push("Apply a mask before saving a template")
            raise AdmissionError("Apply a mask before saving a template")
        template = MigrationTemplate(mask=mask, target_tier=target_tier, notes=notes)
        self._template_storage.add(template)
        self.status.push(f"Saved template '{mask.name}' -> {target_tier.label}")
        return template

    def delete_template(self, template_id: str) -> MigrationTemplate:
        removed = self._template_storage.remove(template_id)
        self.status.push(f"Deleted template '{removed.mask.name}'")
        return removed

    def apply_template(self, template: MigrationTemplate) -> PendingAction | None:
        """Activate the template's mask and stage its transition if admitted."""

        self.apply_mask(template.mask)
        return self.stage_transition(template.target_tier)

    def _require_connection(self) -> None:
        if not self._connected:
            raise NotConnectedError("Not connected to S3")

    def _require_container(self) -> str:
        container = self.catalog.container
        if container is None:
            raise AdmissionError("Select a bucket first")
        return container
