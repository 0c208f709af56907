from __future__ import annotations
"""Decides when to fetch listing pages and feeds them into the catalog."""
import logging
import time
from typing import Callable, Iterable

from botocore.exceptions import BotoCoreError, ClientError

from .catalog import STATE_COUNTING, STATE_LOADING, STATE_LOADING_MORE, ObjectCatalog
from .models import ObjectRecord
from .services import S3StoreService
from .settings import AppSettings
from .status import StatusLog
from .tracker import RestoreTracker

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc)


class PaginationController:
    """Loads a container page by page, one fetch at a time."""

    def __init__(
        self,
        catalog: ObjectCatalog,
        service: S3StoreService,
        status: StatusLog,
        *,
        settings: AppSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        tracker: RestoreTracker | None = None,
    ) -> None:
        self._catalog = catalog
        self._service = service
        self._status = status
        self._settings = settings or AppSettings()
        self._clock = clock
        self._tracker = tracker
        self._last_refresh = clock()

    @property
    def catalog(self) -> ObjectCatalog:
        return self._catalog

    def select_container(self, container: str) -> bool:
        """Reset the catalog for ``container`` and load its first page."""

        LOGGER.debug("Selecting container '%s'", container)
        self._catalog.reset(container)
        if self._settings.count_before_load:
            self._count(container)
        loaded = self._load_first_page(container)
        self._last_refresh = self._clock()
        return loaded

    def load_more(self) -> bool:
        """Fetch the next page; skipped while a fetch is in flight."""

        catalog = self._catalog
        container = catalog.container
        if container is None or not catalog.has_more:
            return False
        epoch = catalog.begin_fetch(STATE_LOADING_MORE)
        if epoch is None:
            LOGGER.debug("Skipping load-more for '%s': fetch already in flight", container)
            return False
        try:
            page = self._service.list_objects(
                container,
                continuation_token=catalog.continuation_token,
                page_size=self._settings.page_size,
            )
        except (BotoCoreError, ClientError) as exc:
            LOGGER.exception("Load-more failed for container '%s'", container)
            self._status.push(f"Failed to load more: {_format_error(exc)}")
            catalog.finish_fetch(epoch)
            return False
        if epoch != catalog.epoch:
            LOGGER.debug("Dropping stale page for container '%s'", container)
            return False
        catalog.append_page(page.records, page.next_token, epoch)
        catalog.finish_fetch(epoch)
        self._after_page(container, page.records)
        self._last_refresh = self._clock()
        loaded = len(catalog.records)
        total = catalog.total_count if catalog.total_count is not None else loaded
        if catalog.has_more:
            self._status.push(f"Loaded {loaded} of {total} objects...")
        else:
            self._status.push(f"Loaded all {loaded} objects")
        return True

    def maybe_load_more(self) -> bool:
        if not self._catalog.should_load_more(
            look_ahead=self._settings.look_ahead,
            sparse_threshold=self._settings.sparse_mask_threshold,
        ):
            return False
        return self.load_more()

    def load_all(self) -> int:
        """Follow the cursor until the listing is exhausted; returns fetch count."""

        fetches = 0
        while self._catalog.has_more and self.load_more():
            fetches += 1
        return fetches

    def reload(self) -> bool:
        """Re-fetch the first page and swap it in.

        On failure the catalog keeps whatever it had loaded before.
        """

        catalog = self._catalog
        container = catalog.container
        if container is None:
            return False
        epoch = catalog.begin_fetch(STATE_LOADING)
        if epoch is None:
            LOGGER.debug("Skipping reload of '%s': fetch already in flight", container)
            return False
        try:
            page = self._service.list_objects(container, page_size=self._settings.page_size)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.exception("Reload failed for container '%s'", container)
            self._status.push(f"Reload failed: {_format_error(exc)}")
            catalog.finish_fetch(epoch)
            self._last_refresh = self._clock()
            return False
        catalog.replace_all(page.records, page.next_token)
        catalog.finish_fetch(epoch)
        self._after_page(container, page.records)
        self._last_refresh = self._clock()
        return True

    def maybe_refresh(self, now: float | None = None) -> bool:
        """Silently re-list the container once the refresh interval has elapsed."""

        current = self._clock() if now is None else now
        if current - self._last_refresh < self._settings.refresh_interval:
            return False
        if self._catalog.container is None or not self._catalog.records:
            return False
        return self.reload()

    def refresh_restore_states(self, keys: Iterable[str]) -> int:
        """Fan out restore-status lookups and merge the results by key."""

        container = self._catalog.container
        key_list = list(keys)
        if container is None or not key_list:
            return 0
        results = self._service.batch_restore_states(
            container,
            key_list,
            max_workers=self._settings.status_fanout,
        )
        # A failed lookup comes back as None; keep what we already know.
        known = [(key, state) for key, state in results if state is not None]
        if self._tracker is not None:
            self._tracker.sync_statuses(container, known)
        return self._catalog.merge_restore_states(known)

    def _count(self, container: str) -> None:
        catalog = self._catalog
        epoch = catalog.begin_fetch(STATE_COUNTING)
        if epoch is None:
            return
        self._status.push(f"Counting objects in {container}...")
        try:
            total = self._service.count_objects(container)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.exception("Count failed for container '%s'", container)
            self._status.push(f"Count failed: {_format_error(exc)}")
        else:
            catalog.total_count = total
            self._status.push(f"Found {total} objects total")
        finally:
            catalog.loading = False

    def _load_first_page(self, container: str) -> bool:
        catalog = self._catalog
        epoch = catalog.begin_fetch(STATE_LOADING)
        if epoch is None:
            return False
        try:
            page = self._service.list_objects(container, page_size=self._settings.page_size)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.exception("Listing failed for container '%s'", container)
            self._status.push(f"Failed to load objects: {_format_error(exc)}")
            catalog.finish_fetch(epoch)
            return False
        catalog.append_page(page.records, page.next_token, epoch)
        catalog.finish_fetch(epoch)
        self._after_page(container, page.records)
        loaded = len(catalog.records)
        total = catalog.total_count if catalog.total_count is not None else loaded
        self._status.push(f"Loaded {loaded} of {total} objects")
        return True

    def _after_page(self, container: str, records: list[ObjectRecord]) -> None:
        if not self._settings.refresh_restore_on_load:
            return
        archived = [record.key for record in records if record.storage_tier.is_archive]
        if archived:
            LOGGER.debug("Refreshing restore status for %d archived object(s) in '%s'", len(archived), container)
            self.refresh_restore_states(archived)
