from __future__ import annotations
"""Incremental, client-side cache of one container's object listing."""
from typing import Iterable, Optional

from .mask import ObjectMask
from .models import ObjectRecord, RestoreState

STATE_EMPTY = "empty"
STATE_COUNTING = "counting"
STATE_LOADING = "loading"
STATE_IDLE = "idle"
STATE_LOADING_MORE = "loading_more"
STATE_EXHAUSTED = "exhausted"

FETCH_STATES = (STATE_COUNTING, STATE_LOADING, STATE_LOADING_MORE)

LOOK_AHEAD = 50
SPARSE_MASK_THRESHOLD = 100


class ObjectCatalog:
    """Holds loaded records sorted by key plus the pagination cursor.

    A catalog belongs to one container selection (an *epoch*). Records only
    grow within an epoch; switching containers clears everything and bumps
    the epoch so late pages from the previous selection are dropped.
    Not thread-safe: a single owner drives it.
    """

    def __init__(self) -> None:
        self.container: str | None = None
        self.records: list[ObjectRecord] = []
        self.filtered: list[ObjectRecord] = []
        self.continuation_token: str | None = None
        self.total_count: int | None = None
        self.loading = False
        self.epoch = 0
        self.state = STATE_EMPTY
        self.selected_index = 0
        self._mask: ObjectMask | None = None
        self._keys: set[str] = set()

    @property
    def active_mask(self) -> ObjectMask | None:
        return self._mask

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None

    def reset(self, container: str | None = None) -> int:
        self.epoch += 1
        self.container = container
        self.records = []
        self.filtered = []
        self._keys = set()
        self.continuation_token = None
        self.total_count = None
        self.loading = False
        self.state = STATE_EMPTY
        self.selected_index = 0
        return self.epoch

    def begin_fetch(self, state: str) -> int | None:
        """Claim the fetch slot; returns the epoch, or ``None`` when busy."""

        if state not in FETCH_STATES:
            raise ValueError(f"'{state}' is not a fetch state")
        if self.loading:
            return None
        self.loading = True
        self.state = state
        return self.epoch

    def finish_fetch(self, epoch: int) -> None:
        if epoch != self.epoch:
            return
        self.loading = False
        if self.container is None:
            self.state = STATE_EMPTY
        else:
            self.state = STATE_IDLE if self.has_more else STATE_EXHAUSTED

    def append_page(
        self,
        records: Iterable[ObjectRecord],
        next_token: str | None,
        epoch: int | None = None,
    ) -> int:
        """Merge a fetched page; returns how many new records were added."""

        if epoch is not None and epoch != self.epoch:
            return 0
        added = 0
        for record in sorted(records, key=lambda item: item.key):
            if record.key in self._keys:
                continue
            self._keys.add(record.key)
            self.records.append(record)
            added += 1
        self.records.sort(key=lambda item: item.key)
        self.continuation_token = next_token
        self._refilter()
        return added

    def replace_all(self, records: Iterable[ObjectRecord], next_token: str | None) -> None:
        """Swap in an authoritative first page after a reload of the same container."""

        self.records = []
        self._keys = set()
        self.append_page(records, next_token)
        self._clamp_selection()

    def apply_mask(self, mask: ObjectMask | None) -> None:
        self._mask = mask
        self.selected_index = 0
        self._refilter()

    def active_records(self) -> list[ObjectRecord]:
        if self._mask is not None:
            return self.filtered
        return self.records

    def selected_record(self) -> ObjectRecord | None:
        active = self.active_records()
        if 0 <= self.selected_index < len(active):
            return active[self.selected_index]
        return None

    def select(self, index: int) -> None:
        self.selected_index = max(int(index), 0)
        self._clamp_selection()

    def move_selection(self, delta: int) -> None:
        active = self.active_records()
        if not active:
            return
        self.selected_index = min(max(self.selected_index + delta, 0), len(active) - 1)

    def jump_selection(self, *, start: bool) -> None:
        active = self.active_records()
        if active:
            self.selected_index = 0 if start else len(active) - 1

    def find(self, key: str) -> Optional[ObjectRecord]:
        if key not in self._keys:
            return None
        for record in self.records:
            if record.key == key:
                return record
        return None

    def update_record(self, refreshed: ObjectRecord) -> bool:
        for index, record in enumerate(self.records):
            if record.key == refreshed.key:
                self.records[index] = refreshed
                self._refilter()
                return True
        return False

    def patch_restore_state(
        self,
        keys: Iterable[str],
        state: RestoreState | None,
        *,
        unconfirmed: bool = False,
    ) -> int:
        wanted = set(keys)
        patched = 0
        for record in self.records:
            if record.key in wanted:
                record.restore_state = state
                record.unconfirmed = unconfirmed
                patched += 1
        self._refilter()
        return patched

    def merge_restore_states(self, results: Iterable[tuple[str, RestoreState | None]]) -> int:
        """Apply looked-up restore states by key; arrival order is irrelevant."""

        by_key = dict(results)
        merged = 0
        for record in self.records:
            if record.key in by_key:
                record.restore_state = by_key[record.key]
                record.unconfirmed = False
                merged += 1
        self._refilter()
        return merged

    def should_load_more(
        self,
        *,
        look_ahead: int = LOOK_AHEAD,
        sparse_threshold: int = SPARSE_MASK_THRESHOLD,
    ) -> bool:
        if self.loading or not self.has_more:
            return False
        if self._mask is not None and len(self.filtered) < sparse_threshold:
            return True
        return self.selected_index + look_ahead >= len(self.records)

    def _refilter(self) -> None:
        if self._mask is None:
            self.filtered = []
            return
        mask = self._mask
        self.filtered = [record for record in self.records if mask.selects(record)]

    def _clamp_selection(self) -> None:
        active = self.active_records()
        if not active:
            self.selected_index = 0
        elif self.selected_index >= len(active):
            self.selected_index = len(active) - 1
