from __future__ import annotations
"""Resolves which objects a bulk operation acts upon."""

from .catalog import ObjectCatalog
from .lifecycle import count_needing_restore, count_restoring
from .models import ObjectRecord


class TargetResolver:
    """Single source of truth for the current target set.

    With a mask active the targets are every loaded record the mask selects;
    otherwise the record under the selection cursor, if any.
    """

    def __init__(self, catalog: ObjectCatalog):
        self._catalog = catalog

    def target_records(self) -> list[ObjectRecord]:
        catalog = self._catalog
        if catalog.active_mask is not None:
            return list(catalog.filtered)
        if 0 <= catalog.selected_index < len(catalog.records):
            return [catalog.records[catalog.selected_index]]
        return []

    def target_keys(self) -> list[str]:
        return [record.key for record in self.target_records()]

    def target_count(self) -> int:
        catalog = self._catalog
        if catalog.active_mask is not None:
            return len(catalog.filtered)
        return 1 if 0 <= catalog.selected_index < len(catalog.records) else 0

    def needing_restore_count(self) -> int:
        return count_needing_restore(self.target_records())

    def restoring_count(self) -> int:
        return count_restoring(self.target_records())
