from dataclasses import replace

from bucket_brigade.models import ContainerInfo, ObjectPage, ObjectRecord, StorageTier


class FakeStoreService:
    """In-memory stand-in for :class:`S3StoreService`."""

    def __init__(self, objects=None, containers=None):
        self.objects = {name: list(records) for name, records in (objects or {}).items()}
        self.containers = containers or [ContainerInfo(name=name) for name in self.objects]
        self.restore_states = {}
        self.list_calls = []
        self.count_calls = []
        self.head_calls = []
        self.batch_calls = []
        self.transition_calls = []
        self.restore_calls = []
        self.list_errors = []
        self.count_error = None
        self.head_errors = {}
        self.transition_errors = {}
        self.restore_errors = {}

    def list_containers(self):
        return list(self.containers)

    def list_objects(self, container, *, prefix=None, continuation_token=None, page_size=200):
        self.list_calls.append((container, continuation_token, page_size))
        if self.list_errors:
            raise self.list_errors.pop(0)
        records = sorted(self.objects.get(container, []), key=lambda record: record.key)
        start = int(continuation_token or 0)
        end = start + page_size
        page = [replace(record) for record in records[start:end]]
        next_token = str(end) if end < len(records) else None
        return ObjectPage(records=page, next_token=next_token)

    def count_objects(self, container, *, prefix=None):
        self.count_calls.append(container)
        if self.count_error is not None:
            raise self.count_error
        return len(self.objects.get(container, []))

    def head_object(self, container, key):
        self.head_calls.append((container, key))
        error = self.head_errors.get(key)
        if error is not None:
            raise error
        for record in self.objects.get(container, []):
            if record.key == key:
                return replace(record, restore_state=self.restore_states.get(key, record.restore_state))
        raise KeyError(key)

    def batch_restore_states(self, container, keys, *, max_workers=10):
        keys = list(keys)
        self.batch_calls.append((container, keys, max_workers))
        # Completion order is arbitrary; hand results back reversed.
        return [(key, self.restore_states.get(key)) for key in reversed(keys)]

    def transition_tier(self, container, key, tier):
        self.transition_calls.append((container, key, tier))
        error = self.transition_errors.get(key)
        if error is not None:
            raise error
        self.objects[container] = [
            replace(record, storage_tier=tier) if record.key == key else record
            for record in self.objects[container]
        ]

    def request_restore(self, container, key, days):
        self.restore_calls.append((container, key, days))
        error = self.restore_errors.get(key)
        if error is not None:
            raise error


def make_records(keys, tier=StorageTier("STANDARD"), **kwargs):
    return [ObjectRecord(key=key, size=1, storage_tier=tier, **kwargs) for key in keys]
