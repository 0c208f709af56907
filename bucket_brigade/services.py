from __future__ import annotations
"""Remote store client: the S3 calls the migration engine depends on."""
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
from typing import Callable, Iterable, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .lifecycle import parse_restore_state
from .models import ContainerInfo, ObjectPage, ObjectRecord, RestoreState, StorageTier

PAGE_SIZE = 200
COUNT_PAGE_SIZE = 1000
STATUS_FANOUT = 10
DEFAULT_REGION = "us-east-1"

LOGGER = logging.getLogger(__name__)


class UnsupportedTierError(ValueError):
    """Raised when a transition targets a tier the API cannot set."""


class S3StoreService:
    """Encapsulates S3 access independent of any UI technology."""

    def __init__(
        self,
        client_factory: Callable[..., object] | None = None,
        *,
        endpoint_url: str | None = None,
        region_name: str | None = None,
    ):
        self._client_factory = client_factory or boto3.client
        self._endpoint_url = endpoint_url or None
        self._region_name = region_name or None
        self._client = None

    @property
    def region_name(self) -> str | None:
        return self._region_name

    def list_containers(self) -> list[ContainerInfo]:
        """Return buckets sorted by name, each tagged with its region."""

        client = self._get_client()
        response = client.list_buckets()
        containers = [
            ContainerInfo(
                name=bucket["Name"],
                region=self._bucket_region(client, bucket["Name"]),
                creation_date=bucket.get("CreationDate"),
            )
            for bucket in response.get("Buckets", [])
        ]
        containers.sort(key=lambda info: info.name)
        return containers

    def list_objects(
        self,
        container: str,
        *,
        prefix: str | None = None,
        continuation_token: str | None = None,
        page_size: int = PAGE_SIZE,
    ) -> ObjectPage:
        """Fetch one page of objects.

        Raises:
            BotoCoreError | ClientError: when the listing fails.
        """

        params: dict[str, object] = {"Bucket": container, "MaxKeys": page_size}
        if prefix:
            params["Prefix"] = prefix
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        response = self._get_client().list_objects_v2(**params)
        # ListObjectsV2 carries no restore status; it is looked up separately.
        records = [
            ObjectRecord(
                key=entry["Key"],
                size=int(entry.get("Size") or 0),
                last_modified=entry.get("LastModified"),
                storage_tier=StorageTier.from_label(entry.get("StorageClass")),
            )
            for entry in response.get("Contents", [])
        ]
        next_token = None
        if response.get("IsTruncated", False):
            next_token = response.get("NextContinuationToken")
        return ObjectPage(records=records, next_token=next_token)

    def count_objects(self, container: str, *, prefix: str | None = None) -> int:
        client = self._get_client()
        params: dict[str, object] = {"Bucket": container, "MaxKeys": COUNT_PAGE_SIZE}
        if prefix:
            params["Prefix"] = prefix
        total = 0
        while True:
            response = client.list_objects_v2(**params)
            total += int(response.get("KeyCount", len(response.get("Contents", []))))
            token = response.get("NextContinuationToken")
            if not response.get("IsTruncated", False) or not token:
                return total
            params["ContinuationToken"] = token

    def head_object(self, container: str, key: str) -> ObjectRecord:
        response = self._get_client().head_object(Bucket=container, Key=key)
        return ObjectRecord(
            key=key,
            size=int(response.get("ContentLength") or 0),
            last_modified=response.get("LastModified"),
            storage_tier=StorageTier.from_label(response.get("StorageClass")),
            restore_state=parse_restore_state(response.get("Restore")),
        )

    def batch_restore_states(
        self,
        container: str,
        keys: Iterable[str],
        *,
        max_workers: int = STATUS_FANOUT,
    ) -> list[tuple[str, Optional[RestoreState]]]:
        """Look up restore status for many keys with bounded parallelism.

        Results come back in completion order. A failed lookup reports
        ``None`` for that key.
        """

        key_list = list(keys)
        if not key_list:
            return []
        client = self._get_client()

        def lookup(key: str) -> tuple[str, Optional[RestoreState]]:
            try:
                response = client.head_object(Bucket=container, Key=key)
            except (BotoCoreError, ClientError) as exc:
                LOGGER.debug("Restore status lookup failed for '%s': %s", key, exc)
                return key, None
            return key, parse_restore_state(response.get("Restore"))

        with ThreadPoolExecutor(max_workers=max(int(max_workers), 1)) as pool:
            futures = [pool.submit(lookup, key) for key in key_list]
            return [future.result() for future in as_completed(futures)]

    def transition_tier(self, container: str, key: str, tier: StorageTier) -> None:
        """Rewrite an object onto itself with a new storage class."""

        if not tier.is_known:
            raise UnsupportedTierError(f"Storage class '{tier.label}' is not supported via the API")
        self._get_client().copy_object(
            Bucket=container,
            Key=key,
            CopySource={"Bucket": container, "Key": key},
            StorageClass=tier.label,
            MetadataDirective="COPY",
        )

    def request_restore(self, container: str, key: str, days: int) -> None:
        self._get_client().restore_object(
            Bucket=container,
            Key=key,
            RestoreRequest={"Days": int(days)},
        )

    def _get_client(self):
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self):
        config = Config(signature_version="s3v4")
        kwargs: dict[str, object] = {"config": config}
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url
        if self._region_name:
            kwargs["region_name"] = self._region_name
        return self._client_factory("s3", **kwargs)

    def _bucket_region(self, client, bucket_name: str) -> str | None:
        try:
            response = client.get_bucket_location(Bucket=bucket_name)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.debug("Region lookup failed for bucket '%s': %s", bucket_name, exc)
            return None
        return response.get("LocationConstraint") or DEFAULT_REGION
