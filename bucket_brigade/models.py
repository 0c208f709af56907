from __future__ import annotations
"""Data models representing containers, objects and their lifecycle state."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

RESTORE_AVAILABLE = "available"
RESTORE_IN_PROGRESS = "in_progress"
RESTORE_EXPIRED = "expired"


@dataclass(frozen=True)
class StorageTier:
    """A storage class, identified by the label S3 uses for it.

    Labels outside :data:`KNOWN_TIER_LABELS` are kept verbatim so tiers added
    by the remote store later still round-trip.
    """

    label: str

    @classmethod
    def from_label(cls, label: str | None) -> "StorageTier":
        if not label:
            return STANDARD
        return cls(label)

    @classmethod
    def from_input(cls, text: str) -> "StorageTier":
        """Parse a tier typed by a user, e.g. ``standard_ia``."""

        return cls.from_label(text.strip().upper())

    @property
    def is_known(self) -> bool:
        return self.label in KNOWN_TIER_LABELS

    @property
    def is_archive(self) -> bool:
        return self.label in ARCHIVE_TIER_LABELS

    def __str__(self) -> str:
        return self.label


STANDARD = StorageTier("STANDARD")
INTELLIGENT_TIERING = StorageTier("INTELLIGENT_TIERING")
STANDARD_IA = StorageTier("STANDARD_IA")
ONEZONE_IA = StorageTier("ONEZONE_IA")
GLACIER_IR = StorageTier("GLACIER_IR")
GLACIER = StorageTier("GLACIER")
DEEP_ARCHIVE = StorageTier("DEEP_ARCHIVE")
REDUCED_REDUNDANCY = StorageTier("REDUCED_REDUNDANCY")

SELECTABLE_TIERS = (
    STANDARD,
    INTELLIGENT_TIERING,
    STANDARD_IA,
    ONEZONE_IA,
    GLACIER_IR,
    GLACIER,
    DEEP_ARCHIVE,
)
KNOWN_TIER_LABELS = frozenset(tier.label for tier in SELECTABLE_TIERS) | {REDUCED_REDUNDANCY.label}
ARCHIVE_TIER_LABELS = frozenset({GLACIER.label, DEEP_ARCHIVE.label})


@dataclass(frozen=True)
class RestoreState:
    """Restore status of an archived object as reported by the store."""

    status: str
    expiry: Optional[datetime] = None

    @classmethod
    def available(cls) -> "RestoreState":
        return cls(RESTORE_AVAILABLE)

    @classmethod
    def in_progress(cls, expiry: datetime | None = None) -> "RestoreState":
        return cls(RESTORE_IN_PROGRESS, expiry)

    @classmethod
    def expired(cls) -> "RestoreState":
        return cls(RESTORE_EXPIRED)

    @property
    def is_available(self) -> bool:
        return self.status == RESTORE_AVAILABLE

    @property
    def is_in_progress(self) -> bool:
        return self.status == RESTORE_IN_PROGRESS

    @property
    def is_expired(self) -> bool:
        return self.status == RESTORE_EXPIRED


@dataclass
class ObjectRecord:
    """A single object loaded into the catalog.

    ``unconfirmed`` marks a local patch that has not been confirmed by the
    store yet; the next authoritative listing replaces the record.
    """

    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    storage_tier: StorageTier = STANDARD
    restore_state: Optional[RestoreState] = None
    unconfirmed: bool = False


@dataclass
class ObjectPage:
    """One page of a paginated object listing."""

    records: list[ObjectRecord] = field(default_factory=list)
    next_token: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.next_token is not None


@dataclass
class ContainerInfo:
    """A bucket and the region it lives in."""

    name: str
    region: Optional[str] = None
    creation_date: Optional[datetime] = None


@dataclass
class TrackedRestoreRequest:
    """A restore request issued from this client."""

    container: str
    key: str
    requested_at: datetime
    days: int
    current_status: Optional[RestoreState] = None
