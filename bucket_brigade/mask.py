from __future__ import annotations
"""Key masks used to select subsets of loaded objects."""
from dataclasses import dataclass
from functools import lru_cache
import re
from typing import Optional, Pattern

from .models import ObjectRecord, StorageTier

MASK_PREFIX = "prefix"
MASK_SUFFIX = "suffix"
MASK_CONTAINS = "contains"
MASK_REGEX = "regex"

# Cycling order used by the mask editor.
MASK_KINDS = (MASK_PREFIX, MASK_SUFFIX, MASK_CONTAINS, MASK_REGEX)
KIND_LABELS = {
    MASK_PREFIX: "Prefix",
    MASK_SUFFIX: "Suffix",
    MASK_CONTAINS: "Contains",
    MASK_REGEX: "Regex",
}


def next_kind(kind: str) -> str:
    index = MASK_KINDS.index(kind)
    return MASK_KINDS[(index + 1) % len(MASK_KINDS)]


def previous_kind(kind: str) -> str:
    index = MASK_KINDS.index(kind)
    return MASK_KINDS[(index - 1) % len(MASK_KINDS)]


@dataclass(frozen=True)
class ObjectMask:
    """Named key pattern with an optional storage tier filter."""

    name: str
    pattern: str
    kind: str = MASK_PREFIX
    case_sensitive: bool = False
    storage_tier_filter: Optional[StorageTier] = None

    def __post_init__(self) -> None:
        if self.kind not in MASK_KINDS:
            raise ValueError(f"Unknown mask kind '{self.kind}'")

    def matches(self, key: str) -> bool:
        return matches(self, key)

    def selects(self, record: ObjectRecord) -> bool:
        if not self.matches(record.key):
            return False
        if self.storage_tier_filter is None:
            return True
        return record.storage_tier == self.storage_tier_filter

    def summary(self) -> str:
        pattern = self.pattern if self.case_sensitive else f"{self.pattern} (insensitive)"
        tier = f" + {self.storage_tier_filter.label}" if self.storage_tier_filter else ""
        return f"{self.name} ({KIND_LABELS[self.kind]}: {pattern}{tier})"

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "kind": self.kind,
            "case_sensitive": self.case_sensitive,
            "storage_tier_filter": self.storage_tier_filter.label if self.storage_tier_filter else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ObjectMask":
        tier_label = data.get("storage_tier_filter")
        return cls(
            name=str(data["name"]),
            pattern=str(data["pattern"]),
            kind=str(data.get("kind", MASK_PREFIX)).lower(),
            case_sensitive=bool(data.get("case_sensitive", False)),
            storage_tier_filter=StorageTier.from_label(tier_label) if tier_label else None,
        )


def matches(mask: ObjectMask, key: str) -> bool:
    """Return whether ``key`` satisfies the mask pattern.

    Invalid regular expressions never match and never raise.
    """

    if mask.kind == MASK_REGEX:
        compiled = _compile(mask.pattern, mask.case_sensitive)
        return compiled is not None and compiled.search(key) is not None

    if mask.case_sensitive:
        subject, pattern = key, mask.pattern
    else:
        subject, pattern = key.lower(), mask.pattern.lower()
    if mask.kind == MASK_PREFIX:
        return subject.startswith(pattern)
    if mask.kind == MASK_SUFFIX:
        return subject.endswith(pattern)
    return pattern in subject


@lru_cache(maxsize=128)
def _compile(pattern: str, case_sensitive: bool) -> Pattern[str] | None:
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error:
        return None
