from __future__ import annotations
"""Saved migration templates and their persistence."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Optional
import uuid

from .mask import ObjectMask
from .models import StorageTier


class TemplateError(RuntimeError):
    """Raised when the template file cannot be read or updated."""


@dataclass
class MigrationTemplate:
    """A saved mask paired with the tier its matches should move to."""

    mask: ObjectMask
    target_tier: StorageTier
    notes: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "mask": self.mask.to_dict(),
            "target_tier": self.target_tier.label,
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MigrationTemplate":
        return cls(
            id=str(data["id"]),
            mask=ObjectMask.from_dict(data["mask"]),
            target_tier=StorageTier.from_label(data["target_tier"]),
            notes=data.get("notes"),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


class TemplateStorage:
    """JSON-backed store for :class:`MigrationTemplate` entries.

    Unlike settings, write failures are raised: losing a saved template
    silently is worse than surfacing the error.
    """

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".bucket_brigade_templates.json"
        self._path = Path(storage_path)
        self._templates: list[MigrationTemplate] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[MigrationTemplate]:
        if self._templates is None:
            self._templates = self._read()
        return list(self._templates)

    def add(self, template: MigrationTemplate) -> None:
        templates = self.load()
        templates.append(template)
        self._write(templates)

    def remove(self, template_id: str) -> MigrationTemplate:
        templates = self.load()
        for index, template in enumerate(templates):
            if template.id == template_id:
                removed = templates.pop(index)
                self._write(templates)
                return removed
        raise TemplateError(f"Template '{template_id}' does not exist")

    def _read(self) -> list[MigrationTemplate]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise TemplateError(f"failed to read template file {self._path}: {exc}") from exc

        templates: list[MigrationTemplate] = []
        for entry in data.get("templates", []) if isinstance(data, dict) else []:
            try:
                templates.append(MigrationTemplate.from_dict(entry))
            except (KeyError, TypeError, ValueError):
                continue
        return templates

    def _write(self, templates: list[MigrationTemplate]) -> None:
        payload = {"templates": [template.to_dict() for template in templates]}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise TemplateError(f"failed to save templates to {self._path}: {exc}") from exc
        self._templates = list(templates)
