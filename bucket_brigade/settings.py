from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass
import json
import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)


@dataclass
class AppSettings:
    """Tunable policy values for loading and migrating objects."""

    page_size: int = 200
    look_ahead: int = 50
    sparse_mask_threshold: int = 100
    refresh_interval: float = 30.0
    status_limit: int = 20
    status_fanout: int = 10
    restore_days: int = 7
    refresh_restore_on_load: bool = True
    count_before_load: bool = True
    endpoint_url: str = ""
    region: str = ""
    last_container: str = ""


_POSITIVE_INTS = ("page_size", "look_ahead", "sparse_mask_threshold", "status_limit", "status_fanout", "restore_days")
_FLAGS = ("refresh_restore_on_load", "count_before_load")
_STRINGS = ("endpoint_url", "region", "last_container")


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".bucket_brigade_settings.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            LOGGER.warning("Ignoring unreadable settings file %s", self._path)
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()

        defaults = AppSettings()
        values: dict[str, object] = {}
        for name in _POSITIVE_INTS:
            values[name] = _positive_int(data.get(name), getattr(defaults, name))
        for name in _FLAGS:
            raw = data.get(name)
            values[name] = raw if isinstance(raw, bool) else getattr(defaults, name)
        for name in _STRINGS:
            raw = data.get(name)
            values[name] = raw if isinstance(raw, str) else getattr(defaults, name)
        try:
            interval = float(data.get("refresh_interval", defaults.refresh_interval))
        except (TypeError, ValueError):
            interval = defaults.refresh_interval
        values["refresh_interval"] = interval if interval > 0 else defaults.refresh_interval
        return AppSettings(**values)

    def save(self, settings: AppSettings) -> None:
        payload = asdict(settings)
        for name in _POSITIVE_INTS:
            payload[name] = max(int(payload[name]), 1)
        payload["refresh_interval"] = max(float(payload["refresh_interval"]), 1.0)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            LOGGER.warning("Could not write settings to %s", self._path)
            return


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default
