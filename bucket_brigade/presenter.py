from __future__ import annotations
"""View-agnostic presenter that runs controller operations off the UI thread."""
from dataclasses import replace
import logging
import threading
from typing import Callable

from botocore.exceptions import BotoCoreError, ClientError

from .controller import BrigadeController
from .migration import OperationReport
from .models import ContainerInfo, StorageTier
from .settings import AppSettings, SettingsStorage

DispatchFn = Callable[[Callable[[], None]], None]
SpawnFn = Callable[[Callable[[], None]], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc)


def _spawn_thread(task: Callable[[], None]) -> None:
    threading.Thread(target=task, daemon=True).start()


class BrigadePresenter:
    """Runs blocking operations in the background and reports via callbacks.

    ``dispatch`` hands results back to the UI thread; the controller state is
    only touched by one background task at a time.
    """

    def __init__(
        self,
        *,
        controller: BrigadeController | None = None,
        settings_storage: SettingsStorage | None = None,
        dispatch: DispatchFn | None = None,
        spawn: SpawnFn | None = None,
    ) -> None:
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = self._settings_storage.load()
        self._controller = controller or BrigadeController(settings=self._settings)
        self._dispatch = dispatch or (lambda func: func())
        self._spawn = spawn or _spawn_thread
        self._lock = threading.Lock()

    @property
    def controller(self) -> BrigadeController:
        return self._controller

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    def status_entries(self) -> list[str]:
        return self._controller.status.entries()

    def update_last_container(self, container: str) -> None:
        self._settings = replace(self._settings, last_container=container or "")
        self._settings_storage.save(self._settings)

    def connect(
        self,
        *,
        on_success: Callable[[list[ContainerInfo]], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Connecting")
        self._run(
            "connect",
            self._controller.connect,
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def select_container(
        self,
        name: str,
        *,
        on_success: Callable[[bool], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Selecting container '%s'", name)

        def operation() -> bool:
            loaded = self._controller.select_container(name)
            self.update_last_container(name)
            return loaded

        self._run("select container", operation, on_success=on_success, on_error=on_error, on_done=on_done)

    def load_more(
        self,
        *,
        on_success: Callable[[bool], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        self._run(
            "load more",
            self._controller.pagination.maybe_load_more,
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def transition(
        self,
        target_tier: StorageTier,
        *,
        on_success: Callable[[OperationReport], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Transition to %s requested", target_tier.label)
        self._run(
            "transition",
            lambda: self._controller.transition(target_tier),
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def restore(
        self,
        days: int | None = None,
        *,
        on_success: Callable[[OperationReport], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Restore requested")
        self._run(
            "restore",
            lambda: self._controller.restore(days),
            on_success=on_success,
            on_error=on_error,
            on_done=on_done,
        )

    def _run(
        self,
        label: str,
        operation: Callable[[], object],
        *,
        on_success: Callable,
        on_error: ErrorFn,
        on_done: DoneFn | None,
    ) -> None:
        def task() -> None:
            try:
                with self._lock:
                    result = operation()
            except (BotoCoreError, ClientError) as exc:
                LOGGER.exception("%s failed", label.capitalize())
                message = _format_error(exc)
                self._dispatch(lambda: on_error(message))
            except Exception as exc:
                LOGGER.exception("Unexpected %s error", label)
                message = _format_error(exc)
                self._dispatch(lambda: on_error(message))
            else:
                self._dispatch(lambda: on_success(result))
            finally:
                if on_done:
                    self._dispatch(on_done)

        self._spawn(task)
