"""
Test explorer adapter for one project.

The adapter lives as long as its host keeps the project open. It owns the
long-lived collaborators (log channels, port client, debugger, commands,
notifications) and the three event channels the host subscribes to. The
test components themselves are rebuilt on every reset and wrapped in a new
explorer session; the channels stay the same objects throughout, so a host
subscription made once keeps receiving events across resets.

Resources are tracked in two disposers: ``disposables`` for the adapter's
lifetime and ``test_explorer_disposables`` for the current session only.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, Set

from .asyncio_utils import create_logged_task, has_running_loop
from .commands import CommandRegistry, Commands, ProjectCommand
from .components import FileWatcher, ProcessHandler, TestLocator, TestManager, TestStore
from .config import ConfigStore, ExtensionConfig, GeneralConfigSetting, InternalConfigSetting, PROJECT_SETTINGS
from .constants import EXTENSION_CONFIG_PREFIX, OUTPUT_CHANNEL_NAME, SERVER_OUTPUT_CHANNEL_NAME
from .debugger import AttachHandler, Debugger, DetachHandler
from .disposable import Disposer
from .errors import AdapterDisposedError, ComponentConstructionError, ExplorerAdapterError, SessionSupersededError
from .event_emitter import Event, EventEmitter
from .factory import ComponentFactory, FactoryContext, FactoryProvider, MainFactory
from .file_handler import SimpleFileHandler
from .logging_utils import PROJECT_LOGGER_NAMESPACE, StructuredLogger, coerce_log_level, get_project_logger
from .notifications import MessageType, NotificationHandler, StatusDisplay
from .output_channel_log import OutputChannelLog, RevealHandler
from .port_acquisition import PortAcquisitionClient, PortAcquisitionManager
from .test_events import RetireEvent, TestLoadEvent
from .test_explorer import ExplorerSession, TestExplorer, UnavailableTestExplorer
from .test_models import TestSuiteInfo
from .workspace import WorkspaceFolder

RESET_SETTINGS = PROJECT_SETTINGS | {InternalConfigSetting.PROJECT_PATH.value}


def _initial_log_level(config_store: ConfigStore) -> int:
    try:
        return coerce_log_level(config_store.get(GeneralConfigSetting.LOG_LEVEL))
    except ValueError:
        return logging.INFO


class Adapter:
    """Orchestrates load, run and debug for one project."""

    def __init__(
        self,
        workspace_folder: WorkspaceFolder,
        project_short_name: str,
        project_namespace: str,
        config_store: ConfigStore,
        port_acquisition_manager: PortAcquisitionManager,
        project_status_display: StatusDisplay,
        *,
        factory_provider: FactoryProvider = MainFactory,
        command_registry: Optional[CommandRegistry] = None,
        debug_attach_handler: Optional[AttachHandler] = None,
        debug_detach_handler: Optional[DetachHandler] = None,
        reveal_log_handler: Optional[RevealHandler] = None,
    ) -> None:
        self.workspace_folder = workspace_folder
        self.project_short_name = project_short_name
        self.project_namespace = project_namespace
        self.config_store = config_store
        self.factory_provider = factory_provider

        self.log_level = _initial_log_level(config_store)
        self.logger = self.create_logger("Adapter")
        self.disposables = Disposer(self.logger, name="adapter resources")
        self.test_explorer_disposables = Disposer(self.logger, name="session resources")

        self._lock = asyncio.Lock()
        self._disposed = False
        self._generation = 0
        self._config: Optional[ExtensionConfig] = None
        self._pending: Set[asyncio.Task] = set()
        self._test_explorer: Optional[ExplorerSession] = None

        self.output_channel_log = OutputChannelLog(
            f"{OUTPUT_CHANNEL_NAME} ({project_namespace})",
            reveal_handler=reveal_log_handler,
        )
        project_logger = logging.getLogger(f"{PROJECT_LOGGER_NAMESPACE}.{project_namespace}")
        project_logger.setLevel(self.log_level)
        self.output_channel_log.attach_to(project_logger, self.log_level)
        self.disposables.register(self.output_channel_log)

        self.test_server_log = OutputChannelLog(
            f"{SERVER_OUTPUT_CHANNEL_NAME} ({project_namespace})",
            reveal_handler=reveal_log_handler,
        )
        self.disposables.register(self.test_server_log)

        self.port_acquisition_client = PortAcquisitionClient(
            port_acquisition_manager,
            self.create_logger("PortAcquisitionClient"),
            owner=project_namespace,
        )
        self.disposables.register(self.port_acquisition_client)

        self.debugger = Debugger(
            self.create_logger("Debugger"),
            debugger_namespace=project_short_name,
            attach_handler=debug_attach_handler,
            detach_handler=debug_detach_handler,
        )
        self.disposables.register(self.debugger)

        self.project_commands = Commands(
            self.create_logger("Commands"),
            f"{EXTENSION_CONFIG_PREFIX}.{project_namespace}",
            registry=command_registry,
        )
        self.project_commands.register(ProjectCommand.SHOW_LOG, self.output_channel_log.show)
        self.project_commands.register(ProjectCommand.RESET, self.reset)
        self.disposables.register(self.project_commands)

        self.notification_handler = NotificationHandler(
            project_status_display,
            self.create_logger("NotificationHandler"),
            show_log_command=self.project_commands.get_command_name(ProjectCommand.SHOW_LOG),
        )
        self.disposables.register(self.notification_handler)

        self.test_load_emitter: EventEmitter[TestLoadEvent] = EventEmitter("test-load", self.logger)
        self.test_run_emitter: EventEmitter[Any] = EventEmitter("test-run", self.logger)
        self.retire_emitter: EventEmitter[RetireEvent] = EventEmitter("retire", self.logger)
        self.disposables.register(self.test_load_emitter, self.test_run_emitter, self.retire_emitter)

        self.disposables.register(config_store.on_did_change(self._on_config_change))

        try:
            project_path = self._read_config().project_path
        except ExplorerAdapterError:
            project_path = workspace_folder.path
        self.file_handler = SimpleFileHandler(self.create_logger("FileHandler"), cwd=project_path)

        self._test_explorer = self._create_test_explorer()

    # ------------------------------------------------------------------
    # Host-facing events and state

    @property
    def tests(self) -> Event[TestLoadEvent]:
        return self.test_load_emitter.event

    @property
    def test_states(self) -> Event[Any]:
        return self.test_run_emitter.event

    @property
    def retire(self) -> Event[RetireEvent]:
        return self.retire_emitter.event

    @property
    def test_explorer(self) -> ExplorerSession:
        return self._test_explorer

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def config(self) -> Optional[ExtensionConfig]:
        """Configuration of the current session (None if it was invalid)."""
        return self._config

    @property
    def loaded_tests(self) -> Optional[TestSuiteInfo]:
        return self._test_explorer.tests

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def create_logger(self, component: str) -> StructuredLogger:
        return get_project_logger(self.project_namespace, component)

    # ------------------------------------------------------------------
    # Operations

    async def load(self) -> None:
        session = self._current_session("load")
        self.logger.debug("Loading tests")
        await session.load_tests()

    async def run(self, test_ids: Sequence[str]) -> None:
        session = self._current_session("run")
        self.logger.debug("Running tests: %s", test_ids)
        await session.run_tests(test_ids)

    async def debug(self, test_ids: Sequence[str]) -> None:
        session = self._current_session("debug")
        self.logger.debug("Debugging tests: %s", test_ids)
        await session.run_tests(test_ids, debug=True)

    async def cancel(self) -> None:
        await self.reset()

    async def reset(self) -> None:
        """Replace the current session with a freshly built one and reload."""
        if self._disposed:
            raise AdapterDisposedError("reset")
        async with self._lock:
            if self._disposed:
                raise AdapterDisposedError("reset")
            self.logger.info("Resetting adapter")
            await self._dispose_test_explorer()
            if self._disposed:
                # Final disposal began while the old session was torn down
                raise AdapterDisposedError("reset")
            self._test_explorer = self._create_test_explorer()
            self._start_background_load(self._test_explorer)

    async def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for emitter in (self.test_load_emitter, self.test_run_emitter, self.retire_emitter):
            emitter.mute()
        async with self._lock:
            self.logger.debug("Disposing adapter")
            await self._dispose_test_explorer(notify_pending_runs=False)

            pending = [task for task in self._pending if task is not asyncio.current_task()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            await self.disposables.dispose_all()

    # ------------------------------------------------------------------
    # Session lifecycle

    def _current_session(self, operation: str) -> ExplorerSession:
        if self._disposed:
            raise AdapterDisposedError(operation)
        return self._test_explorer

    def _read_config(self) -> ExtensionConfig:
        return ExtensionConfig.from_store(self.config_store, self.workspace_folder.path)

    def _create_test_explorer(self) -> ExplorerSession:
        self._generation += 1
        generation = self._generation
        self.logger.debug("Creating test explorer (generation %d)", generation)

        try:
            config = self._read_config()
        except ExplorerAdapterError as exc:
            self._config = None
            return self._create_unavailable_test_explorer(generation, exc)

        self._config = config
        self.logger.debug("Using configuration: %s", json.dumps(config.to_dict(), indent=2, default=str))
        self.test_server_log.enabled = config.runner_log_enabled

        context = FactoryContext(
            workspace_folder=self.workspace_folder,
            project_short_name=self.project_short_name,
            project_namespace=self.project_namespace,
            config=config,
            debugger=self.debugger,
            port_acquisition_client=self.port_acquisition_client,
            file_handler=self.file_handler,
            project_commands=self.project_commands,
            notification_handler=self.notification_handler,
            test_load_emitter=self.test_load_emitter,
            test_run_emitter=self.test_run_emitter,
            retire_emitter=self.retire_emitter,
            test_server_log=self.test_server_log,
            create_logger=self.create_logger,
            reload_tests=self._reload_tests_for(generation),
            generation=generation,
        )

        try:
            factory: ComponentFactory = self.factory_provider(context)
            self.test_explorer_disposables.register(factory)

            process_handler: ProcessHandler = factory.get_process_handler()
            self.test_explorer_disposables.register(process_handler)

            test_locator: TestLocator = factory.get_test_locator()
            self.test_explorer_disposables.register(test_locator)

            test_store: TestStore = factory.get_test_store()
            self.test_explorer_disposables.register(test_store)

            test_manager: TestManager = factory.create_test_manager()
            self.test_explorer_disposables.register(test_manager)

            file_watcher: FileWatcher = factory.create_file_watcher()
            self.test_explorer_disposables.register(file_watcher)
        except Exception as exc:
            return self._create_unavailable_test_explorer(generation, exc)

        return TestExplorer(
            generation=generation,
            test_manager=test_manager,
            test_locator=test_locator,
            test_store=test_store,
            process_handler=process_handler,
            debugger=self.debugger,
            notification_handler=self.notification_handler,
            test_load_emitter=self.test_load_emitter,
            test_run_emitter=self.test_run_emitter,
            logger=self.create_logger("TestExplorer"),
        )

    def _create_unavailable_test_explorer(self, generation: int, exc: Exception) -> UnavailableTestExplorer:
        if isinstance(exc, ComponentConstructionError):
            error = exc
        else:
            error = ComponentConstructionError(str(exc) or type(exc).__name__)
            error.__cause__ = exc
        self.logger.error("Failed to create test explorer: %s", exc, exc_info=exc)
        self.notification_handler.notify(MessageType.ERROR, f"Failed to create test explorer: {error}")
        return UnavailableTestExplorer(
            generation=generation,
            error=error,
            test_load_emitter=self.test_load_emitter,
            logger=self.create_logger("TestExplorer"),
        )

    async def _dispose_test_explorer(self, *, notify_pending_runs: bool = True) -> None:
        session = self._test_explorer
        if session is not None and not session.is_disposed:
            self.logger.debug("Disposing test explorer (generation %d)", session.generation)
            try:
                await session.dispose(notify_pending_runs=notify_pending_runs)
            except Exception as exc:
                self.logger.error("Failed to dispose test explorer: %s", exc, exc_info=True)
        failures = await self.test_explorer_disposables.dispose_all()
        if failures:
            self.logger.warning("%d session resources failed to dispose", failures)

    def _reload_tests_for(self, generation: int) -> Callable[[], Awaitable[None]]:
        async def reload_tests() -> None:
            session = self._test_explorer
            if self._disposed or session is None or session.generation != generation:
                return
            try:
                await session.load_tests()
            except SessionSupersededError:
                self.logger.debug("Reload of generation %d was superseded", generation)

        return reload_tests

    def _start_background_load(self, session: ExplorerSession) -> None:
        task = session.start_load()

        def _done(done: asyncio.Future) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                # Already reported on the load channel
                self.logger.debug("Background load of generation %d failed: %s", session.generation, exc)

        task.add_done_callback(_done)

    # ------------------------------------------------------------------
    # Configuration changes

    def _on_config_change(self, changed: frozenset) -> None:
        relevant = changed & RESET_SETTINGS
        if not relevant or self._disposed:
            return
        if not has_running_loop():
            self.logger.warning("Configuration changed without a running loop; reset to apply it")
            return
        self.logger.info("Configuration changed (%s), resetting", ", ".join(sorted(relevant)))
        create_logged_task(
            self._reset_after_config_change(),
            logger=self.logger,
            context="config change reset",
            pending=self._pending,
        )

    async def _reset_after_config_change(self) -> None:
        try:
            await self.reset()
        except AdapterDisposedError:
            self.logger.debug("Adapter disposed before configuration reset")


__all__ = ["Adapter"]
