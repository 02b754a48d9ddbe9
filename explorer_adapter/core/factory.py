"""
Component factory contract and the default factory.

A factory receives the adapter's long-lived collaborators bundled in a
``FactoryContext`` and builds one generation of session components. The
adapter registers every product for disposal in the order it asked for
them, so a factory must hand out fresh objects per instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, Union

from .commands import Commands
from .components import FileWatcher, ProcessHandler, TestLocator, TestManager, TestStore
from .config import ExtensionConfig
from .debugger import Debugger
from .event_emitter import EventEmitter
from .file_handler import FileHandler
from .logging_utils import StructuredLogger
from .notifications import NotificationHandler
from .output_channel_log import OutputChannelLog
from .port_acquisition import PortAcquisitionClient
from .test_events import RetireEvent, TestLoadEvent
from .workspace import WorkspaceFolder
from ..runner.file_watcher import PollingFileWatcher
from ..runner.process_handler import SimpleProcessHandler
from ..runner.test_locator import GlobTestLocator
from ..runner.test_manager import CommandTestManager
from ..runner.test_store import InMemoryTestStore


@dataclass(frozen=True)
class FactoryContext:
    workspace_folder: WorkspaceFolder
    project_short_name: str
    project_namespace: str
    config: ExtensionConfig
    debugger: Debugger
    port_acquisition_client: PortAcquisitionClient
    file_handler: FileHandler
    project_commands: Commands
    notification_handler: NotificationHandler
    test_load_emitter: EventEmitter[TestLoadEvent]
    test_run_emitter: EventEmitter
    retire_emitter: EventEmitter[RetireEvent]
    test_server_log: OutputChannelLog
    create_logger: Callable[[str], StructuredLogger]
    reload_tests: Callable[[], Awaitable[None]]
    generation: int = 0


class ComponentFactory(Protocol):

    def get_process_handler(self) -> ProcessHandler:
        ...

    def get_test_locator(self) -> TestLocator:
        ...

    def get_test_store(self) -> TestStore:
        ...

    def create_test_manager(self) -> TestManager:
        ...

    def create_file_watcher(self) -> FileWatcher:
        ...

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


FactoryProvider = Callable[[FactoryContext], ComponentFactory]


class MainFactory:
    """Builds the default command-line runner components."""

    def __init__(self, context: FactoryContext) -> None:
        self.context = context
        self.logger = context.create_logger("MainFactory")
        self._process_handler: Optional[ProcessHandler] = None
        self._test_locator: Optional[TestLocator] = None
        self._test_store: Optional[TestStore] = None

    def get_process_handler(self) -> ProcessHandler:
        if self._process_handler is None:
            self._process_handler = SimpleProcessHandler(
                self.context.create_logger("SimpleProcessHandler"),
                output_log=self.context.test_server_log,
            )
        return self._process_handler

    def get_test_locator(self) -> TestLocator:
        if self._test_locator is None:
            config = self.context.config
            self._test_locator = GlobTestLocator(
                self.context.file_handler,
                config.test_files,
                config.exclude_files,
                self.context.create_logger("GlobTestLocator"),
            )
        return self._test_locator

    def get_test_store(self) -> TestStore:
        if self._test_store is None:
            self._test_store = InMemoryTestStore(
                self.context.file_handler,
                self.context.create_logger("TestStore"),
            )
        return self._test_store

    def create_test_manager(self) -> TestManager:
        return CommandTestManager(
            config=self.context.config,
            project_label=self.context.project_short_name,
            test_locator=self.get_test_locator(),
            process_handler=self.get_process_handler(),
            file_handler=self.context.file_handler,
            debugger=self.context.debugger,
            port_acquisition_client=self.context.port_acquisition_client,
            logger=self.context.create_logger("CommandTestManager"),
        )

    def create_file_watcher(self) -> FileWatcher:
        watcher = PollingFileWatcher(
            test_locator=self.get_test_locator(),
            test_store=self.get_test_store(),
            retire_emitter=self.context.retire_emitter,
            reload_tests=self.context.reload_tests if self.context.config.reload_on_changed_files else None,
            interval=self.context.config.watch_interval,
            logger=self.context.create_logger("PollingFileWatcher"),
        )
        watcher.start()
        return watcher

    def dispose(self) -> None:
        self.logger.debug("Disposing factory for generation %d", self.context.generation)
        self._process_handler = None
        self._test_locator = None
        self._test_store = None


__all__ = ["ComponentFactory", "FactoryContext", "FactoryProvider", "MainFactory"]
