from .adapter import Adapter
from .commands import CommandRegistry, Commands, ProjectCommand, get_command_registry
from .config import ConfigStore, ExtensionConfig
from .disposable import Disposable, DisposableCallback, Disposer
from .errors import (
    AdapterDisposedError,
    ComponentConstructionError,
    ConfigurationError,
    ExplorerAdapterError,
    InvalidTestIdsError,
    SessionSupersededError,
)
from .event_emitter import Event, EventEmitter
from .factory import ComponentFactory, FactoryContext, MainFactory
from .notifications import LoggingStatusDisplay, NotificationHandler
from .port_acquisition import PortAcquisitionClient, PortAcquisitionManager
from .test_explorer import TestExplorer, UnavailableTestExplorer
from .workspace import WorkspaceFolder

__all__ = [
    'Adapter',
    'AdapterDisposedError',
    'CommandRegistry',
    'Commands',
    'ComponentConstructionError',
    'ComponentFactory',
    'ConfigStore',
    'ConfigurationError',
    'Disposable',
    'DisposableCallback',
    'Disposer',
    'Event',
    'EventEmitter',
    'ExplorerAdapterError',
    'ExtensionConfig',
    'FactoryContext',
    'InvalidTestIdsError',
    'LoggingStatusDisplay',
    'MainFactory',
    'NotificationHandler',
    'PortAcquisitionClient',
    'PortAcquisitionManager',
    'ProjectCommand',
    'SessionSupersededError',
    'TestExplorer',
    'UnavailableTestExplorer',
    'WorkspaceFolder',
    'get_command_registry',
]
