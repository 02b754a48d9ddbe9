"""Default runner components built by ``MainFactory``."""

from .file_watcher import PollingFileWatcher
from .process_handler import ManagedProcess, SimpleProcessHandler
from .test_locator import GlobTestLocator
from .test_manager import CommandTestManager
from .test_store import InMemoryTestStore

__all__ = [
    "CommandTestManager",
    "GlobTestLocator",
    "InMemoryTestStore",
    "ManagedProcess",
    "PollingFileWatcher",
    "SimpleProcessHandler",
]
