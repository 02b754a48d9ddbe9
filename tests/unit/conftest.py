"""Unit test fixtures for isolated, fast test execution.

This conftest provides fixtures specifically for unit tests that:
- Run without touching the real command registry or shared ports
- Build adapters around mock session components
- Execute quickly (< 1s per test)

The root conftest provides project_root and sample_project.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from explorer_adapter.core.adapter import Adapter
from explorer_adapter.core.commands import CommandRegistry
from explorer_adapter.core.config import ConfigStore, InternalConfigSetting, ProjectConfigSetting
from explorer_adapter.core.notifications import LoggingStatusDisplay
from explorer_adapter.core.port_acquisition import PortAcquisitionManager
from explorer_adapter.core.workspace import WorkspaceFolder
from tests.infrastructure.mocks.component_mocks import FactoryRecorder


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture
def workspace_folder(tmp_path: Path) -> WorkspaceFolder:
    """Workspace folder rooted in the test's temporary directory."""
    return WorkspaceFolder(tmp_path, "project")


@pytest.fixture
def config_store(workspace_folder: WorkspaceFolder) -> ConfigStore:
    """Configuration store with file watching disabled."""
    return ConfigStore({
        InternalConfigSetting.PROJECT_PATH: str(workspace_folder.path),
        ProjectConfigSetting.WATCH_INTERVAL: 0,
    })


@pytest.fixture
def port_manager() -> PortAcquisitionManager:
    return PortAcquisitionManager()


@pytest.fixture
def status_display() -> LoggingStatusDisplay:
    return LoggingStatusDisplay("project")


@pytest.fixture
def command_registry() -> CommandRegistry:
    """Fresh registry so tests never collide on command ids."""
    return CommandRegistry()


# =============================================================================
# Adapter Fixtures
# =============================================================================

@pytest.fixture
def factory_recorder() -> FactoryRecorder:
    return FactoryRecorder()


@pytest.fixture
def make_adapter(
    workspace_folder,
    config_store,
    port_manager,
    status_display,
    command_registry,
    factory_recorder,
) -> Callable[..., Adapter]:
    """Return a builder for adapters wired to the mock factory.

    Example:
        async def test_load(make_adapter):
            adapter = make_adapter()
            await adapter.load()
            await adapter.dispose()
    """
    def _make(**overrides) -> Adapter:
        kwargs = {
            "factory_provider": factory_recorder,
            "command_registry": command_registry,
        }
        kwargs.update(overrides)
        return Adapter(
            workspace_folder,
            "project",
            "project",
            config_store,
            port_manager,
            status_display,
            **kwargs,
        )

    return _make
