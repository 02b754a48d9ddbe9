"""Unit tests for CommandTestManager."""

import shlex
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

from explorer_adapter.core.config import ExtensionConfig
from explorer_adapter.core.debugger import Debugger
from explorer_adapter.core.errors import DebuggerAttachError
from explorer_adapter.core.file_handler import SimpleFileHandler
from explorer_adapter.core.output_channel_log import OutputChannelLog
from explorer_adapter.core.test_events import SuiteState, TestEvent, TestState, TestSuiteEvent
from explorer_adapter.runner.process_handler import SimpleProcessHandler
from explorer_adapter.runner.test_locator import GlobTestLocator
from explorer_adapter.runner.test_manager import CommandTestManager

PYTHON = shlex.quote(sys.executable)
PASSING = "tests/test_passing.py"
FAILING = "tests/unit/test_failing.py"


@pytest.fixture
def port_client():
    client = MagicMock()
    client.request_available_port = AsyncMock(return_value=6123)
    return client


@pytest.fixture
def make_manager(sample_project, port_client):
    def _make(debugger=None, **config_overrides):
        config_values = {
            "project_path": sample_project,
            "test_files": ("**/test_*.py",),
            "test_command": PYTHON,
            "debug_command": f"{PYTHON} -c \"print('listening on {{port}}')\"",
        }
        config_values.update(config_overrides)
        config = ExtensionConfig(**config_values)
        file_handler = SimpleFileHandler(cwd=sample_project)
        output_log = OutputChannelLog("runner")
        manager = CommandTestManager(
            config=config,
            project_label="sample",
            test_locator=GlobTestLocator(file_handler, config.test_files, config.exclude_files),
            process_handler=SimpleProcessHandler(output_log=output_log),
            file_handler=file_handler,
            debugger=debugger or Debugger(debugger_namespace="sample"),
            port_acquisition_client=port_client,
        )
        manager.output_log = output_log
        return manager

    return _make


def collected_states(events):
    return [(event.test_id, event.state) for event in events if isinstance(event, TestEvent)]


class TestLoad:
    """Test building the test hierarchy."""

    @pytest.mark.asyncio
    async def test_one_test_per_file(self, make_manager, sample_project):
        manager = make_manager()

        suite = await manager.load_tests()

        assert suite.id == "root"
        assert suite.label == "sample"
        assert [test.id for test in suite.children] == [PASSING, FAILING]
        assert suite.children[0].label == "test_passing.py"
        assert suite.children[0].file == str(sample_project.resolve() / "tests" / "test_passing.py")

    @pytest.mark.asyncio
    async def test_empty_project(self, make_manager):
        manager = make_manager(test_files=("**/*.spec",))

        suite = await manager.load_tests()

        assert suite.children == []
        assert suite.test_count == 0


@pytest.mark.subprocess
class TestRun:
    """Test running test files through the configured command."""

    @pytest.mark.asyncio
    async def test_exit_status_decides_outcome(self, make_manager):
        manager = make_manager()
        suite = await manager.load_tests()
        events = []

        await manager.run_tests(suite.children, events.append, test_run_id="run-1")

        assert events[0] == TestSuiteEvent(suite="root", state=SuiteState.RUNNING, test_run_id="run-1")
        assert events[-1] == TestSuiteEvent(suite="root", state=SuiteState.COMPLETED, test_run_id="run-1")
        assert collected_states(events) == [
            (PASSING, TestState.RUNNING),
            (PASSING, TestState.PASSED),
            (FAILING, TestState.RUNNING),
            (FAILING, TestState.FAILED),
        ]
        failed = [event for event in events if isinstance(event, TestEvent) and event.state is TestState.FAILED]
        assert failed[0].message == "assertion failed: 1 != 2"
        assert all(event.test_run_id == "run-1" for event in events)

    @pytest.mark.asyncio
    async def test_output_goes_to_runner_log(self, make_manager):
        manager = make_manager()
        suite = await manager.load_tests()

        await manager.run_tests(suite.children[:1], lambda event: None, test_run_id="run-1")

        assert manager.output_log.lines == ["ok"]

    @pytest.mark.asyncio
    async def test_timeout_marks_test_errored(self, make_manager, sample_project):
        (sample_project / "tests" / "test_slow.py").write_text("import time\ntime.sleep(30)\n")
        manager = make_manager(test_timeout=0.5)
        suite = await manager.load_tests()
        slow = [test for test in suite.children if test.id == "tests/test_slow.py"]
        events = []

        await manager.run_tests(slow, events.append, test_run_id="run-1")

        assert collected_states(events)[-1] == ("tests/test_slow.py", TestState.ERRORED)
        assert "Timed out" in events[-2].message


@pytest.mark.subprocess
class TestDebug:
    """Test debug runs."""

    @pytest.mark.asyncio
    async def test_debug_session_wraps_process(self, make_manager, port_client):
        attach = MagicMock(return_value=True)
        detach = MagicMock()
        manager = make_manager(
            debugger=Debugger(debugger_namespace="sample", attach_handler=attach, detach_handler=detach)
        )
        suite = await manager.load_tests()
        events = []

        await manager.run_tests(suite.children[:1], events.append, test_run_id="run-1", debug=True)

        port_client.request_available_port.assert_awaited_once_with(manager.config.debugger_port)
        configuration = attach.call_args.args[0]
        assert configuration.port == 6123
        assert configuration.name == "sample: run-1"
        detach.assert_called_once_with(configuration)
        port_client.release_port.assert_called_once_with(6123)
        assert collected_states(events) == [(PASSING, TestState.RUNNING), (PASSING, TestState.PASSED)]
        assert manager.output_log.lines == ["listening on 6123"]

    @pytest.mark.asyncio
    async def test_declined_attach_releases_port(self, make_manager, port_client):
        manager = make_manager(
            debugger=Debugger(debugger_namespace="sample", attach_handler=MagicMock(return_value=False))
        )
        suite = await manager.load_tests()

        with pytest.raises(DebuggerAttachError):
            await manager.run_tests(suite.children, lambda event: None, test_run_id="run-1", debug=True)

        port_client.release_port.assert_called_once_with(6123)
        assert manager.process_handler.active_processes == []
