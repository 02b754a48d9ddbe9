import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional, TextIO

from explorer_adapter.core import (
    Adapter,
    ConfigStore,
    ExplorerAdapterError,
    LoggingStatusDisplay,
    PortAcquisitionManager,
    WorkspaceFolder,
)
from explorer_adapter.core.config import GeneralConfigSetting, InternalConfigSetting
from explorer_adapter.core.constants import CONFIG_FILE_NAME
from explorer_adapter.core.logging_config import configure_logging
from explorer_adapter.core.logging_utils import LOG_LEVELS, get_module_logger
from explorer_adapter.core.test_events import (
    RetireEvent,
    TestEvent,
    TestLoadFinishedEvent,
    TestLoadStartedEvent,
    TestRunFinishedEvent,
    TestRunStartedEvent,
    TestState,
)
from explorer_adapter.core.test_models import ROOT_SUITE_ID


logger = get_module_logger(__name__)

CONFIG_POLL_INTERVAL = 2.0


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="explorer-adapter",
        description="Load, run and debug a project's tests through the explorer adapter",
    )

    parser.add_argument(
        "--project-path",
        type=Path,
        default=Path.cwd(),
        help="Project root (default: current directory)"
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Settings file (default: <project>/{CONFIG_FILE_NAME})"
    )

    parser.add_argument(
        "--log-level",
        choices=list(LOG_LEVELS),
        default=None,
        help="Logging level (default: from settings, else info)"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also log to this file (rotated)"
    )

    parser.add_argument(
        "command",
        choices=["load", "run", "debug", "watch"],
        help="load: discover tests; run/debug: execute tests; watch: load and follow file changes"
    )

    parser.add_argument(
        "test_ids",
        nargs="*",
        help=f"Test ids for run/debug (default: {ROOT_SUITE_ID})"
    )

    return parser.parse_args(argv)


class EventReporter:
    """Prints adapter events and remembers whether anything failed."""

    def __init__(self, adapter: Adapter, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.load_failed = False
        self.failed_tests: list[str] = []
        self.errored_runs: list[str] = []
        self.subscriptions = [
            adapter.tests(self.on_load_event),
            adapter.test_states(self.on_run_event),
            adapter.retire(self.on_retire_event),
        ]

    @property
    def succeeded(self) -> bool:
        return not (self.load_failed or self.failed_tests or self.errored_runs)

    def _print(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def on_load_event(self, event) -> None:
        if isinstance(event, TestLoadStartedEvent):
            self._print("Loading tests...")
        elif isinstance(event, TestLoadFinishedEvent):
            if event.succeeded:
                self.load_failed = False
                count = event.suite.test_count if event.suite else 0
                self._print(f"Loaded {count} tests")
                if event.suite:
                    for test in event.suite.iter_tests():
                        self._print(f"  {test.id}")
            else:
                self.load_failed = True
                self._print(f"Load failed: {event.error_message}")

    def on_run_event(self, event) -> None:
        if isinstance(event, TestRunStartedEvent):
            self._print(f"[{event.test_run_id}] started: {', '.join(event.tests)}")
        elif isinstance(event, TestRunFinishedEvent):
            if event.error_message:
                self.errored_runs.append(event.test_run_id)
                self._print(f"[{event.test_run_id}] aborted: {event.error_message}")
            else:
                self._print(f"[{event.test_run_id}] finished")
        elif isinstance(event, TestEvent) and event.state is not TestState.RUNNING:
            if event.state in (TestState.FAILED, TestState.ERRORED):
                self.failed_tests.append(event.test_id)
            duration = f" ({event.duration:.2f}s)" if event.duration is not None else ""
            self._print(f"  {event.state.value.upper():8} {event.test_id}{duration}")
            if event.message and event.state is not TestState.PASSED:
                for line in event.message.splitlines():
                    self._print(f"      {line}")

    def on_retire_event(self, event: RetireEvent) -> None:
        retired = ", ".join(event.tests) if event.tests is not None else "all tests"
        self._print(f"Retired: {retired}")

    def dispose(self) -> None:
        for subscription in self.subscriptions:
            subscription.dispose()
        self.subscriptions = []


async def _watch(adapter: Adapter, config_store: ConfigStore) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass  # Windows doesn't support add_signal_handler

    try:
        await adapter.load()
    except ExplorerAdapterError as exc:
        logger.warning("Initial load failed: %s", exc)

    logger.info("Watching for changes (Ctrl+C to stop)")
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=CONFIG_POLL_INTERVAL)
        except asyncio.TimeoutError:
            # Settings edits trigger a reset through the store's change event
            await config_store.load_file_async()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.remove_signal_handler(sig)
        except NotImplementedError:
            pass


async def main(argv: Optional[list[str]] = None) -> int:
    """Run one adapter command; returns the process exit status."""
    args = parse_args(argv)
    project_path = args.project_path.resolve()
    config_path = args.config or project_path / CONFIG_FILE_NAME

    values = {InternalConfigSetting.PROJECT_PATH: str(project_path)}
    if args.log_level:
        values[GeneralConfigSetting.LOG_LEVEL] = args.log_level
    config_store = ConfigStore(values, config_path=config_path)
    await config_store.load_file_async()

    configure_logging(
        config_store.get(GeneralConfigSetting.LOG_LEVEL, "info"),
        force=True,
        log_file=args.log_file,
    )
    logger.debug("Project: %s (settings: %s)", project_path, config_path)

    adapter = Adapter(
        WorkspaceFolder(project_path, project_path.name),
        project_path.name,
        project_path.name,
        config_store,
        PortAcquisitionManager(),
        LoggingStatusDisplay(project_path.name),
    )
    reporter = EventReporter(adapter)

    try:
        if args.command == "load":
            await adapter.load()
        elif args.command in ("run", "debug"):
            test_ids = args.test_ids or [ROOT_SUITE_ID]
            if args.command == "run":
                await adapter.run(test_ids)
            else:
                await adapter.debug(test_ids)
        else:
            await _watch(adapter, config_store)
    except ExplorerAdapterError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    finally:
        await adapter.dispose()
        reporter.dispose()
        config_store.dispose()

    return 0 if reporter.succeeded else 1


def run(argv: Optional[list[str]] = None) -> int:
    try:
        return asyncio.run(main(argv))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(run())
