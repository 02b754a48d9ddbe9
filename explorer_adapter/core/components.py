"""
Narrow contracts of the subsystems a component factory builds.

The session only relies on these methods plus ``dispose()``; everything
else about the implementations is private to them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

from .test_events import TestResultEvent
from .test_models import TestInfo, TestSuiteInfo

ResultEmitter = Callable[[TestResultEvent], None]


@dataclass
class ProcessResult:
    command: List[str]
    returncode: Optional[int]
    output: str = ""
    duration: float = 0.0
    timed_out: bool = False
    terminated: bool = False

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0 and not self.timed_out and not self.terminated


@runtime_checkable
class ProcessHandler(Protocol):

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        ...

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class TestLocator(Protocol):

    async def refresh(self) -> List[Path]:
        ...

    async def find_test_files(self) -> List[Path]:
        ...

    def get_test_files(self) -> List[Path]:
        ...

    def is_test_file(self, path: Union[str, Path]) -> bool:
        ...

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class TestStore(Protocol):

    def store_tests(self, suite: TestSuiteInfo) -> None:
        ...

    def get_tests(self) -> Optional[TestSuiteInfo]:
        ...

    def get_test(self, test_id: str) -> Optional[Union[TestSuiteInfo, TestInfo]]:
        ...

    def get_tests_by_file(self, path: Union[str, Path]) -> List[TestInfo]:
        ...

    def clear(self) -> None:
        ...

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class TestManager(Protocol):

    async def load_tests(self) -> TestSuiteInfo:
        ...

    async def run_tests(
        self,
        tests: Sequence[TestInfo],
        emit: ResultEmitter,
        *,
        test_run_id: str,
        debug: bool = False,
    ) -> None:
        ...

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


@runtime_checkable
class FileWatcher(Protocol):

    def dispose(self) -> Union[None, Awaitable[None]]:
        ...


__all__ = [
    "FileWatcher",
    "ProcessHandler",
    "ProcessResult",
    "ResultEmitter",
    "TestLocator",
    "TestManager",
    "TestStore",
]
