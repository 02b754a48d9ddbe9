"""Test hierarchy published by the load channel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

ROOT_SUITE_ID = "root"


@dataclass
class TestInfo:
    id: str
    label: str
    file: Optional[str] = None
    line: Optional[int] = None
    description: Optional[str] = None
    type: str = field(default="test", init=False)

    __test__ = False  # not a pytest test class


@dataclass
class TestSuiteInfo:
    id: str
    label: str
    file: Optional[str] = None
    children: List[Union["TestSuiteInfo", TestInfo]] = field(default_factory=list)
    type: str = field(default="suite", init=False)

    __test__ = False

    def iter_tests(self) -> Iterator[TestInfo]:
        """Yield every leaf test below this suite, depth first."""
        for child in self.children:
            if isinstance(child, TestSuiteInfo):
                yield from child.iter_tests()
            else:
                yield child

    def iter_nodes(self) -> Iterator[Union["TestSuiteInfo", TestInfo]]:
        yield self
        for child in self.children:
            if isinstance(child, TestSuiteInfo):
                yield from child.iter_nodes()
            else:
                yield child

    @property
    def test_count(self) -> int:
        return sum(1 for _ in self.iter_tests())


__all__ = ["ROOT_SUITE_ID", "TestInfo", "TestSuiteInfo"]
