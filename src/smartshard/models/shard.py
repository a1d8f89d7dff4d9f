"""Shard assignment models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TestDescriptor:
    """A test selected to run, as provided by the test lister."""

    __test__ = False

    identifier: str
    """Platform-specific test identity (matches the duration index keys)."""

    ignored: bool = False
    """Whether the test is annotated as ignored."""


@dataclass(frozen=True)
class TestMethod:
    """An assignable unit of work with its estimated cost."""

    __test__ = False

    name: str
    """Test identifier."""

    time: float
    """Estimated execution time in seconds."""


@dataclass
class TestShard:
    """A group of tests executed together on one device."""

    __test__ = False

    time: float = 0.0
    """Accumulated estimated time of all test methods, in seconds."""

    test_methods: list[TestMethod] = field(default_factory=list)
    """Test methods in assignment order."""

    def add(self, method: TestMethod) -> None:
        """Append *method* and account for its time."""
        self.test_methods.append(method)
        self.time += method.time

    @property
    def test_names(self) -> list[str]:
        """Identifiers of the tests in this shard."""
        return [m.name for m in self.test_methods]
