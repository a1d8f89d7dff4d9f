"""Historical test result models read from JUnit XML reports."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class JUnitTestCase:
    """A single ``<testcase>`` record from a previous run."""

    classname: str | None = None
    """Fully qualified class name (``com.foo.LoginTest`` / ``LoginUITests``)."""

    name: str | None = None
    """Test method name. iOS reports append ``()`` to it."""

    time: float | None = None
    """Elapsed time in seconds, ``None`` when the report did not record one."""

    def empty(self) -> bool:
        """Return True when the record carries no usable identity."""
        return not (self.classname and self.classname.strip() and self.name and self.name.strip())


@dataclass
class JUnitTestSuite:
    """A ``<testsuite>`` element and its test cases."""

    name: str = ""
    testcases: list[JUnitTestCase] = field(default_factory=list)


@dataclass
class JUnitTestResult:
    """Root of a parsed JUnit report."""

    testsuites: list[JUnitTestSuite] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Total number of test case records across all suites."""
        return sum(len(suite.testcases) for suite in self.testsuites)
