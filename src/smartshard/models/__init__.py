"""Data models for smartshard."""

from smartshard.models.junit import JUnitTestCase, JUnitTestResult, JUnitTestSuite
from smartshard.models.shard import TestDescriptor, TestMethod, TestShard

__all__ = [
    "JUnitTestCase",
    "JUnitTestResult",
    "JUnitTestSuite",
    "TestDescriptor",
    "TestMethod",
    "TestShard",
]
