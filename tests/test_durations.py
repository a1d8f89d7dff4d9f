"""Tests for smartshard.sharding.durations."""

from __future__ import annotations

import pytest

from smartshard.models.junit import JUnitTestCase, JUnitTestResult, JUnitTestSuite
from smartshard.models.shard import TestDescriptor
from smartshard.sharding.durations import (
    DEFAULT_TEST_TIME_SEC,
    Platform,
    ShardingError,
    android_key,
    create_duration_index,
    identity_key,
    ios_key,
    optional_limit,
    resolve_test_time,
)


def _result(*cases: JUnitTestCase) -> JUnitTestResult:
    return JUnitTestResult(testsuites=[JUnitTestSuite(name="suite", testcases=list(cases))])


class TestKeyFormats:
    def test_android_key(self) -> None:
        assert android_key("com.foo.LoginTest", "testLogin") == "class com.foo.LoginTest#testLogin"

    def test_ios_key_strips_parentheses(self) -> None:
        assert ios_key("LoginUITests", "testBasicSelection()") == "LoginUITests/testBasicSelection"

    def test_ios_key_without_parentheses(self) -> None:
        assert ios_key("LoginUITests", "testBasicSelection") == "LoginUITests/testBasicSelection"

    def test_ios_key_strips_parameter_suffix(self) -> None:
        assert ios_key("A", "testWith(arg:)") == "A/testWith"

    def test_identity_key_dispatches_on_platform(self) -> None:
        assert identity_key("A", "b", Platform.ANDROID) == "class A#b"
        assert identity_key("A", "b()", Platform.IOS) == "A/b"


class TestPlatformParse:
    def test_parses_case_insensitive(self) -> None:
        assert Platform.parse("iOS") is Platform.IOS
        assert Platform.parse(" android ") is Platform.ANDROID

    def test_passes_enum_through(self) -> None:
        assert Platform.parse(Platform.IOS) is Platform.IOS

    def test_unknown_platform_raises(self) -> None:
        with pytest.raises(ShardingError, match="Unknown platform"):
            Platform.parse("windows")


class TestCreateDurationIndex:
    def test_android_index(self) -> None:
        result = _result(
            JUnitTestCase(classname="com.foo.A", name="test1", time=1.5),
            JUnitTestCase(classname="com.foo.B", name="test2", time=30.0),
        )
        assert create_duration_index(result, Platform.ANDROID) == {
            "class com.foo.A#test1": 1.5,
            "class com.foo.B#test2": 30.0,
        }

    def test_ios_index(self) -> None:
        result = _result(JUnitTestCase(classname="UITests", name="testA()", time=12.0))
        assert create_duration_index(result, Platform.IOS) == {"UITests/testA": 12.0}

    def test_skips_missing_time(self) -> None:
        result = _result(JUnitTestCase(classname="A", name="b", time=None))
        assert create_duration_index(result, Platform.ANDROID) == {}

    def test_skips_negative_time(self) -> None:
        result = _result(JUnitTestCase(classname="A", name="b", time=-1.0))
        assert create_duration_index(result, Platform.ANDROID) == {}

    def test_keeps_zero_time(self) -> None:
        result = _result(JUnitTestCase(classname="A", name="b", time=0.0))
        assert create_duration_index(result, Platform.ANDROID) == {"class A#b": 0.0}

    def test_skips_empty_records(self) -> None:
        result = _result(
            JUnitTestCase(classname=None, name="b", time=1.0),
            JUnitTestCase(classname="A", name="", time=1.0),
            JUnitTestCase(classname="  ", name="b", time=1.0),
        )
        assert create_duration_index(result, Platform.ANDROID) == {}

    def test_last_record_wins(self) -> None:
        result = JUnitTestResult(
            testsuites=[
                JUnitTestSuite(testcases=[JUnitTestCase(classname="A", name="b", time=5.0)]),
                JUnitTestSuite(testcases=[JUnitTestCase(classname="A", name="b", time=9.0)]),
            ]
        )
        assert create_duration_index(result, Platform.ANDROID) == {"class A#b": 9.0}

    def test_empty_result(self) -> None:
        assert create_duration_index(JUnitTestResult(), Platform.IOS) == {}


class TestResolveTestTime:
    def test_history_hit(self) -> None:
        test = TestDescriptor("class A#b")
        assert resolve_test_time(test, {"class A#b": 42.0}) == (42.0, True)

    def test_default_on_miss(self) -> None:
        test = TestDescriptor("class A#b")
        assert resolve_test_time(test, {}) == (DEFAULT_TEST_TIME_SEC, False)

    def test_ignored_costs_nothing_even_with_history(self) -> None:
        test = TestDescriptor("class A#b", ignored=True)
        assert resolve_test_time(test, {"class A#b": 42.0}) == (0.0, True)

    def test_custom_defaults(self) -> None:
        assert resolve_test_time(TestDescriptor("x"), {}, default_test_time=10.0) == (10.0, False)
        ignored = TestDescriptor("x", ignored=True)
        assert resolve_test_time(ignored, {}, ignored_test_time=1.0) == (1.0, True)


def test_optional_limit() -> None:
    assert optional_limit(-1) is None
    assert optional_limit(3) == 3
