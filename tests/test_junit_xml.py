"""Tests for smartshard.parsing.junit_xml."""

from __future__ import annotations

from pathlib import Path

import pytest

from smartshard.models.junit import JUnitTestCase
from smartshard.parsing.junit_xml import JUnitParseError, parse_junit_xml, parse_junit_xml_text

_ANDROID_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<testsuites>
  <testsuite name="matrix-1" tests="3" failures="0" time="98.5">
    <testcase name="testLogin" classname="com.example.LoginTest" time="12.5"/>
    <testcase name="testLogout" classname="com.example.LoginTest" time="1,234.0"/>
    <testcase name="testSkipped" classname="com.example.LoginTest" time="0.0">
      <skipped/>
    </testcase>
  </testsuite>
  <testsuite name="matrix-2">
    <testcase name="testCheckout" classname="com.example.CartTest" time="40"/>
  </testsuite>
</testsuites>
"""


class TestParseJUnitXmlText:
    def test_parses_suites_and_cases(self) -> None:
        result = parse_junit_xml_text(_ANDROID_REPORT)

        assert [s.name for s in result.testsuites] == ["matrix-1", "matrix-2"]
        assert result.total == 4
        first = result.testsuites[0].testcases[0]
        assert first == JUnitTestCase(
            classname="com.example.LoginTest", name="testLogin", time=12.5
        )

    def test_thousands_separator(self) -> None:
        result = parse_junit_xml_text(_ANDROID_REPORT)
        assert result.testsuites[0].testcases[1].time == 1234.0

    def test_skipped_case_keeps_time(self) -> None:
        result = parse_junit_xml_text(_ANDROID_REPORT)
        skipped = result.testsuites[0].testcases[2]
        assert (skipped.name, skipped.time) == ("testSkipped", 0.0)

    def test_single_testsuite_root(self) -> None:
        xml = '<testsuite name="s"><testcase classname="A" name="b()" time="3"/></testsuite>'
        result = parse_junit_xml_text(xml)
        assert len(result.testsuites) == 1
        assert result.testsuites[0].testcases[0].name == "b()"

    def test_missing_time_is_none(self) -> None:
        xml = '<testsuite><testcase classname="A" name="b"/></testsuite>'
        assert parse_junit_xml_text(xml).testsuites[0].testcases[0].time is None

    def test_unparsable_time_is_none(self) -> None:
        xml = '<testsuite><testcase classname="A" name="b" time="soon"/></testsuite>'
        assert parse_junit_xml_text(xml).testsuites[0].testcases[0].time is None

    def test_missing_classname_makes_empty_case(self) -> None:
        xml = '<testsuite><testcase name="b" time="1"/></testsuite>'
        case = parse_junit_xml_text(xml).testsuites[0].testcases[0]
        assert case.empty()

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(JUnitParseError, match="Invalid JUnit XML"):
            parse_junit_xml_text("<testsuites><testsuite>")

    def test_unexpected_root_raises(self) -> None:
        with pytest.raises(JUnitParseError, match="Unexpected JUnit root"):
            parse_junit_xml_text("<report/>")


class TestParseJUnitXml:
    def test_reads_file(self, tmp_path: Path) -> None:
        report = tmp_path / "JUnitReport.xml"
        report.write_text(_ANDROID_REPORT, encoding="utf-8")

        assert parse_junit_xml(report).total == 4

    def test_missing_file_is_empty_result(self, tmp_path: Path) -> None:
        result = parse_junit_xml(tmp_path / "missing.xml")
        assert result.testsuites == []
        assert result.total == 0
