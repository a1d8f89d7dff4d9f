"""JUnit XML report parsing.

Reads the merged JUnit report of a previous run into a
``JUnitTestResult``.  Only the fields needed for duration lookups are
kept: class name, method name and elapsed time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from defusedxml import ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from smartshard.models.junit import JUnitTestCase, JUnitTestResult, JUnitTestSuite

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)


class JUnitParseError(Exception):
    """Raised when a JUnit report exists but cannot be parsed."""


def _local_tag(elem: XmlElement) -> str:
    return elem.tag.split("}")[-1] if "}" in elem.tag else elem.tag


def _parse_time(value: str | None) -> float | None:
    """Parse a ``time`` attribute in seconds.

    Some reporters format large values with thousands separators
    (``"1,234.5"``).  Returns None for missing or unparsable values.
    """
    if value is None:
        return None
    text = value.strip().replace(",", "")
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        logger.debug("Ignoring unparsable test time %r", value)
        return None


def _parse_testcase(elem: XmlElement) -> JUnitTestCase:
    return JUnitTestCase(
        classname=elem.get("classname"),
        name=elem.get("name"),
        time=_parse_time(elem.get("time")),
    )


def _parse_testsuite(elem: XmlElement) -> JUnitTestSuite:
    return JUnitTestSuite(
        name=elem.get("name", ""),
        testcases=[_parse_testcase(child) for child in elem if _local_tag(child) == "testcase"],
    )


def _parse_root(root: XmlElement) -> JUnitTestResult:
    tag = _local_tag(root)
    if tag == "testsuite":
        return JUnitTestResult(testsuites=[_parse_testsuite(root)])
    if tag != "testsuites":
        msg = f"Unexpected JUnit root element <{tag}>"
        raise JUnitParseError(msg)
    return JUnitTestResult(
        testsuites=[_parse_testsuite(child) for child in root if _local_tag(child) == "testsuite"]
    )


def parse_junit_xml_text(xml_text: str) -> JUnitTestResult:
    """Parse JUnit XML from a string.

    Raises:
        JUnitParseError: If the text is not well-formed JUnit XML.
    """
    try:
        root = ElementTree.fromstring(xml_text)
    except DefusedParseError as e:
        msg = f"Invalid JUnit XML: {e}"
        raise JUnitParseError(msg) from e
    return _parse_root(root)


def parse_junit_xml(path: Path) -> JUnitTestResult:
    """Parse the JUnit report at *path*.

    A missing file yields an empty result: the first run of a suite has
    no history and every test falls back to the default time.

    Raises:
        JUnitParseError: If the file exists but is not valid JUnit XML.
    """
    if not path.is_file():
        logger.debug("No previous results at %s, using default test times", path)
        return JUnitTestResult()

    result = parse_junit_xml_text(path.read_text(encoding="utf-8"))
    logger.debug("Loaded %d test case records from %s", result.total, path)
    return result
