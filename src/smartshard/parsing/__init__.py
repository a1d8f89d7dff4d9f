"""Parsers for previous run reports."""

from smartshard.parsing.junit_xml import JUnitParseError, parse_junit_xml, parse_junit_xml_text

__all__ = [
    "JUnitParseError",
    "parse_junit_xml",
    "parse_junit_xml_text",
]
