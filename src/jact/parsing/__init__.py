"""Readers for JaCoCo report output."""

from jact.parsing.footer import extract_footer_usage, parse_cell, read_package_usage
from jact.parsing.jacoco_xml import find_jacoco_xml, parse_jacoco_xml

__all__ = [
    "extract_footer_usage",
    "find_jacoco_xml",
    "parse_cell",
    "parse_jacoco_xml",
    "read_package_usage",
]
