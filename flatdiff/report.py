"""Rendering of comparison results as dicts, JSON, XML and console output."""

from __future__ import annotations

import copy
import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from .models import BusinessKey, ComparisonResult, Difference
from .nodes import is_xml_element, source_of


def render_record(record: Any) -> Any:
    """Return a JSON-friendly form of a raw record."""
    source = source_of(record)
    if is_xml_element(source):
        return ET.tostring(source, encoding="unicode").strip()
    return source


def build_report(result: ComparisonResult) -> dict:
    """
    Build the report structure for a comparison result.

    The report holds a summary of bucket sizes and, per bucket, the
    business key with either the raw record(s) or the list of
    differences along with the full expected and actual records.
    """
    report = {
        "passed": result.passed,
        "summary": result.summary.to_dict(),
        "additional": [
            {"key": key.to_dict(), "record": render_record(record)}
            for key, record in result.additional.items()
        ],
        "missing": [
            {"key": key.to_dict(), "record": render_record(record)}
            for key, record in result.missing.items()
        ],
        "incomparable": [
            {
                "key": key.to_dict(),
                "expected": [render_record(r) for r in entry.expected],
                "actual": [render_record(r) for r in entry.actual],
            }
            for key, entry in result.incomparable.items()
        ],
        "differences": [
            {
                "key": key.to_dict(),
                "differences": [d.to_dict() for d in outcome.differences],
                "expected": render_record(outcome.expected),
                "actual": render_record(outcome.actual),
            }
            for key, outcome in result.differences.items()
        ],
    }
    if result.execution:
        report["execution"] = result.execution.to_dict()
    return report


def to_json(result: ComparisonResult, indent: int = 2) -> str:
    """Serialize the report as JSON; Decimals are written as strings."""
    return json.dumps(build_report(result), indent=indent, default=str)


def _key_attributes(element: ET.Element, key: BusinessKey):
    for name, value in key.items():
        if value is not None:
            element.set(name, str(value))


def _append_record(parent: ET.Element, record: Any):
    source = source_of(record)
    if is_xml_element(source):
        parent.append(copy.deepcopy(source))
    else:
        ET.SubElement(parent, "record").text = json.dumps(source, default=str)


def _difference_element(parent: ET.Element, difference: Difference):
    element = ET.SubElement(parent, "difference", key=difference.path)
    if not difference.is_additional and difference.expected_value is not None:
        element.set("expected", str(difference.expected_value))
    if not difference.is_missing and difference.actual_value is not None:
        element.set("actual", str(difference.actual_value))
    if difference.payload is not None:
        element.set("dif", str(difference.payload))


def build_xml_report(result: ComparisonResult) -> ET.Element:
    """Build an XML report document for a comparison result."""
    root = ET.Element("comparison", passed=str(result.passed).lower())

    summary = result.summary
    ET.SubElement(
        root,
        "summary",
        matching=str(summary.matching),
        differences=str(summary.differences),
        additionalKeys=str(summary.additional),
        missingKeys=str(summary.missing),
        incomparable=str(summary.incomparable),
    )

    for title, bucket in (("additional", result.additional), ("missing", result.missing)):
        if not bucket:
            continue
        section = ET.SubElement(root, title)
        for key, record in bucket.items():
            item = ET.SubElement(section, "item")
            _key_attributes(item, key)
            _append_record(item, record)

    if result.incomparable:
        section = ET.SubElement(root, "incomparable")
        for key, entry in result.incomparable.items():
            item = ET.SubElement(section, "entry")
            _key_attributes(item, key)
            if entry.expected:
                expected = ET.SubElement(item, "expectedObjects")
                for record in entry.expected:
                    _append_record(expected, record)
            if entry.actual:
                actual = ET.SubElement(item, "actualObjects")
                for record in entry.actual:
                    _append_record(actual, record)

    if result.differences:
        section = ET.SubElement(root, "differences")
        for key, outcome in result.differences.items():
            item = ET.SubElement(section, "difference")
            _key_attributes(item, key)
            diffs = ET.SubElement(item, "differences")
            for difference in outcome.differences:
                _difference_element(diffs, difference)
            # Full records, not just the differing paths
            _append_record(ET.SubElement(item, "expected"), outcome.expected)
            _append_record(ET.SubElement(item, "actual"), outcome.actual)

    return root


def write_xml_report(result: ComparisonResult, path: str | Path):
    """Write the XML report to a file."""
    tree = ET.ElementTree(build_xml_report(result))
    ET.indent(tree, space="\t")
    tree.write(str(path), encoding="utf-8", xml_declaration=True)


def write_json_report(result: ComparisonResult, path: str | Path):
    with open(path, "w") as f:
        f.write(to_json(result))


def _format_key(key: BusinessKey) -> str:
    return ", ".join(f"{name} = {value}" for name, value in key.items())


def print_summary(result: ComparisonResult):
    """Print a console summary of the result."""
    summary = result.summary
    print(f"Matching items - {summary.matching}")

    print(f"Additional items - {summary.additional}")
    for key in result.additional:
        print(f"  - {_format_key(key)}")

    print(f"Missing items - {summary.missing}")
    for key in result.missing:
        print(f"  - {_format_key(key)}")

    print(f"Incomparable items - {summary.incomparable}")
    for key, entry in result.incomparable.items():
        print(f"  - {_format_key(key)} ({len(entry.expected)} expected, {len(entry.actual)} actual)")

    print(f"Differences - {summary.differences}")
    for key, outcome in result.differences.items():
        print(f"  - {_format_key(key)}")
        for difference in outcome.differences:
            print(f"    {difference.path}: {difference.expected_value} vs. {difference.actual_value}")

    print(f"\nResult: {'PASSED' if result.passed else 'FAILED'}")
