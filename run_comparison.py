#!/usr/bin/env python
"""Compare two XML/JSON documents from command line."""

import argparse
import sys
from pathlib import Path

from flatdiff import ComparisonRunner, FlatDiffError
from flatdiff.report import print_summary, write_json_report, write_xml_report


def main():
    parser = argparse.ArgumentParser(
        description="Compare expected and actual record collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_comparison.py compare.yaml expected.xml actual.xml report.xml
  python run_comparison.py -c compare.yaml -e expected.json -a actual.json -r report.json
        """
    )

    parser.add_argument("config", nargs="?", help="Path to YAML comparison config")
    parser.add_argument("expected", nargs="?", help="Path to expected document")
    parser.add_argument("actual", nargs="?", help="Path to actual document")
    parser.add_argument("report", nargs="?", help="Path to output report (.xml or .json)")

    # Also support named arguments
    parser.add_argument("-c", "--config", dest="config_named", help="Path to comparison config")
    parser.add_argument("-e", "--expected", dest="expected_named", help="Path to expected document")
    parser.add_argument("-a", "--actual", dest="actual_named", help="Path to actual document")
    parser.add_argument("-r", "--report", dest="report_named", help="Path to output report")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")

    args = parser.parse_args()

    # Use named args if positional not provided
    config_path = args.config or args.config_named
    expected_path = args.expected or args.expected_named
    actual_path = args.actual or args.actual_named
    report_path = args.report or args.report_named

    if not config_path:
        parser.error("Config path is required")
    if not expected_path:
        parser.error("Expected document path is required")
    if not actual_path:
        parser.error("Actual document path is required")

    for label, path in (("Config", config_path), ("Expected", expected_path), ("Actual", actual_path)):
        if not Path(path).exists():
            print(f"Error: {label} file not found: {path}", file=sys.stderr)
            return 2

    try:
        result = ComparisonRunner.run_comparison(config_path, expected_path, actual_path)
    except FlatDiffError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if not hasattr(result, "passed"):
        print(f"Error: {result.error_kind.value}: {result.message}", file=sys.stderr)
        return 2

    if not args.quiet:
        print_summary(result)

    if report_path:
        if Path(report_path).suffix.lower() == ".json":
            write_json_report(result, report_path)
        else:
            write_xml_report(result, report_path)
        if not args.quiet:
            print(f"\nReport saved to: {report_path}")

    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
