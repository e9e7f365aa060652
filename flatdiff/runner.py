"""Runner that loads two documents and compares them from a config file."""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from .config import ComparisonConfig
from .engine import SetComparer
from .exceptions import MalformedInputError
from .models import ComparisonResult, ErrorResponse


def load_document(path: str | Path, fmt: str, decimal_numbers: bool = True) -> Any:
    """
    Load an XML or JSON document.

    Args:
        path: Path to the document
        fmt: 'xml' or 'json'
        decimal_numbers: Decode JSON floats as Decimal instead of float

    Returns:
        The XML root element or the decoded JSON value
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")

    if fmt == "xml":
        try:
            return ET.parse(path).getroot()
        except ET.ParseError as e:
            raise MalformedInputError(f"Error parsing {path}: {e}", {"path": str(path)})

    with open(path, "r") as f:
        try:
            return json.load(f, parse_float=Decimal if decimal_numbers else float)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Error parsing {path}: {e}", {"path": str(path)})


class ComparisonRunner:
    """
    Compares an expected and an actual document described by a config.

    Usage:
        runner = ComparisonRunner("compare.yaml", "expected.xml", "actual.xml")
        result = runner.run()

    Or as a one-liner:
        result = ComparisonRunner.run_comparison("compare.yaml", "expected.xml", "actual.xml")
    """

    def __init__(
        self,
        config: ComparisonConfig | str | Path,
        expected_path: str | Path,
        actual_path: str | Path
    ):
        if not isinstance(config, ComparisonConfig):
            config = ComparisonConfig.from_file(config)
        self.config = config
        self.expected_path = Path(expected_path)
        self.actual_path = Path(actual_path)

    def build_engine(self) -> SetComparer:
        return SetComparer(
            flattener=self.config.build_flattener(),
            comparer=self.config.build_comparer(),
            config=self.config.build_engine_config(),
        )

    def load_records(self, path: Path) -> list[Any]:
        document = load_document(path, self.config.format, self.config.decimal_numbers)
        return self.config.select_records(document)

    def run(self) -> ComparisonResult | ErrorResponse:
        """Load both documents and compare their records."""
        expected = self.load_records(self.expected_path)
        actual = self.load_records(self.actual_path)

        engine = self.build_engine()
        return engine.compare(self.config.build_key_extractor(), expected, actual)

    @classmethod
    def run_comparison(
        cls,
        config: ComparisonConfig | str | Path,
        expected_path: str | Path,
        actual_path: str | Path
    ) -> ComparisonResult | ErrorResponse:
        runner = cls(config, expected_path, actual_path)
        return runner.run()


def run_comparison(
    config_path: str,
    expected_path: str,
    actual_path: str,
    config: Optional[ComparisonConfig] = None
) -> ComparisonResult | ErrorResponse:
    """
    Compare two documents using a YAML config file.

        from flatdiff.runner import run_comparison
        result = run_comparison("compare.yaml", "expected.json", "actual.json")
    """
    return ComparisonRunner.run_comparison(config or config_path, expected_path, actual_path)
