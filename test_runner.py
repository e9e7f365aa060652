"""Tests for reporting, YAML configuration and the document runner."""

import json
import sys
import xml.etree.ElementTree as ET
from decimal import Decimal
from pathlib import Path

import pytest
from flatdiff import (
    BusinessKey,
    ComparisonConfig,
    ComparisonRunner,
    ConfigurationError,
    DuplicateElementNameBehaviour,
    MalformedInputError,
    MismatchedKeysBehaviour,
    NoPluginBehaviour,
    RiskNodeFlattener,
    SetComparer,
    load_document,
)
from flatdiff.report import build_report, build_xml_report, to_json, write_xml_report

SAMPLES = Path(__file__).parent / "samples"


def by_id(index, record):
    return {"id": record["id"]}


class TestReport:
    """Test report rendering."""

    def setup_method(self):
        self.engine = SetComparer()

    def test_report_structure(self):
        """Test summary and per-bucket sections."""
        result = self.engine.compare(
            by_id,
            [{"id": "A", "v": 1}, {"id": "M"}],
            [{"id": "A", "v": 2, "w": 3}, {"id": "B"}],
        )
        report = build_report(result)
        assert report["passed"] is False
        assert report["summary"] == {
            "matching": 0,
            "differences": 1,
            "additional_keys": 1,
            "missing_keys": 1,
            "incomparable": 0,
        }
        assert report["additional"] == [{"key": {"id": "B"}, "record": {"id": "B"}}]
        assert report["missing"] == [{"key": {"id": "M"}, "record": {"id": "M"}}]
        entry = report["differences"][0]
        assert entry["key"] == {"id": "A"}
        assert entry["differences"] == [
            {"path": "v", "expected": 1, "actual": 2, "payload": 1},
            {"path": "w", "actual": 3},
        ]
        assert entry["expected"] == {"id": "A", "v": 1}
        assert result.to_dict() == report

    def test_json_handles_decimals(self):
        """Test decimals serialize as strings."""
        result = self.engine.compare(
            by_id, [{"id": "A", "v": Decimal("1.5")}], [{"id": "A", "v": Decimal("2.5")}]
        )
        data = json.loads(to_json(result))
        assert data["differences"][0]["differences"][0]["payload"] == "1.0"

    def test_xml_one_sided_difference(self):
        """Test an additional path only carries its actual value in XML."""
        result = self.engine.compare(by_id, [{"id": "A"}], [{"id": "A", "w": 3}])
        difference = build_xml_report(result).find(".//difference")
        assert difference.get("key") == "w"
        assert difference.get("expected") is None
        assert difference.get("actual") == "3"

    def test_xml_report(self):
        """Test the XML document layout for XML records."""
        engine = SetComparer()
        expected = [ET.fromstring('<request key="A" v="1"/>'), ET.fromstring('<request key="C"/>')]
        actual = [ET.fromstring('<request key="A" v="2"/>'), ET.fromstring('<request key="C"/>'),
                  ET.fromstring('<request key="C"/>')]
        result = engine.compare(lambda i, e: {"id": e.get("key")}, expected, actual)

        root = build_xml_report(result)
        assert root.tag == "comparison"
        assert root.get("passed") == "false"
        summary = root.find("summary")
        assert summary.get("differences") == "1"
        assert summary.get("incomparable") == "1"

        difference = root.find("differences/difference")
        assert difference.get("id") == "A"
        detail = difference.find("differences/difference")
        assert detail.attrib == {"key": "v", "expected": "1", "actual": "2"}
        assert difference.find("expected/request").get("v") == "1"
        assert difference.find("actual/request").get("v") == "2"

        entry = root.find("incomparable/entry")
        assert entry.get("id") == "C"
        assert len(entry.findall("expectedObjects/request")) == 1
        assert len(entry.findall("actualObjects/request")) == 2

    def test_xml_report_omits_absent_values(self):
        """Test one-sided paths omit the absent attribute."""
        result = self.engine.compare(by_id, [{"id": "A"}], [{"id": "A", "extra": "x"}])
        detail = build_xml_report(result).find("differences/difference/differences/difference")
        assert detail.attrib == {"key": "extra", "actual": "x"}

    def test_write_xml_report(self, tmp_path):
        """Test the XML report is written to disk."""
        result = self.engine.compare(by_id, [{"id": "A"}], [{"id": "A"}])
        path = tmp_path / "report.xml"
        write_xml_report(result, path)
        root = ET.parse(path).getroot()
        assert root.get("passed") == "true"
        assert root.find("summary").get("matching") == "1"


class TestComparisonConfig:
    """Test YAML comparison configs."""

    def test_from_dict(self):
        """Test a complete config."""
        config = ComparisonConfig.from_dict({
            "format": "XML",
            "records": "request",
            "key": {"id": "@key"},
            "flattening": {
                "no_plugin": "skip",
                "duplicate_names": "attribute",
                "disambiguating_attribute": "name",
                "domain_plugins": ["risks"],
            },
            "comparison": {"mismatched_keys": "ignore", "decimal_tolerance": "0.01"},
        })
        assert config.format == "xml"
        assert config.flattening.no_plugin == NoPluginBehaviour.SKIP
        assert config.flattening.duplicate_names == DuplicateElementNameBehaviour.ATTRIBUTE
        assert config.comparison.decimal_tolerance == Decimal("0.01")
        assert config.build_engine_config().mismatched_keys == MismatchedKeysBehaviour.IGNORE
        assert isinstance(config.build_flattener().plugins[0], RiskNodeFlattener)

    @pytest.mark.parametrize("data", [
        {"format": "csv", "key": {"id": "$.id"}},
        {"format": "json"},
        {"key": {"id": "$.id"}, "flattening": {"domain_plugins": ["greeks"]}},
        {"key": {"id": "$.id"}, "flattening": {"no_plugin": "ignore"}},
        {"key": {"id": "$.id"}, "flattening": {"duplicate_names": "attribute"}},
        {"key": {"id": "$.id"}, "comparison": {"float_tolerance": -1}},
        {"key": {"id": "$.id"}, "comparison": {"decimal_tolerance": "abc"}},
        {"key": {"id": "$.id"}, "comparison": {"decimal_tolerance": "nan"}},
        {"key": {"id": "$.id"}, "comparison": {"float_tolerance": float("inf")}},
    ])
    def test_invalid_config(self, data):
        """Test invalid values are rejected."""
        with pytest.raises(ConfigurationError):
            ComparisonConfig.from_dict(data)

    def test_invalid_jsonpath(self):
        """Test bad key expressions are configuration errors."""
        config = ComparisonConfig.from_dict({"key": {"id": "$[[["}})
        with pytest.raises(ConfigurationError):
            config.build_key_extractor()

    def test_json_key_extractor(self):
        """Test JSONPath key components."""
        config = ComparisonConfig.from_dict({"key": {"id": "$.key", "ccy": "$.trade.ccy"}})
        extractor = config.build_key_extractor()
        assert extractor(0, {"key": "A", "trade": {"ccy": "GBP"}}) == {"id": "A", "ccy": "GBP"}

    def test_xml_key_extractor(self):
        """Test attribute and element key components."""
        config = ComparisonConfig.from_dict({
            "format": "xml",
            "key": {"id": "@key", "book": "trade/book"},
        })
        element = ET.fromstring('<request key="A"><trade><book>FX1</book></trade></request>')
        assert config.build_key_extractor()(0, element) == {"id": "A", "book": "FX1"}

    def test_from_file(self):
        """Test loading the sample YAML config."""
        config = ComparisonConfig.from_file(SAMPLES / "compare_requests.yaml")
        assert config.format == "xml"
        assert config.key == {"id": "@key"}
        assert config.flattening.domain_plugins == ["risks"]


class TestComparisonRunner:
    """Test end-to-end document comparison."""

    def test_xml_requests(self):
        """Test the pricing request sample."""
        result = ComparisonRunner.run_comparison(
            SAMPLES / "compare_requests.yaml",
            SAMPLES / "expected_requests.xml",
            SAMPLES / "actual_requests.xml",
        )
        keys = lambda bucket: {key["id"] for key in bucket}
        assert keys(result.matching) == {"Vanilla-Call-EURGBP-1M-ATM"}
        assert keys(result.additional) == {"Vanilla-Put-EURGBP-6M-ATM"}
        assert keys(result.incomparable) == {"Vanilla-Call-EURGBP-12M-ATM"}
        assert result.missing == {}

        outcome = result.differences[BusinessKey(id="Vanilla-Put-EURGBP-1M-ATM")]
        assert len(outcome.differences) == 1
        difference = outcome.differences[0]
        assert difference.path == "risks.value-GBP"
        assert difference.expected_value == Decimal("1180.25")
        assert difference.actual_value == Decimal("1185.00")
        assert difference.payload == Decimal("4.75")

    def test_json_objects(self):
        """Test the JSON array sample."""
        result = ComparisonRunner.run_comparison(
            SAMPLES / "compare_objects.yaml",
            SAMPLES / "expected_objects.json",
            SAMPLES / "actual_objects.json",
        )
        keys = lambda bucket: {key["key"] for key in bucket}
        assert keys(result.matching) == {"Object 1", "Object 9"}
        assert keys(result.additional) == {"Object 17"}
        outcome = result.differences[BusinessKey(key="Object 7")]
        assert [(d.path, d.expected_value, d.actual_value) for d in outcome.differences] == [
            ("hack.nestedProp", "original", "changed"),
        ]

    def test_load_document_errors(self, tmp_path):
        """Test missing and malformed documents."""
        with pytest.raises(FileNotFoundError):
            load_document(tmp_path / "nope.json", "json")

        bad = tmp_path / "bad.json"
        bad.write_text("[{")
        with pytest.raises(MalformedInputError):
            load_document(bad, "json")

        bad_xml = tmp_path / "bad.xml"
        bad_xml.write_text("<requests>")
        with pytest.raises(MalformedInputError):
            load_document(bad_xml, "xml")

    def test_command_line(self, tmp_path, monkeypatch, capsys):
        """Test the CLI writes a report and signals failure."""
        import run_comparison

        report = tmp_path / "report.xml"
        monkeypatch.setattr(sys, "argv", [
            "run_comparison.py",
            str(SAMPLES / "compare_requests.yaml"),
            str(SAMPLES / "expected_requests.xml"),
            str(SAMPLES / "actual_requests.xml"),
            str(report),
        ])
        assert run_comparison.main() == 1
        assert "Differences - 1" in capsys.readouterr().out
        assert ET.parse(report).getroot().find("summary").get("additionalKeys") == "1"
