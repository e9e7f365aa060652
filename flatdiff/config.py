"""YAML-driven configuration for a complete comparison."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from .comparators import ObjectComparer
from .engine import KeyExtractor
from .exceptions import ConfigurationError
from .flattener import FlatteningPlugin, ObjectFlattener
from .models import (
    ComparerNoPluginBehaviour,
    DuplicateElementNameBehaviour,
    EngineConfig,
    MismatchedKeysBehaviour,
    NoPluginBehaviour,
)
from .paths import JSONPathMatcher, select_json_records, select_xml_records, xml_value
from .risk import RiskNodeFlattener

DOMAIN_PLUGINS: dict[str, type[FlatteningPlugin]] = {
    "risks": RiskNodeFlattener,
}

FORMATS = ("xml", "json")


def _parse_enum(enum_cls: type[Enum], value: Any, name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"Invalid value '{value}' for {name} (expected one of: {allowed})")


@dataclass
class FlatteningConfig:
    """Flattening section of a comparison config."""
    no_plugin: NoPluginBehaviour = NoPluginBehaviour.THROW
    duplicate_names: DuplicateElementNameBehaviour = DuplicateElementNameBehaviour.INDEX
    disambiguating_attribute: Optional[str] = None
    domain_plugins: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> FlatteningConfig:
        data = data or {}
        plugins = list(data.get("domain_plugins", []))
        for name in plugins:
            if name not in DOMAIN_PLUGINS:
                raise ConfigurationError(f"Unknown domain plugin: {name}")

        config = cls(
            no_plugin=_parse_enum(NoPluginBehaviour, data.get("no_plugin", "throw"), "flattening.no_plugin"),
            duplicate_names=_parse_enum(
                DuplicateElementNameBehaviour,
                data.get("duplicate_names", "index"),
                "flattening.duplicate_names"
            ),
            disambiguating_attribute=data.get("disambiguating_attribute"),
            domain_plugins=plugins,
        )
        if (config.duplicate_names == DuplicateElementNameBehaviour.ATTRIBUTE
                and not config.disambiguating_attribute):
            raise ConfigurationError(
                "flattening.disambiguating_attribute is required when duplicate_names is 'attribute'"
            )
        return config


@dataclass
class ValueComparisonConfig:
    """Comparison section of a comparison config."""
    no_plugin: ComparerNoPluginBehaviour = ComparerNoPluginBehaviour.THROW
    mismatched_keys: MismatchedKeysBehaviour = MismatchedKeysBehaviour.REPORT_AS_DIFFERENCE
    float_tolerance: float = 0.0
    decimal_tolerance: Decimal = Decimal(0)
    case_insensitive: bool = False
    trim_whitespace: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> ValueComparisonConfig:
        data = data or {}
        try:
            float_tolerance = float(data.get("float_tolerance", 0.0))
            decimal_tolerance = Decimal(str(data.get("decimal_tolerance", 0)))
        except (TypeError, ValueError, InvalidOperation) as e:
            raise ConfigurationError(f"Invalid comparison tolerance: {e}")

        if not math.isfinite(float_tolerance) or not decimal_tolerance.is_finite():
            raise ConfigurationError("Comparison tolerances must be finite numbers")
        if float_tolerance < 0 or decimal_tolerance < 0:
            raise ConfigurationError("Comparison tolerances must not be negative")

        return cls(
            no_plugin=_parse_enum(
                ComparerNoPluginBehaviour, data.get("no_plugin", "throw"), "comparison.no_plugin"
            ),
            mismatched_keys=_parse_enum(
                MismatchedKeysBehaviour,
                data.get("mismatched_keys", "report"),
                "comparison.mismatched_keys"
            ),
            float_tolerance=float_tolerance,
            decimal_tolerance=decimal_tolerance,
            case_insensitive=bool(data.get("case_insensitive", False)),
            trim_whitespace=bool(data.get("trim_whitespace", False)),
        )


@dataclass
class ComparisonConfig:
    """
    Everything needed to compare two documents end to end.

    Example YAML::

        format: xml
        records: requests/request
        key:
          id: "@key"
        flattening:
          domain_plugins: [risks]
        comparison:
          decimal_tolerance: "0.0001"
    """
    format: str = "json"
    records: Optional[str] = None
    key: dict[str, str] = field(default_factory=dict)
    separator: str = "."
    decimal_numbers: bool = True
    flattening: FlatteningConfig = field(default_factory=FlatteningConfig)
    comparison: ValueComparisonConfig = field(default_factory=ValueComparisonConfig)

    @classmethod
    def from_dict(cls, data: dict) -> ComparisonConfig:
        if not isinstance(data, dict):
            raise ConfigurationError("Comparison config must be a mapping")

        fmt = str(data.get("format", "json")).lower()
        if fmt not in FORMATS:
            raise ConfigurationError(f"Unsupported format '{fmt}' (expected xml or json)")

        key = data.get("key")
        if not isinstance(key, dict) or not key:
            raise ConfigurationError("'key' must map at least one component name to a path")

        return cls(
            format=fmt,
            records=data.get("records"),
            key={str(k): str(v) for k, v in key.items()},
            separator=str(data.get("separator", ".")),
            decimal_numbers=bool(data.get("decimal_numbers", True)),
            flattening=FlatteningConfig.from_dict(data.get("flattening")),
            comparison=ValueComparisonConfig.from_dict(data.get("comparison")),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> ComparisonConfig:
        """Load a config from a YAML (or JSON) file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            content = f.read()

        # JSON is valid YAML, so one loader covers both
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse config file: {e}")

        return cls.from_dict(data)

    def build_flattener(self) -> ObjectFlattener:
        return ObjectFlattener.default(
            domain_plugins=[DOMAIN_PLUGINS[name]() for name in self.flattening.domain_plugins],
            duplicate_names=self.flattening.duplicate_names,
            disambiguating_attribute=self.flattening.disambiguating_attribute,
            no_plugin_behaviour=self.flattening.no_plugin,
            separator=self.separator,
        )

    def build_comparer(self) -> ObjectComparer:
        return ObjectComparer.default(
            float_tolerance=self.comparison.float_tolerance,
            decimal_tolerance=self.comparison.decimal_tolerance,
            case_insensitive=self.comparison.case_insensitive,
            trim_whitespace=self.comparison.trim_whitespace,
            no_plugin_behaviour=self.comparison.no_plugin,
        )

    def build_engine_config(self) -> EngineConfig:
        return EngineConfig(mismatched_keys=self.comparison.mismatched_keys)

    def build_key_extractor(self) -> KeyExtractor:
        """Build an (index, record) -> key components callable from ``key``."""
        components = dict(self.key)

        if self.format == "xml":
            def extract_xml(index: int, record: Any) -> dict[str, Any]:
                return {name: xml_value(record, spec) for name, spec in components.items()}
            return extract_xml

        for spec in components.values():
            JSONPathMatcher.compile(spec)

        def extract_json(index: int, record: Any) -> dict[str, Any]:
            return {
                name: JSONPathMatcher.find_first(record, spec)
                for name, spec in components.items()
            }
        return extract_json

    def select_records(self, document: Any) -> list[Any]:
        """Pick the records to compare out of a loaded document."""
        if self.format == "xml":
            return select_xml_records(document, self.records or "*")
        return select_json_records(document, self.records or "$[*]")
