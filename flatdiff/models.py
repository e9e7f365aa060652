"""Data models for the flatdiff engine."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from .exceptions import FlatDiffError, MalformedInputError


class NoPluginBehaviour(Enum):
    THROW = "throw"
    SKIP = "skip"


class ComparerNoPluginBehaviour(Enum):
    THROW = "throw"
    REPORT_AS_DIFFERENCE = "report"


class MismatchedKeysBehaviour(Enum):
    REPORT_AS_DIFFERENCE = "report"
    IGNORE = "ignore"


class DuplicateElementNameBehaviour(Enum):
    THROW = "throw"
    INDEX = "index"
    ATTRIBUTE = "attribute"


class ErrorKind(Enum):
    UNFLATTENABLE_NODE = "UNFLATTENABLE_NODE"
    UNCLAIMED_COMPARISON = "UNCLAIMED_COMPARISON"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    DUPLICATE_FLAT_KEY = "DUPLICATE_FLAT_KEY"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"


class _Absent:
    """Marks the side of a difference on which a path does not exist."""

    _instance: Optional[_Absent] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<absent>"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


class BusinessKey(Mapping):
    """
    Immutable, hashable identity of one record.

    Two keys are equal when their components are equal as mappings, so the
    order in which an extractor adds components does not matter.
    """

    __slots__ = ("_components", "_hash")

    def __init__(self, components: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        data = dict(components or {})
        data.update(kwargs)
        try:
            key_hash = hash(frozenset(data.items()))
        except TypeError as e:
            raise MalformedInputError(
                f"Business key components must be hashable: {e}",
                {"components": repr(data)}
            )
        self._components = data
        self._hash = key_hash

    def __getitem__(self, name: str) -> Any:
        return self._components[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return self._components == dict(other)

    def __repr__(self) -> str:
        parts = ", ".join(f"{k}={v!r}" for k, v in self._components.items())
        return f"BusinessKey({parts})"

    def to_dict(self) -> dict:
        return dict(self._components)


@dataclass(frozen=True)
class ValueComparison:
    """Outcome of comparing one pair of flat values."""
    is_equal: bool
    payload: Any = None


@dataclass(frozen=True)
class Difference:
    """A single path whose values differ between expected and actual."""
    path: str
    expected_value: Any
    actual_value: Any
    payload: Any = None

    @property
    def is_missing(self) -> bool:
        return self.actual_value is ABSENT

    @property
    def is_additional(self) -> bool:
        return self.expected_value is ABSENT

    def to_dict(self) -> dict:
        result = {"path": self.path}
        if not self.is_additional:
            result["expected"] = self.expected_value
        if not self.is_missing:
            result["actual"] = self.actual_value
        if self.payload is not None:
            result["payload"] = self.payload
        return result


@dataclass(frozen=True)
class ComparisonOutcome:
    """Result of diffing one matched pair; the raw records are always kept."""
    expected: Any
    actual: Any
    differences: tuple[Difference, ...] = ()

    @property
    def is_equal(self) -> bool:
        return len(self.differences) == 0


@dataclass(frozen=True)
class IncomparableEntry:
    """All records, from both sides, sharing a duplicated business key."""
    expected: tuple = ()
    actual: tuple = ()


@dataclass
class EngineConfig:
    """Configuration for the set comparison engine."""
    mismatched_keys: MismatchedKeysBehaviour = MismatchedKeysBehaviour.REPORT_AS_DIFFERENCE


@dataclass(frozen=True)
class ExecutionInfo:
    """Execution metadata."""
    duration_ms: int
    timestamp: str
    engine_version: str = "1.0.0"

    def to_dict(self) -> dict:
        return {
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
            "engine_version": self.engine_version,
        }


@dataclass(frozen=True)
class Summary:
    """Number of business keys in each bucket."""
    matching: int = 0
    differences: int = 0
    additional: int = 0
    missing: int = 0
    incomparable: int = 0

    def to_dict(self) -> dict:
        return {
            "matching": self.matching,
            "differences": self.differences,
            "additional_keys": self.additional,
            "missing_keys": self.missing,
            "incomparable": self.incomparable,
        }


@dataclass(frozen=True)
class ComparisonResult:
    """
    Complete outcome of comparing two record collections.

    Every business key observed on either side appears in exactly one of
    matching, differences, additional, missing or incomparable.
    """
    matching: dict[BusinessKey, ComparisonOutcome] = field(default_factory=dict)
    differences: dict[BusinessKey, ComparisonOutcome] = field(default_factory=dict)
    additional: dict[BusinessKey, Any] = field(default_factory=dict)
    missing: dict[BusinessKey, Any] = field(default_factory=dict)
    incomparable: dict[BusinessKey, IncomparableEntry] = field(default_factory=dict)
    execution: Optional[ExecutionInfo] = None

    @property
    def passed(self) -> bool:
        return not (self.differences or self.additional or self.missing or self.incomparable)

    @property
    def summary(self) -> Summary:
        return Summary(
            matching=len(self.matching),
            differences=len(self.differences),
            additional=len(self.additional),
            missing=len(self.missing),
            incomparable=len(self.incomparable),
        )

    def all_keys(self) -> list[BusinessKey]:
        """Every business key in the result, bucket by bucket."""
        keys: list[BusinessKey] = []
        for bucket in (self.matching, self.differences, self.additional,
                       self.missing, self.incomparable):
            keys.extend(bucket)
        return keys

    def to_dict(self) -> dict:
        from .report import build_report
        return build_report(self)


@dataclass
class ErrorResponse:
    """Returned instead of a result when a comparison hits a fatal error."""
    error_kind: ErrorKind
    message: str
    details: dict = field(default_factory=dict)
    exception: Optional[Exception] = None
    success: bool = False

    def raise_error(self):
        """Re-raise the exception that aborted the comparison."""
        if self.exception is not None:
            raise self.exception
        raise FlatDiffError(self.message)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error": {
                "code": self.error_kind.value,
                "message": self.message,
                "details": self.details,
            },
        }
