"""Set comparison engine for flatdiff."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from .comparators import ObjectComparer
from .differ import Differ
from .exceptions import (
    ConfigurationError,
    DuplicateFlatKeyError,
    MalformedInputError,
    UnclaimedComparisonError,
    UnflattenableNodeError,
)
from .flattener import ObjectFlattener
from .models import (
    BusinessKey,
    ComparisonOutcome,
    ComparisonResult,
    EngineConfig,
    ErrorKind,
    ErrorResponse,
    ExecutionInfo,
    IncomparableEntry,
)
from .nodes import to_tree

logger = logging.getLogger(__name__)

KeyExtractor = Callable[[int, Any], Mapping[str, Any]]


class _KeyGroup:
    """Records sharing one business key, split by side."""

    __slots__ = ("expected", "actual")

    def __init__(self):
        self.expected: list[tuple[Any, dict]] = []
        self.actual: list[tuple[Any, dict]] = []


class SetComparer:
    """
    Compares two collections of records matched by business key.

    Pipeline:

    1. Key extraction and flattening of every record on both sides
    2. Grouping by business key; keys with more than one record on either
       side are incomparable
    3. Classification of the remaining keys into missing / additional /
       matched candidates
    4. Path-by-path diffing of each matched pair
    """

    VERSION = "1.0.0"

    def __init__(
        self,
        flattener: Optional[ObjectFlattener] = None,
        comparer: Optional[ObjectComparer] = None,
        config: Optional[EngineConfig] = None
    ):
        """
        Initialize the engine.

        Args:
            flattener: Flattening registry (standard chain if not provided)
            comparer: Value comparer registry (standard chain if not provided)
            config: Engine configuration (uses defaults if not provided)
        """
        self.flattener = flattener or ObjectFlattener.default()
        self.comparer = comparer or ObjectComparer.default()
        self.config = config or EngineConfig()
        self.differ = Differ(self.comparer, self.config.mismatched_keys)

    def compare(
        self,
        key_extractor: KeyExtractor,
        expected: Iterable[Any],
        actual: Iterable[Any]
    ) -> ComparisonResult | ErrorResponse:
        """
        Compare two record collections irrespective of their ordering.

        Args:
            key_extractor: Callable of (index, record) returning the record's
                business key components; must be free of side effects
            expected: Expected records (XML elements, JSON values or TreeNodes)
            actual: Actual records

        Returns:
            ComparisonResult on success, ErrorResponse on a fatal error
        """
        try:
            return self.compare_or_raise(key_extractor, expected, actual)
        except UnflattenableNodeError as e:
            return self._create_error_response(
                ErrorKind.UNFLATTENABLE_NODE, e, {"path": e.path, "node": e.node_name}
            )
        except UnclaimedComparisonError as e:
            return self._create_error_response(
                ErrorKind.UNCLAIMED_COMPARISON,
                e,
                {"path": e.path, "expected_type": e.expected_type, "actual_type": e.actual_type}
            )
        except DuplicateFlatKeyError as e:
            return self._create_error_response(ErrorKind.DUPLICATE_FLAT_KEY, e, {"key": e.key})
        except MalformedInputError as e:
            return self._create_error_response(ErrorKind.MALFORMED_INPUT, e, e.details)
        except ConfigurationError as e:
            return self._create_error_response(ErrorKind.CONFIGURATION_ERROR, e, {})
        except Exception as e:
            return self._create_error_response(
                ErrorKind.PROCESSING_ERROR, e, {"type": type(e).__name__}
            )

    def compare_or_raise(
        self,
        key_extractor: KeyExtractor,
        expected: Iterable[Any],
        actual: Iterable[Any]
    ) -> ComparisonResult:
        """Same as ``compare`` but fatal errors propagate as exceptions."""
        start_time = time.time()

        groups: dict[BusinessKey, _KeyGroup] = {}
        self._collect(key_extractor, expected, groups, "expected")
        self._collect(key_extractor, actual, groups, "actual")

        matching: dict[BusinessKey, ComparisonOutcome] = {}
        differences: dict[BusinessKey, ComparisonOutcome] = {}
        additional: dict[BusinessKey, Any] = {}
        missing: dict[BusinessKey, Any] = {}
        incomparable: dict[BusinessKey, IncomparableEntry] = {}

        for key, group in groups.items():
            if len(group.expected) > 1 or len(group.actual) > 1:
                incomparable[key] = IncomparableEntry(
                    expected=tuple(record for record, _ in group.expected),
                    actual=tuple(record for record, _ in group.actual),
                )
            elif not group.actual:
                missing[key] = group.expected[0][0]
            elif not group.expected:
                additional[key] = group.actual[0][0]
            else:
                expected_record, expected_flat = group.expected[0]
                actual_record, actual_flat = group.actual[0]
                outcome = self.differ.diff(
                    expected_flat, actual_flat, expected_record, actual_record
                )
                if outcome.is_equal:
                    matching[key] = outcome
                else:
                    differences[key] = outcome

        duration_ms = int((time.time() - start_time) * 1000)
        result = ComparisonResult(
            matching=matching,
            differences=differences,
            additional=additional,
            missing=missing,
            incomparable=incomparable,
            execution=ExecutionInfo(
                duration_ms=duration_ms,
                timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
                engine_version=self.VERSION
            ),
        )
        logger.debug("Comparison finished: %s", result.summary.to_dict())
        return result

    def _collect(
        self,
        key_extractor: KeyExtractor,
        records: Iterable[Any],
        groups: dict[BusinessKey, _KeyGroup],
        side: str
    ):
        """Extract keys and flatten every record of one side into the groups."""
        for index, record in enumerate(records):
            key = BusinessKey(key_extractor(index, record))
            flat = self.flattener.flatten_record(to_tree(record))

            group = groups.get(key)
            if group is None:
                group = groups[key] = _KeyGroup()
            getattr(group, side).append((record, flat))

    def _create_error_response(
        self,
        kind: ErrorKind,
        error: Exception,
        details: dict
    ) -> ErrorResponse:
        """Create an error response."""
        logger.debug("Comparison aborted with %s: %s", kind.value, error)
        return ErrorResponse(
            error_kind=kind,
            message=str(error),
            details=details,
            exception=error,
        )


def compare(
    key_extractor: KeyExtractor,
    expected: Iterable[Any],
    actual: Iterable[Any],
    flattener: Optional[ObjectFlattener] = None,
    comparer: Optional[ObjectComparer] = None,
    config: Optional[EngineConfig] = None
) -> ComparisonResult | ErrorResponse:
    """
    Convenience function to compare two record collections.

    Args:
        key_extractor: Callable of (index, record) returning business key components
        expected: Expected records
        actual: Actual records
        flattener: Optional flattening registry
        comparer: Optional value comparer registry
        config: Optional engine configuration

    Returns:
        ComparisonResult on success, ErrorResponse on errors
    """
    engine = SetComparer(flattener, comparer, config)
    return engine.compare(key_extractor, expected, actual)
