"""Diff engine: compares two flattened records path by path."""

from __future__ import annotations

from typing import Any, Optional

from .comparators import ObjectComparer
from .models import ABSENT, ComparisonOutcome, Difference, MismatchedKeysBehaviour


class Differ:
    """
    Compares flattened records using an ObjectComparer.

    Handles:
    - Paths present on both sides (delegated to the comparer plugins)
    - Paths present on one side only (reported against ABSENT, or ignored)
    """

    def __init__(
        self,
        comparer: Optional[ObjectComparer] = None,
        mismatched_keys: MismatchedKeysBehaviour = MismatchedKeysBehaviour.REPORT_AS_DIFFERENCE
    ):
        self.comparer = comparer or ObjectComparer.default()
        self.mismatched_keys = mismatched_keys

    def diff(
        self,
        expected_flat: dict[str, Any],
        actual_flat: dict[str, Any],
        expected_record: Any = None,
        actual_record: Any = None
    ) -> ComparisonOutcome:
        """
        Diff two flattened records.

        Args:
            expected_flat: Flattened expected record
            actual_flat: Flattened actual record
            expected_record: Raw expected record, kept on the outcome
            actual_record: Raw actual record, kept on the outcome

        Returns:
            ComparisonOutcome listing every differing path
        """
        differences: list[Difference] = []
        report_mismatched = self.mismatched_keys == MismatchedKeysBehaviour.REPORT_AS_DIFFERENCE

        for path, expected in expected_flat.items():
            if path not in actual_flat:
                if report_mismatched:
                    differences.append(Difference(path, expected, ABSENT))
                continue

            actual = actual_flat[path]
            comparison = self.comparer.compare(path, expected, actual)
            if not comparison.is_equal:
                differences.append(Difference(path, expected, actual, comparison.payload))

        if report_mismatched:
            for path, actual in actual_flat.items():
                if path not in expected_flat:
                    differences.append(Difference(path, ABSENT, actual))

        return ComparisonOutcome(expected_record, actual_record, tuple(differences))
