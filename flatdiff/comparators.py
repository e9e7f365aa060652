"""Value comparer registry and the built-in type-specific comparer plugins."""

from __future__ import annotations

import math
from decimal import MAX_PREC, Decimal, localcontext
from typing import Any, Iterable, Optional

from .exceptions import UnclaimedComparisonError
from .models import ComparerNoPluginBehaviour, ValueComparison


def is_integer(value: Any) -> bool:
    """Check if a value is an int (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


class ComparerPlugin:
    """Base class for value comparer plugins."""

    def can_handle(self, expected: Any, actual: Any) -> bool:
        raise NotImplementedError

    def compare(self, expected: Any, actual: Any) -> ValueComparison:
        raise NotImplementedError


class NoneComparerPlugin(ComparerPlugin):
    """Claims any pair with a null side; equal only when both are null."""

    def can_handle(self, expected: Any, actual: Any) -> bool:
        return expected is None or actual is None

    def compare(self, expected: Any, actual: Any) -> ValueComparison:
        return ValueComparison(expected is None and actual is None)


class BooleanComparerPlugin(ComparerPlugin):

    def can_handle(self, expected: Any, actual: Any) -> bool:
        return isinstance(expected, bool) and isinstance(actual, bool)

    def compare(self, expected: Any, actual: Any) -> ValueComparison:
        return ValueComparison(expected == actual)


class StringComparerPlugin(ComparerPlugin):
    """
    Compares two strings, optionally ignoring case and surrounding whitespace.

    Args:
        case_insensitive: Compare lower-cased values
        trim_whitespace: Strip both values before comparing
    """

    def __init__(self, case_insensitive: bool = False, trim_whitespace: bool = False):
        self.case_insensitive = case_insensitive
        self.trim_whitespace = trim_whitespace

    def can_handle(self, expected: Any, actual: Any) -> bool:
        return isinstance(expected, str) and isinstance(actual, str)

    def compare(self, expected: str, actual: str) -> ValueComparison:
        if self.trim_whitespace:
            expected = expected.strip()
            actual = actual.strip()

        if self.case_insensitive:
            expected = expected.lower()
            actual = actual.lower()

        return ValueComparison(expected == actual)


class IntegerComparerPlugin(ComparerPlugin):
    """Compares two ints; the payload is actual - expected."""

    def can_handle(self, expected: Any, actual: Any) -> bool:
        return is_integer(expected) and is_integer(actual)

    def compare(self, expected: int, actual: int) -> ValueComparison:
        if expected == actual:
            return ValueComparison(True)
        return ValueComparison(False, actual - expected)


class FloatComparerPlugin(ComparerPlugin):
    """
    Compares binary floating-point numbers with an optional tolerance.

    Claims pairs made of floats and ints where at least one side is a
    float. Values match when ``abs(actual - expected) <= tolerance``.
    """

    def __init__(self, tolerance: float = 0.0):
        self.tolerance = tolerance

    def can_handle(self, expected: Any, actual: Any) -> bool:
        if not all(isinstance(v, float) or is_integer(v) for v in (expected, actual)):
            return False
        return isinstance(expected, float) or isinstance(actual, float)

    def compare(self, expected: Any, actual: Any) -> ValueComparison:
        if expected == actual:
            return ValueComparison(True)
        if not all(math.isfinite(v) for v in (expected, actual) if isinstance(v, float)):
            return ValueComparison(False)

        # Decimal(float) and Decimal(int) are exact, so large ints never go through float
        with localcontext() as ctx:
            ctx.prec = MAX_PREC
            delta = Decimal(actual) - Decimal(expected)
            if abs(delta) <= Decimal(self.tolerance):
                return ValueComparison(True)
        return ValueComparison(False, float(delta))


class DecimalComparerPlugin(ComparerPlugin):
    """
    Compares decimals exactly, in decimal arithmetic.

    Claims pairs made of Decimals and ints where at least one side is a
    Decimal. Values are never routed through float, so ``1.10`` and
    ``1.1`` are equal while ``0.1`` and ``0.10000000000000001`` are not.
    """

    def __init__(self, tolerance: Decimal | int | str = 0):
        self.tolerance = Decimal(str(tolerance))

    def can_handle(self, expected: Any, actual: Any) -> bool:
        if not all(isinstance(v, Decimal) or is_integer(v) for v in (expected, actual)):
            return False
        return isinstance(expected, Decimal) or isinstance(actual, Decimal)

    def compare(self, expected: Any, actual: Any) -> ValueComparison:
        if not all(Decimal(v).is_finite() for v in (expected, actual)):
            return ValueComparison(expected == actual)

        with localcontext() as ctx:
            ctx.prec = MAX_PREC
            delta = Decimal(actual) - Decimal(expected)
            if abs(delta) <= self.tolerance:
                return ValueComparison(True)
        return ValueComparison(False, delta)


class ObjectComparer:
    """
    Ordered, read-only chain of comparer plugins.

    The first plugin claiming both values decides; when none does, the
    pair either raises or is reported as a difference, depending on
    ``no_plugin_behaviour``.
    """

    def __init__(
        self,
        plugins: Iterable[ComparerPlugin],
        no_plugin_behaviour: ComparerNoPluginBehaviour = ComparerNoPluginBehaviour.THROW
    ):
        self.plugins = tuple(plugins)
        self.no_plugin_behaviour = no_plugin_behaviour

    @classmethod
    def default(
        cls,
        float_tolerance: float = 0.0,
        decimal_tolerance: Decimal | int | str = 0,
        case_insensitive: bool = False,
        trim_whitespace: bool = False,
        no_plugin_behaviour: ComparerNoPluginBehaviour = ComparerNoPluginBehaviour.THROW
    ) -> ObjectComparer:
        return cls(
            [
                NoneComparerPlugin(),
                BooleanComparerPlugin(),
                StringComparerPlugin(case_insensitive, trim_whitespace),
                IntegerComparerPlugin(),
                FloatComparerPlugin(float_tolerance),
                DecimalComparerPlugin(decimal_tolerance),
            ],
            no_plugin_behaviour,
        )

    def find_plugin(self, expected: Any, actual: Any) -> Optional[ComparerPlugin]:
        for plugin in self.plugins:
            if plugin.can_handle(expected, actual):
                return plugin
        return None

    def compare(self, path: str, expected: Any, actual: Any) -> ValueComparison:
        """
        Compare one pair of flat values.

        Args:
            path: Flat key of the values, used in error reporting
            expected: The expected value
            actual: The actual value

        Returns:
            ValueComparison from the resolved plugin
        """
        plugin = self.find_plugin(expected, actual)
        if plugin is not None:
            return plugin.compare(expected, actual)

        if self.no_plugin_behaviour == ComparerNoPluginBehaviour.REPORT_AS_DIFFERENCE:
            return ValueComparison(False)

        raise UnclaimedComparisonError(path, expected, actual)
