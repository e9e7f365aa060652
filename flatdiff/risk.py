"""Flattening plugin that explodes a ``risks`` node into one value per risk atom."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .exceptions import MalformedInputError
from .flattener import FlatPair, FlatteningPlugin, ObjectFlattener
from .nodes import TreeNode

# Identifying attributes of each risk kind, in key order
RISK_DIMENSIONS: dict[str, tuple[str, ...]] = {
    "value": ("ccy",),
    "fxdelta": ("ccy",),
    "fxvega": ("ccyPair", "expiry", "ccy"),
}


def parse_risk_value(text: Optional[str], unknown: str = "unknown") -> Any:
    """Parse a risk payload as a Decimal where possible, else keep the text."""
    if text is None:
        return unknown
    if text.strip():
        try:
            value = Decimal(text.strip())
        except InvalidOperation:
            return text
        if value.is_finite():
            return value
    return text


class RiskNodeFlattener(FlatteningPlugin):
    """
    Treats each child of a ``risks`` node as a single unit of comparison.

    The XML form spreads one risk value over several attributes, e.g.::

        <risks>
            <value ccy="GBP" value="1250.5"/>
            <fxvega ccyPair="EURGBP" expiry="1M" ccy="GBP" value="12.1"/>
        </risks>

    Flattening attribute by attribute would compare ``ccy`` and ``value``
    independently. This plugin instead emits ``risks.value-GBP`` and
    ``risks.fxvega-EURGBP-1M-GBP``, so ordering inside the node does not
    matter and each risk is compared as one value.
    """

    def __init__(
        self,
        node_name: str = "risks",
        dimensions: Optional[dict[str, tuple[str, ...]]] = None,
        unknown_value: str = "unknown",
        missing_dimension: str = "missing"
    ):
        self.node_name = node_name
        self.dimensions = dimensions if dimensions is not None else RISK_DIMENSIONS
        self.unknown_value = unknown_value
        self.missing_dimension = missing_dimension

    def can_handle(self, prefix: Optional[str], node: TreeNode) -> bool:
        return node.is_container and node.name == self.node_name

    def flatten(
        self,
        flattener: ObjectFlattener,
        prefix: Optional[str],
        node: TreeNode
    ) -> list[FlatPair]:
        pairs: list[FlatPair] = []

        for risk in node.children:
            kind = (risk.name or "").lower()
            dimensions = self.dimensions.get(kind)
            if dimensions is None:
                raise MalformedInputError(
                    f"Unable to flatten risk node '{risk.name}'",
                    {"path": prefix or "", "kind": risk.name}
                )

            parts = [kind]
            for attribute in dimensions:
                parts.append(str(risk.attributes.get(attribute, self.missing_dimension)))

            value = parse_risk_value(risk.attributes.get("value"), self.unknown_value)
            pairs.append((flattener.join(prefix, "-".join(parts)), value))

        return pairs
