"""Flattening registry: turns tree nodes into flat path -> value mappings."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable, Optional

from .exceptions import DuplicateFlatKeyError, MalformedInputError, UnflattenableNodeError
from .models import DuplicateElementNameBehaviour, NoPluginBehaviour
from .nodes import TreeNode

logger = logging.getLogger(__name__)

FlatPair = tuple[str, Any]


class FlatteningPlugin:
    """
    Base class for flattening plugins.

    A plugin claims a node through ``can_handle`` and then produces the
    (path, value) pairs for it, calling back into the flattener for any
    sub-node it does not flatten itself.
    """

    def can_handle(self, prefix: Optional[str], node: TreeNode) -> bool:
        raise NotImplementedError

    def flatten(
        self,
        flattener: ObjectFlattener,
        prefix: Optional[str],
        node: TreeNode
    ) -> list[FlatPair]:
        raise NotImplementedError


class ObjectFlattener:
    """
    Ordered, read-only chain of flattening plugins.

    Plugins are tried in the order given; the first one whose
    ``can_handle`` returns True flattens the node and later plugins are
    never consulted for it.
    """

    def __init__(
        self,
        plugins: Iterable[FlatteningPlugin],
        no_plugin_behaviour: NoPluginBehaviour = NoPluginBehaviour.THROW,
        separator: str = "."
    ):
        self.plugins = tuple(plugins)
        self.no_plugin_behaviour = no_plugin_behaviour
        self.separator = separator

    @classmethod
    def default(
        cls,
        domain_plugins: Iterable[FlatteningPlugin] = (),
        duplicate_names: DuplicateElementNameBehaviour = DuplicateElementNameBehaviour.INDEX,
        disambiguating_attribute: Optional[str] = None,
        no_plugin_behaviour: NoPluginBehaviour = NoPluginBehaviour.THROW,
        separator: str = "."
    ) -> ObjectFlattener:
        """
        Build the standard chain: domain plugins first, then the generic
        structural and scalar plugins.
        """
        plugins = list(domain_plugins)
        plugins.append(StructuralPlugin(duplicate_names, disambiguating_attribute))
        plugins.append(ScalarPlugin())
        return cls(plugins, no_plugin_behaviour, separator)

    def join(self, prefix: Optional[str], segment: Any) -> str:
        """Append a segment to a path prefix."""
        if not prefix:
            return str(segment)
        return f"{prefix}{self.separator}{segment}"

    def flatten(self, prefix: Optional[str], node: TreeNode) -> list[FlatPair]:
        """
        Flatten a node using the first plugin that claims it.

        Args:
            prefix: Path of the node (None or "" at the record root)
            node: The node to flatten

        Returns:
            List of (path, value) pairs
        """
        for plugin in self.plugins:
            if plugin.can_handle(prefix, node):
                return plugin.flatten(self, prefix, node)

        if self.no_plugin_behaviour == NoPluginBehaviour.SKIP:
            logger.warning(
                "No flattening plugin for node '%s' at path '%s', skipping",
                node.name, prefix or "<root>"
            )
            return []

        raise UnflattenableNodeError(prefix or "", node.name)

    def flatten_record(self, node: TreeNode) -> dict[str, Any]:
        """Flatten a whole record, rejecting duplicate keys."""
        result: dict[str, Any] = {}
        for key, value in self.flatten(None, node):
            if key in result:
                raise DuplicateFlatKeyError(key)
            result[key] = value
        return result


class StructuralPlugin(FlatteningPlugin):
    """
    Generic fallback for container nodes.

    Attributes become ``<prefix>.<attr>``; children are flattened under
    ``<prefix>.<name>`` (or ``<prefix>.<index>`` for sequences). Repeated
    sibling names are disambiguated according to ``duplicate_names``.
    """

    def __init__(
        self,
        duplicate_names: DuplicateElementNameBehaviour = DuplicateElementNameBehaviour.INDEX,
        disambiguating_attribute: Optional[str] = None
    ):
        self.duplicate_names = duplicate_names
        self.disambiguating_attribute = disambiguating_attribute

    def can_handle(self, prefix: Optional[str], node: TreeNode) -> bool:
        return node.is_container

    def flatten(
        self,
        flattener: ObjectFlattener,
        prefix: Optional[str],
        node: TreeNode
    ) -> list[FlatPair]:
        pairs: list[FlatPair] = [
            (flattener.join(prefix, name), value)
            for name, value in node.attributes.items()
        ]

        if node.is_sequence:
            for index, child in enumerate(node.children):
                pairs.extend(flattener.flatten(flattener.join(prefix, index), child))
            return pairs

        name_counts = Counter(child.name for child in node.children)
        positions: Counter = Counter()

        for child in node.children:
            child_prefix = flattener.join(prefix, child.name)
            if name_counts[child.name] > 1:
                segment = self._disambiguator(prefix, child, positions[child.name])
                child_prefix = flattener.join(child_prefix, segment)
            positions[child.name] += 1
            pairs.extend(flattener.flatten(child_prefix, child))

        return pairs

    def _disambiguator(self, prefix: Optional[str], child: TreeNode, position: int) -> Any:
        if self.duplicate_names == DuplicateElementNameBehaviour.THROW:
            raise MalformedInputError(
                f"Duplicate element name '{child.name}' under '{prefix or '<root>'}'",
                {"path": prefix or "", "name": child.name}
            )
        if self.duplicate_names == DuplicateElementNameBehaviour.ATTRIBUTE:
            value = child.attributes.get(self.disambiguating_attribute or "")
            if value not in (None, ""):
                return value
        return position


class ScalarPlugin(FlatteningPlugin):
    """Emits a scalar node's value, plus any attributes it carries."""

    def can_handle(self, prefix: Optional[str], node: TreeNode) -> bool:
        return node.is_scalar

    def flatten(
        self,
        flattener: ObjectFlattener,
        prefix: Optional[str],
        node: TreeNode
    ) -> list[FlatPair]:
        pairs: list[FlatPair] = [(prefix or "", node.value)]
        for name, value in node.attributes.items():
            pairs.append((flattener.join(prefix, name), value))
        return pairs
