"""Tree node model shared by XML and JSON documents."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class NodeKind(Enum):
    CONTAINER = "container"
    SCALAR = "scalar"


@dataclass(frozen=True)
class TreeNode:
    """
    Read-only view of one node of a parsed document.

    Containers hold children (named for XML elements and JSON objects,
    unnamed for JSON arrays); scalars hold a single value. XML attributes
    are kept on both kinds. ``source`` is the raw parser object the node
    was built from.
    """
    name: Optional[str]
    kind: NodeKind
    children: tuple[TreeNode, ...] = ()
    value: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)
    is_sequence: bool = False
    source: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def is_container(self) -> bool:
        return self.kind is NodeKind.CONTAINER

    @property
    def is_scalar(self) -> bool:
        return self.kind is NodeKind.SCALAR

    def child(self, name: str) -> Optional[TreeNode]:
        """Return the first child with the given name."""
        for node in self.children:
            if node.name == name:
                return node
        return None


def local_name(tag: str) -> str:
    """Strip a '{namespace}' prefix from an element tag."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def is_xml_element(obj: Any) -> bool:
    if isinstance(obj, ET.Element):
        return True
    # lxml elements expose the same API without subclassing ET.Element
    return hasattr(obj, "tag") and hasattr(obj, "attrib") and isinstance(getattr(obj, "tag"), str)


def from_xml(element: Any) -> TreeNode:
    """
    Build a TreeNode from an ElementTree element.

    An element without child elements whose text is not blank becomes a
    scalar holding the stripped text; every other element is a container.
    """
    children = tuple(from_xml(child) for child in element if isinstance(child.tag, str))
    attributes = {local_name(k): v for k, v in element.attrib.items()}
    name = local_name(element.tag)
    text = (element.text or "").strip()

    if not children and text:
        return TreeNode(
            name=name,
            kind=NodeKind.SCALAR,
            value=text,
            attributes=attributes,
            source=element,
        )

    return TreeNode(
        name=name,
        kind=NodeKind.CONTAINER,
        children=children,
        attributes=attributes,
        source=element,
    )


def from_json(value: Any, name: Optional[str] = None) -> TreeNode:
    """Build a TreeNode from a decoded JSON value."""
    if isinstance(value, dict):
        return TreeNode(
            name=name,
            kind=NodeKind.CONTAINER,
            children=tuple(from_json(v, str(k)) for k, v in value.items()),
            source=value,
        )
    if isinstance(value, (list, tuple)):
        return TreeNode(
            name=name,
            kind=NodeKind.CONTAINER,
            children=tuple(from_json(v) for v in value),
            is_sequence=True,
            source=value,
        )
    return TreeNode(name=name, kind=NodeKind.SCALAR, value=value, source=value)


def to_tree(record: Any) -> TreeNode:
    """Convert a raw record (TreeNode, XML element or JSON value) to a TreeNode."""
    if isinstance(record, TreeNode):
        return record
    if is_xml_element(record):
        return from_xml(record)
    return from_json(record)


def source_of(record: Any) -> Any:
    """Return the raw parser object behind a record."""
    if isinstance(record, TreeNode):
        return record.source
    return record
