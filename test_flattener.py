"""Tests for tree nodes, the flattening registry and the risk plugin."""

import logging
import xml.etree.ElementTree as ET
from decimal import Decimal

import pytest
from flatdiff import (
    DuplicateElementNameBehaviour,
    DuplicateFlatKeyError,
    FlatteningPlugin,
    MalformedInputError,
    NoPluginBehaviour,
    ObjectFlattener,
    RiskNodeFlattener,
    ScalarPlugin,
    StructuralPlugin,
    UnflattenableNodeError,
    from_json,
    from_xml,
    to_tree,
)


def xml(text):
    return from_xml(ET.fromstring(text))


class TestTreeNodes:
    """Test conversion of parsed documents to tree nodes."""

    def test_json_object_and_array(self):
        """Test dicts become named containers and lists unnamed sequences."""
        node = from_json({"a": 1, "b": [1, 2]})
        assert node.is_container
        assert node.child("a").is_scalar
        assert node.child("a").value == 1
        assert node.child("b").is_sequence
        assert [c.name for c in node.child("b").children] == [None, None]

    def test_xml_leaf_with_text_is_scalar(self):
        """Test an element with text and no children becomes a scalar."""
        node = xml('<r><name lang="en"> Bob </name><empty/></r>')
        name = node.child("name")
        assert name.is_scalar
        assert name.value == "Bob"
        assert name.attributes == {"lang": "en"}
        assert node.child("empty").is_container

    def test_nodes_are_hashable_and_read_only(self):
        """Test equal nodes hash alike and attributes cannot be mutated."""
        first = xml('<r id="1"><a>1</a></r>')
        second = xml('<r id="1"><a>1</a></r>')
        assert first == second
        assert len({first, second}) == 1
        with pytest.raises(TypeError):
            first.attributes["id"] = "2"

    def test_xml_namespaces_are_stripped(self):
        """Test namespace prefixes are removed from tag names."""
        node = xml('<r xmlns="urn:test"><a>1</a></r>')
        assert node.name == "r"
        assert node.child("a").value == "1"

    def test_to_tree_keeps_source(self):
        """Test the raw record is retained on the node."""
        element = ET.fromstring('<r a="1"/>')
        node = to_tree(element)
        assert node.source is element
        assert to_tree(node) is node


class TestObjectFlattener:
    """Test the generic flattening chain."""

    def setup_method(self):
        self.flattener = ObjectFlattener.default()

    def test_nested_json(self):
        """Test nested objects become dotted paths."""
        record = {"id": "A", "v": 1, "hack": {"nestedProp": "x"}}
        flat = self.flattener.flatten_record(to_tree(record))
        assert flat == {"id": "A", "v": 1, "hack.nestedProp": "x"}

    def test_json_sequence_uses_indexes(self):
        """Test array items are addressed by position."""
        flat = self.flattener.flatten_record(to_tree({"tags": ["x", "y"]}))
        assert flat == {"tags.0": "x", "tags.1": "y"}

    def test_xml_attributes_and_children(self):
        """Test attributes and child elements of an XML record."""
        node = xml('<request key="A"><trade type="call" strike="1.5"/><note>hi</note></request>')
        flat = self.flattener.flatten_record(node)
        assert flat == {
            "key": "A",
            "trade.type": "call",
            "trade.strike": "1.5",
            "note": "hi",
        }

    def test_repeated_names_indexed(self):
        """Test repeated sibling names get a positional disambiguator."""
        node = xml('<r><leg id="a">1</leg><leg id="b">2</leg></r>')
        flat = self.flattener.flatten_record(node)
        assert flat == {"leg.0": "1", "leg.0.id": "a", "leg.1": "2", "leg.1.id": "b"}

    def test_repeated_names_by_attribute(self):
        """Test repeated sibling names disambiguated by an attribute."""
        flattener = ObjectFlattener.default(
            duplicate_names=DuplicateElementNameBehaviour.ATTRIBUTE,
            disambiguating_attribute="id",
        )
        node = xml('<r><leg id="a">1</leg><leg>2</leg></r>')
        flat = flattener.flatten_record(node)
        assert flat == {"leg.a": "1", "leg.a.id": "a", "leg.1": "2"}

    def test_repeated_names_throw(self):
        """Test repeated sibling names rejected when configured to throw."""
        flattener = ObjectFlattener.default(duplicate_names=DuplicateElementNameBehaviour.THROW)
        with pytest.raises(MalformedInputError):
            flattener.flatten_record(xml("<r><leg>1</leg><leg>2</leg></r>"))

    def test_custom_separator(self):
        """Test the path separator is configurable."""
        flattener = ObjectFlattener.default(separator="/")
        flat = flattener.flatten_record(to_tree({"hack": {"nestedProp": "x"}}))
        assert flat == {"hack/nestedProp": "x"}

    def test_first_matching_plugin_wins(self):
        """Test plugins are consulted in order and the first claim is final."""
        calls = []

        class MaskPlugin(FlatteningPlugin):
            def can_handle(self, prefix, node):
                return node.name == "hack"

            def flatten(self, flattener, prefix, node):
                return [(prefix, "masked")]

        class RecordingPlugin(FlatteningPlugin):
            def can_handle(self, prefix, node):
                calls.append(prefix)
                return True

            def flatten(self, flattener, prefix, node):
                return []

        flattener = ObjectFlattener([MaskPlugin(), StructuralPlugin(), ScalarPlugin(), RecordingPlugin()])
        flat = flattener.flatten_record(to_tree({"id": "A", "hack": {"nestedProp": "x"}}))
        assert flat == {"id": "A", "hack": "masked"}
        assert calls == []

    def test_no_plugin_throws_by_default(self):
        """Test an unclaimed node is a fatal error."""
        flattener = ObjectFlattener([ScalarPlugin()])
        with pytest.raises(UnflattenableNodeError):
            flattener.flatten_record(to_tree({"a": 1}))

    def test_no_plugin_skip_with_warning(self, caplog):
        """Test lenient policy skips unclaimed nodes and logs a warning."""
        flattener = ObjectFlattener([StructuralPlugin()], NoPluginBehaviour.SKIP)
        with caplog.at_level(logging.WARNING, logger="flatdiff.flattener"):
            flat = flattener.flatten_record(to_tree({"a": 1, "b": {"c": 2}}))
        assert flat == {}
        assert "No flattening plugin" in caplog.text

    def test_duplicate_flat_key_rejected(self):
        """Test a record producing the same key twice is an error."""
        with pytest.raises(DuplicateFlatKeyError):
            self.flattener.flatten_record(xml('<r a="1"><a>2</a></r>'))

    def test_flatten_is_idempotent(self):
        """Test flattening the same node twice yields the same pairs."""
        node = xml('<r k="1"><x>1</x><y><z a="b"/></y></r>')
        assert self.flattener.flatten(None, node) == self.flattener.flatten(None, node)


RISKS_XML = """
<request key="A">
    <risks>
        <value ccy="GBP" value="1250.50"/>
        <fxdelta ccy="EUR" value="-3"/>
        <fxvega ccyPair="EURGBP" expiry="1M" ccy="GBP" value="12.1"/>
    </risks>
</request>
"""


class TestRiskNodeFlattener:
    """Test the risk exploding plugin."""

    def setup_method(self):
        self.flattener = ObjectFlattener.default(domain_plugins=[RiskNodeFlattener()])

    def test_one_key_per_risk(self):
        """Test each risk becomes one key built from its dimensions."""
        flat = self.flattener.flatten_record(xml(RISKS_XML))
        assert flat == {
            "key": "A",
            "risks.value-GBP": Decimal("1250.50"),
            "risks.fxdelta-EUR": Decimal("-3"),
            "risks.fxvega-EURGBP-1M-GBP": Decimal("12.1"),
        }

    def test_exploded_container_two_kinds(self):
        """Test two measures of different kinds produce exactly two keys."""
        node = xml('<risks><value ccy="GBP" value="1"/><fxdelta ccy="EUR" value="2"/></risks>')
        pairs = self.flattener.flatten("risks", node)
        assert [k for k, _ in pairs] == ["risks.value-GBP", "risks.fxdelta-EUR"]

    def test_missing_dimension_uses_sentinel(self):
        """Test absent dimensions are replaced, not rejected."""
        node = xml('<r><risks><fxvega ccy="GBP" value="1"/></risks></r>')
        flat = self.flattener.flatten_record(node)
        assert flat == {"risks.fxvega-missing-missing-GBP": Decimal("1")}

    def test_non_numeric_and_missing_values(self):
        """Test non-numeric payloads stay strings and missing ones are 'unknown'."""
        node = xml('<r><risks><value ccy="GBP" value="N/A"/><fxdelta ccy="EUR"/></risks></r>')
        flat = self.flattener.flatten_record(node)
        assert flat == {"risks.value-GBP": "N/A", "risks.fxdelta-EUR": "unknown"}

    def test_kind_matched_case_insensitively(self):
        """Test risk kind names are lower-cased."""
        node = xml('<r><risks><FXDelta ccy="EUR" value="1"/></risks></r>')
        assert list(self.flattener.flatten_record(node)) == ["risks.fxdelta-EUR"]

    def test_unknown_kind_is_fatal(self):
        """Test an unexpected risk kind fails fast."""
        node = xml('<r><risks><gamma ccy="EUR" value="1"/></risks></r>')
        with pytest.raises(MalformedInputError):
            self.flattener.flatten_record(node)

    def test_risks_at_root_have_no_leading_separator(self):
        """Test keys when the risks node is the record itself."""
        node = xml('<risks><value ccy="USD" value="5"/></risks>')
        assert self.flattener.flatten_record(node) == {"value-USD": Decimal("5")}

    def test_only_claims_risks_containers(self):
        """Test claiming is by node name only."""
        plugin = RiskNodeFlattener()
        assert plugin.can_handle("a.b.c", xml('<risks><value ccy="GBP" value="1"/></risks>'))
        assert not plugin.can_handle("risks", xml('<other/>'))
