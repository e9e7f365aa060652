"""Example usage of the flatdiff comparison engine."""

import xml.etree.ElementTree as ET
from pathlib import Path

from flatdiff import (
    ObjectComparer,
    ObjectFlattener,
    RiskNodeFlattener,
    SetComparer,
    DuplicateElementNameBehaviour,
    to_tree,
)
from flatdiff.report import print_summary, to_json

SAMPLES = Path(__file__).parent / "samples"


def request_key(index, element):
    """Requests are identified by their 'key' attribute."""
    keys = {}
    if element.get("key") is not None:
        keys["id"] = element.get("key")
    return keys


def main():
    print("=" * 60)
    print("flatdiff - Pricing request comparison")
    print("=" * 60)

    expected = ET.parse(SAMPLES / "expected_requests.xml").getroot()
    actual = ET.parse(SAMPLES / "actual_requests.xml").getroot()

    # Ordering matters: the risk plugin must see 'risks' nodes before the
    # generic structural plugin does
    flattener = ObjectFlattener.default(
        domain_plugins=[RiskNodeFlattener()],
        duplicate_names=DuplicateElementNameBehaviour.THROW,
    )
    comparer = ObjectComparer.default()

    engine = SetComparer(flattener, comparer)
    result = engine.compare(request_key, expected.findall("request"), actual.findall("request"))

    if not hasattr(result, "passed"):
        print(f"\nError: {result.error_kind.value}")
        print(f"Message: {result.message}")
        print(f"Details: {result.details}")
        return

    # What a single request looks like once flattened
    request = actual.find("request[@key='Vanilla-Put-EURGBP-1M-ATM']")
    print("\nFlattened request:")
    for key, value in flattener.flatten_record(to_tree(request)).items():
        print(f"  - {key} = {value}")
    print()

    print_summary(result)

    print("\n" + "-" * 60)
    print("Full JSON Report:")
    print(to_json(result))


def example_json_arrays():
    """Order-independent comparison of a JSON array keyed on 'key'."""
    import json
    from decimal import Decimal

    print("\n" + "=" * 60)
    print("Example with JSON arrays")
    print("=" * 60)

    with open(SAMPLES / "expected_objects.json") as f:
        expected = json.load(f, parse_float=Decimal)
    with open(SAMPLES / "actual_objects.json") as f:
        actual = json.load(f, parse_float=Decimal)

    engine = SetComparer()
    result = engine.compare(lambda idx, obj: {"key": obj["key"]}, expected, actual)
    print_summary(result)


if __name__ == "__main__":
    main()
    example_json_arrays()
