"""
flatdiff - Order-independent comparison of XML/JSON record collections

Records are flattened into dotted-path -> scalar mappings by a chain of
pluggable flattening plugins, matched across the expected and actual
collections by a caller-defined business key, and diffed path by path
using type-aware comparer plugins.
"""

from .engine import SetComparer, compare
from .models import (
    ABSENT,
    BusinessKey,
    ComparerNoPluginBehaviour,
    ComparisonOutcome,
    ComparisonResult,
    Difference,
    DuplicateElementNameBehaviour,
    EngineConfig,
    ErrorKind,
    ErrorResponse,
    IncomparableEntry,
    MismatchedKeysBehaviour,
    NoPluginBehaviour,
    ValueComparison,
)
from .nodes import (
    NodeKind,
    TreeNode,
    from_json,
    from_xml,
    to_tree,
)
from .flattener import (
    FlatteningPlugin,
    ObjectFlattener,
    ScalarPlugin,
    StructuralPlugin,
)
from .risk import RiskNodeFlattener
from .comparators import (
    BooleanComparerPlugin,
    ComparerPlugin,
    DecimalComparerPlugin,
    FloatComparerPlugin,
    IntegerComparerPlugin,
    NoneComparerPlugin,
    ObjectComparer,
    StringComparerPlugin,
)
from .differ import Differ
from .exceptions import (
    ConfigurationError,
    DuplicateFlatKeyError,
    FlatDiffError,
    MalformedInputError,
    UnclaimedComparisonError,
    UnflattenableNodeError,
)
from .config import ComparisonConfig
from .runner import ComparisonRunner, load_document, run_comparison

__version__ = "1.0.0"
__all__ = [
    # Engine
    "SetComparer",
    "compare",
    "EngineConfig",
    "Differ",
    # Results
    "ABSENT",
    "BusinessKey",
    "ComparisonResult",
    "ComparisonOutcome",
    "Difference",
    "IncomparableEntry",
    "ValueComparison",
    "ErrorResponse",
    "ErrorKind",
    # Policies
    "NoPluginBehaviour",
    "ComparerNoPluginBehaviour",
    "MismatchedKeysBehaviour",
    "DuplicateElementNameBehaviour",
    # Tree nodes
    "NodeKind",
    "TreeNode",
    "from_json",
    "from_xml",
    "to_tree",
    # Flattening
    "FlatteningPlugin",
    "ObjectFlattener",
    "StructuralPlugin",
    "ScalarPlugin",
    "RiskNodeFlattener",
    # Value comparison
    "ComparerPlugin",
    "ObjectComparer",
    "NoneComparerPlugin",
    "BooleanComparerPlugin",
    "StringComparerPlugin",
    "IntegerComparerPlugin",
    "FloatComparerPlugin",
    "DecimalComparerPlugin",
    # Errors
    "FlatDiffError",
    "ConfigurationError",
    "UnflattenableNodeError",
    "UnclaimedComparisonError",
    "MalformedInputError",
    "DuplicateFlatKeyError",
    # Runner
    "ComparisonConfig",
    "ComparisonRunner",
    "load_document",
    "run_comparison",
]
