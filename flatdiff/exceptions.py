"""Custom exceptions for the flatdiff engine."""

from typing import Any


class FlatDiffError(Exception):
    """Base exception for flatdiff errors."""
    pass


class ConfigurationError(FlatDiffError):
    """Raised when a comparison is configured with invalid values."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnflattenableNodeError(FlatDiffError):
    """Raised when no flattening plugin claims a node."""
    def __init__(self, path: str, node_name: Any = None):
        super().__init__(
            f"No flattening plugin available for node '{node_name}' at path: {path or '<root>'}"
        )
        self.path = path
        self.node_name = node_name


class UnclaimedComparisonError(FlatDiffError):
    """Raised when no comparer plugin claims a pair of values."""
    def __init__(self, path: str, expected: Any, actual: Any):
        self.expected_type = type(expected).__name__
        self.actual_type = type(actual).__name__
        super().__init__(
            f"No comparison plugin available for {self.expected_type} vs "
            f"{self.actual_type} at path: {path}"
        )
        self.path = path


class MalformedInputError(FlatDiffError):
    """Raised when a node does not have the shape a plugin requires."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DuplicateFlatKeyError(FlatDiffError):
    """Raised when flattening one record produces the same key twice."""
    def __init__(self, key: str):
        super().__init__(f"Flat key produced more than once: {key}")
        self.key = key
