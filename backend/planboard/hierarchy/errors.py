from __future__ import annotations


class HierarchyError(ValueError):
    """Base class for milestone hierarchy failures."""


class HierarchyInputError(HierarchyError):
    """Raised for missing or out-of-range engine arguments."""


class CyclicHierarchyError(HierarchyError):
    """Raised when a milestone is reachable from its own subtree."""
