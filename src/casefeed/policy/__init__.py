"""
casefeed Policy Module.

Contains the role- and assignment-based visibility policy.
"""

from casefeed.policy.visibility import (
    RoleVisibilityPolicy,
    VisibilityKind,
    VisibilityPredicate,
)

__all__ = [
    "RoleVisibilityPolicy",
    "VisibilityKind",
    "VisibilityPredicate",
]
