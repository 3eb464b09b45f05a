"""
Role- and assignment-based visibility policy.

The policy turns an Actor into the base predicate every feed query must carry.
It is evaluated as an ordered decision table, first match wins:

1. admin / developer            -> every case
2. workspace_user + contact_id  -> cases assigned to that contact as lawyer
                                   or as rental company, in any workspace
3. any other role + workspace   -> cases owned by that workspace
4. anything else                -> no case at all (fail-closed)

Rule 4 is not an error. Callers receive an empty page and must not treat the
actor differently.
"""

from enum import Enum

from pydantic import BaseModel, Field

from casefeed.core.context import Actor
from casefeed.core.types import Role
from casefeed.logging import get_logger

logger = get_logger(__name__)

UNRESTRICTED_ROLES = frozenset({Role.ADMIN.value, Role.DEVELOPER.value})


class VisibilityKind(str, Enum):
    """Shape of the base predicate."""

    UNRESTRICTED = "unrestricted"
    ASSIGNED_CONTACT = "assigned_contact"
    WORKSPACE = "workspace"
    DENY_ALL = "deny_all"


class VisibilityPredicate(BaseModel):
    """
    The base data-access predicate for one actor.

    ``value`` holds the contact id for ASSIGNED_CONTACT and the workspace id
    for WORKSPACE; it is None for the other kinds.
    """

    kind: VisibilityKind
    value: str | None = Field(default=None)
    rule: str = Field(default="", description="Decision table rule that produced this predicate")

    model_config = {"frozen": True}

    @classmethod
    def unrestricted(cls) -> "VisibilityPredicate":
        return cls(kind=VisibilityKind.UNRESTRICTED, rule="unrestricted_role")

    @classmethod
    def assigned_contact(cls, contact_id: str) -> "VisibilityPredicate":
        return cls(kind=VisibilityKind.ASSIGNED_CONTACT, value=contact_id, rule="own_case")

    @classmethod
    def workspace(cls, workspace_id: str) -> "VisibilityPredicate":
        return cls(kind=VisibilityKind.WORKSPACE, value=workspace_id, rule="workspace")

    @classmethod
    def deny_all(cls) -> "VisibilityPredicate":
        return cls(kind=VisibilityKind.DENY_ALL, rule="fail_closed")

    @property
    def is_unrestricted(self) -> bool:
        return self.kind == VisibilityKind.UNRESTRICTED

    @property
    def matches_nothing(self) -> bool:
        return self.kind == VisibilityKind.DENY_ALL


class RoleVisibilityPolicy:
    """
    Evaluates the visibility decision table for an actor.

    Pure and side-effect free apart from a debug log line; never raises.
    """

    def evaluate(self, actor: Actor) -> VisibilityPredicate:
        """Return the base predicate for ``actor``."""
        predicate = self._decide(actor)
        logger.debug(
            "Visibility resolved",
            actor_id=actor.id,
            role=actor.role_name,
            visibility=predicate.kind.value,
            visibility_rule=predicate.rule,
        )
        return predicate

    def _decide(self, actor: Actor) -> VisibilityPredicate:
        role = actor.role_name

        if role in UNRESTRICTED_ROLES:
            return VisibilityPredicate.unrestricted()

        if role == Role.WORKSPACE_USER.value and actor.contact_id:
            return VisibilityPredicate.assigned_contact(actor.contact_id)

        if actor.workspace_id:
            return VisibilityPredicate.workspace(actor.workspace_id)

        return VisibilityPredicate.deny_all()
