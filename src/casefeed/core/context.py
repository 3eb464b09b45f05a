"""
Request context for casefeed operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from casefeed.core.types import Role


@dataclass(frozen=True)
class Actor:
    """
    The authenticated identity making a request.

    Resolved once per request by the authentication collaborator and passed
    in verbatim. The visibility policy is evaluated against it.
    """

    id: str
    role: Role | str
    workspace_id: str | None = None
    contact_id: str | None = None

    def __post_init__(self) -> None:
        # Unknown role strings stay plain strings and fall through to the
        # scoped rules of the policy.
        if isinstance(self.role, str) and not isinstance(self.role, Role):
            try:
                object.__setattr__(self, "role", Role(self.role))
            except ValueError:
                pass

    @property
    def role_name(self) -> str:
        """The role as a plain string."""
        return self.role.value if isinstance(self.role, Role) else str(self.role)

    def has_role(self, *roles: Role | str) -> bool:
        """Check if the actor has any of the specified roles."""
        names = {r.value if isinstance(r, Role) else r for r in roles}
        return self.role_name in names


@dataclass
class RequestContext:
    """
    Execution context for a single feed request.

    Carries the actor, request tracking for logs and audit, and the client
    address used for rate limiting.
    """

    actor: Actor
    request_id: str = field(default_factory=lambda: str(uuid4()))
    client_address: str | None = None
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        *,
        actor_id: str,
        role: Role | str,
        workspace_id: str | None = None,
        contact_id: str | None = None,
        request_id: str | None = None,
        client_address: str | None = None,
    ) -> "RequestContext":
        """Convenience factory for creating a RequestContext."""
        actor = Actor(
            id=actor_id,
            role=role,
            workspace_id=workspace_id,
            contact_id=contact_id,
        )
        return cls(
            actor=actor,
            request_id=request_id or str(uuid4()),
            client_address=client_address,
        )
