"""
Interaction write path.

Create, update and delete interactions on behalf of an actor. Every write is
reported to an audit hook, synchronously, after the write has settled.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Protocol

from sqlalchemy import Engine, select
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from casefeed.core.context import Actor
from casefeed.core.dsl import CreateInteraction, UpdateInteraction, parse_model
from casefeed.core.errors import CaseFeedError, DataAccessError, NotFoundError, ValidationError
from casefeed.db.models import Case, Interaction, utcnow
from casefeed.db.session import SessionManager
from casefeed.logging import get_logger
from casefeed.policy.visibility import RoleVisibilityPolicy
from casefeed.query.compiler import PredicateCompiler

logger = get_logger(__name__)

TARGET_TYPE = "interaction"


class AuditHook(Protocol):
    """Anything with a compatible ``record``; AuditStore implementations qualify."""

    def record(
        self,
        action: str,
        actor_id: str,
        target_type: str,
        target_id: Any,
        status: str,
    ) -> Any: ...


class InteractionWriter:
    """
    Writes interactions against cases the actor can see.

    Writes against missing or invisible records raise NotFoundError. Storage
    errors roll the transaction back and raise DataAccessError. A failing
    audit hook is logged and otherwise ignored; it never undoes a write.
    """

    def __init__(
        self,
        engine: Engine,
        audit: AuditHook | None = None,
        *,
        policy: RoleVisibilityPolicy | None = None,
        session_manager: SessionManager | None = None,
    ) -> None:
        self.audit = audit
        self.policy = policy or RoleVisibilityPolicy()
        self.compiler = PredicateCompiler(dialect=engine.dialect.name)
        self.sessions = session_manager or SessionManager(engine)

    def create(
        self,
        actor: Actor,
        data: CreateInteraction | dict[str, Any],
    ) -> Interaction:
        """Log a new interaction against a visible case."""
        action = "interaction.create"
        try:
            payload = parse_model(CreateInteraction, data, "interaction")
            with self._transaction(action) as session:
                case = self._visible_case(session, actor, payload.case_id)
                now = utcnow()
                interaction = Interaction(
                    case_id=case.id,
                    case_number=case.case_number,
                    interaction_type=payload.interaction_type.value,
                    timestamp=payload.timestamp or now,
                    contact_name=payload.contact_name,
                    contact_phone=payload.contact_phone,
                    contact_email=payload.contact_email,
                    situation=payload.situation,
                    action_taken=payload.action_taken,
                    outcome=payload.outcome,
                    priority=payload.priority.value,
                    status=payload.status.value,
                    tags=list(payload.tags),
                    created_by=actor.id,
                    created_at=now,
                    updated_at=now,
                )
                session.add(interaction)
                session.flush()
        except CaseFeedError:
            self._audit(action, actor, None, "failure")
            raise

        logger.info(
            "Interaction created",
            actor_id=actor.id,
            interaction_id=interaction.id,
            case_id=interaction.case_id,
        )
        self._audit(action, actor, interaction.id, "success")
        return interaction

    def update(
        self,
        actor: Actor,
        interaction_id: int,
        data: UpdateInteraction | dict[str, Any],
    ) -> Interaction:
        """Change priority, status or tags of a visible interaction."""
        action = "interaction.update"
        try:
            changes = parse_model(UpdateInteraction, data, "update").changes()
            if not changes:
                raise ValidationError(
                    "Update must set at least one of priority, status, tags",
                    retry_hints=["Only priority, status and tags can be changed"],
                )
            with self._transaction(action) as session:
                interaction = self._visible_interaction(session, actor, interaction_id)
                for name, value in changes.items():
                    setattr(interaction, name, list(value) if name == "tags" else value)
                interaction.updated_by = actor.id
                interaction.updated_at = utcnow()
                session.flush()
        except CaseFeedError:
            self._audit(action, actor, interaction_id, "failure")
            raise

        logger.info(
            "Interaction updated",
            actor_id=actor.id,
            interaction_id=interaction.id,
            fields=sorted(changes),
        )
        self._audit(action, actor, interaction.id, "success")
        return interaction

    def delete(self, actor: Actor, interaction_id: int) -> None:
        """Permanently delete a visible interaction."""
        action = "interaction.delete"
        try:
            with self._transaction(action) as session:
                interaction = self._visible_interaction(session, actor, interaction_id)
                session.delete(interaction)
        except CaseFeedError:
            self._audit(action, actor, interaction_id, "failure")
            raise

        logger.info("Interaction deleted", actor_id=actor.id, interaction_id=interaction_id)
        self._audit(action, actor, interaction_id, "success")

    def _visible_case(self, session: Session, actor: Actor, case_id: str) -> Case:
        scope = self.policy.evaluate(actor)
        stmt = select(Case).where(Case.id == case_id, self.compiler.scope_condition(scope))
        case = session.execute(stmt).scalar_one_or_none()
        if case is None:
            raise NotFoundError("Case", case_id)
        return case

    def _visible_interaction(
        self, session: Session, actor: Actor, interaction_id: int
    ) -> Interaction:
        try:
            key = int(interaction_id)
        except (TypeError, ValueError):
            raise NotFoundError("Interaction", interaction_id) from None

        scope = self.policy.evaluate(actor)
        stmt = (
            select(Interaction)
            .outerjoin(Case, Case.id == Interaction.case_id)
            .where(Interaction.id == key, self.compiler.scope_condition(scope))
        )
        interaction = session.execute(stmt).scalar_one_or_none()
        if interaction is None:
            raise NotFoundError("Interaction", interaction_id)
        return interaction

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Session, None, None]:
        try:
            with self.sessions.session() as session:
                yield session
        except sa_exc.SQLAlchemyError as e:
            logger.error("Write failed and was rolled back", operation=operation, error=str(e))
            raise DataAccessError(operation, e) from e

    def _audit(self, action: str, actor: Actor, target_id: Any, status: str) -> None:
        if self.audit is None:
            return
        try:
            self.audit.record(action, actor.id, TARGET_TYPE, target_id, status)
        except Exception:
            logger.exception(
                "Audit hook failed",
                action=action,
                actor_id=actor.id,
                target_id=target_id,
                audit_status=status,
            )
