"""
Interaction feed service.

The public read facade: Actor -> visibility policy -> predicate compiler ->
paginated executor -> projector.
"""

from typing import Any

from sqlalchemy import Engine, Integer, bindparam

from casefeed.config import FeedSettings
from casefeed.core.context import Actor
from casefeed.core.dsl import (
    Failure,
    FeedItem,
    FeedPage,
    InteractionFilter,
    SortSpec,
    parse_model,
)
from casefeed.core.errors import CaseFeedError, NotFoundError, ValidationError
from casefeed.db.models import Interaction
from casefeed.feed.projector import FeedProjector
from casefeed.logging import get_logger
from casefeed.policy.visibility import RoleVisibilityPolicy
from casefeed.query.compiler import CompiledPredicate, PredicateCompiler
from casefeed.query.executor import PaginatedQueryExecutor

logger = get_logger(__name__)


class InteractionFeedService:
    """
    Read side of the interaction feed.

    ``fetch`` never raises: validation and storage problems come back as a
    Failure. Single-record lookups raise NotFoundError so that callers can
    map them to a 404.

    Example:
        service = InteractionFeedService(engine)
        page = service.fetch(
            actor,
            filter={"priority": ["urgent"]},
            sort={"field": "caseNumber", "direction": "asc"},
            page=2,
            page_size=20,
        )
    """

    def __init__(
        self,
        engine: Engine,
        settings: FeedSettings | None = None,
        *,
        policy: RoleVisibilityPolicy | None = None,
        compiler: PredicateCompiler | None = None,
        executor: PaginatedQueryExecutor | None = None,
        projector: FeedProjector | None = None,
    ) -> None:
        self.settings = settings or FeedSettings()
        self.policy = policy or RoleVisibilityPolicy()
        self.compiler = compiler or PredicateCompiler(dialect=engine.dialect.name)
        self.executor = executor or PaginatedQueryExecutor(engine, self.settings)
        self.projector = projector or FeedProjector()

    def fetch(
        self,
        actor: Actor,
        filter: InteractionFilter | dict[str, Any] | None = None,
        sort: SortSpec | dict[str, Any] | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> FeedPage | Failure:
        """Fetch one page of the feed visible to ``actor``."""
        try:
            compiled = self._compile(actor, filter, sort)
            raw = self.executor.fetch_page(compiled, page, page_size)
        except CaseFeedError as e:
            logger.warning(
                "Feed request failed",
                actor_id=actor.id,
                error_code=e.code,
                error=e.message,
            )
            return Failure.from_error(e)
        return self.projector.build_page(raw)

    def get_interaction(self, actor: Actor, interaction_id: int | str) -> FeedItem:
        """
        Fetch one interaction the actor may see.

        Raises:
            NotFoundError: No such interaction, or it is not visible to the actor
            DataAccessError: The store could not be reached
        """
        try:
            key = int(interaction_id)
        except (TypeError, ValueError):
            raise NotFoundError("Interaction", interaction_id) from None

        compiled = self._compile(actor)
        rows = self.executor.fetch_rows(
            compiled,
            Interaction.id == bindparam("interaction_id", key, type_=Integer),
            limit=1,
        )
        if not rows:
            raise NotFoundError("Interaction", interaction_id)
        return self.projector.project_row(rows[0])

    def recent_interactions(self, actor: Actor, limit: int = 5) -> list[FeedItem]:
        """The newest ``limit`` interactions visible to the actor."""
        if not 1 <= limit <= self.settings.max_page_size:
            raise ValidationError(
                f"limit must be between 1 and {self.settings.max_page_size}",
                field="limit",
            )
        compiled = self._compile(actor)
        return self.projector.project(self.executor.fetch_rows(compiled, limit=limit))

    def _compile(
        self,
        actor: Actor,
        filter: InteractionFilter | dict[str, Any] | None = None,
        sort: SortSpec | dict[str, Any] | None = None,
    ) -> CompiledPredicate:
        scope = self.policy.evaluate(actor)
        return self.compiler.compile(
            scope,
            parse_model(InteractionFilter, filter, "filter"),
            parse_model(SortSpec, sort, "sort"),
        )
