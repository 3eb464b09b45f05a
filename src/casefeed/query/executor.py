"""
Paginated query execution.

Runs the over-fetch page query and the independent count query for a
compiled predicate over one pooled connection.
"""

import time
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Connection, Engine, RowMapping, Select, func, select
from sqlalchemy import exc as sa_exc

from casefeed.config import FeedSettings
from casefeed.core.dsl import Failure
from casefeed.core.errors import CaseFeedError, DataAccessError, ValidationError
from casefeed.core.types import CountFailureMode
from casefeed.db.models import Case, Interaction
from casefeed.logging import get_logger
from casefeed.query.compiler import CompiledPredicate

logger = get_logger(__name__)

# Interaction columns plus the case context, labelled as they appear in a feed item.
FEED_COLUMNS = (
    *Interaction.__table__.columns,
    Case.client_name.label("case_client_name"),
    Case.accident_date.label("incident_date"),
    Case.status.label("case_status"),
    Case.client_insurance_company.label("insurance_company"),
    Case.lawyer.label("lawyer_assigned"),
    Case.rental_company.label("rental_company"),
)


def _joined(stmt: Select) -> Select:
    # Outer join: interactions whose case was deleted still come back.
    return stmt.select_from(Interaction).outerjoin(Case, Case.id == Interaction.case_id)


def feed_select(compiled: CompiledPredicate, *extra: Any) -> Select:
    """Ordered SELECT of feed rows for a compiled predicate."""
    return (
        _joined(select(*FEED_COLUMNS))
        .where(*compiled.conditions, *extra)
        .order_by(*compiled.order_by)
    )


def count_select(compiled: CompiledPredicate) -> Select:
    """COUNT over the same join and conditions as :func:`feed_select`."""
    return _joined(select(func.count(Interaction.id))).where(*compiled.conditions)


@dataclass
class RawPage:
    """Rows of one page before projection."""

    rows: list[RowMapping] = field(default_factory=list)
    total_count: int | None = 0
    has_more: bool = False
    page: int = 1
    page_size: int = 20


class PaginatedQueryExecutor:
    """
    Executes compiled feed queries with over-fetch pagination.

    Example:
        executor = PaginatedQueryExecutor(engine, FeedSettings())
        result = executor.execute(compiled, page=2, page_size=20)
        if isinstance(result, Failure):
            ...
    """

    def __init__(self, engine: Engine, settings: FeedSettings | None = None) -> None:
        self.engine = engine
        self.settings = settings or FeedSettings()

    def execute(
        self,
        compiled: CompiledPredicate,
        page: int = 1,
        page_size: int | None = None,
    ) -> RawPage | Failure:
        """
        Fetch one page.

        Returns a Failure instead of raising for invalid pagination and for
        any storage error.
        """
        try:
            return self.fetch_page(compiled, page, page_size)
        except CaseFeedError as e:
            return Failure.from_error(e)

    def fetch_page(
        self,
        compiled: CompiledPredicate,
        page: int = 1,
        page_size: int | None = None,
    ) -> RawPage:
        """Like :meth:`execute` but raises ValidationError / DataAccessError."""
        if page_size is None:
            page_size = self.settings.default_page_size
        for name, value in (("page", page), ("page_size", page_size)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer", field=name)
        page = max(page, 1)
        if not 1 <= page_size <= self.settings.max_page_size:
            raise ValidationError(
                f"page_size must be between 1 and {self.settings.max_page_size}",
                field="page_size",
            )
        offset = (page - 1) * page_size

        started = time.perf_counter()
        with self._connect("page query") as conn:
            rows = self._run(
                conn,
                "page query",
                lambda: list(
                    conn.execute(
                        feed_select(compiled).limit(page_size + 1).offset(offset)
                    ).mappings()
                ),
            )
            has_more = len(rows) > page_size
            if has_more:
                rows = rows[:page_size]
            total_count = self._count_or_degrade(conn, compiled)

        logger.info(
            "Feed page fetched",
            visibility=compiled.scope.kind.value,
            page=page,
            page_size=page_size,
            row_count=len(rows),
            total_count=total_count,
            has_more=has_more,
            filter_count=len(compiled.fragments),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return RawPage(
            rows=rows,
            total_count=total_count,
            has_more=has_more,
            page=page,
            page_size=page_size,
        )

    def fetch_rows(
        self,
        compiled: CompiledPredicate,
        *extra: Any,
        limit: int | None = None,
    ) -> list[RowMapping]:
        """Fetch ordered feed rows with optional extra conditions; raises DataAccessError."""
        stmt = feed_select(compiled, *extra)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._connect("row query") as conn:
            return self._run(conn, "row query", lambda: list(conn.execute(stmt).mappings()))

    def count(self, compiled: CompiledPredicate) -> int:
        """Total rows matching ``compiled``; raises DataAccessError."""
        with self._connect("count query") as conn:
            return self._count(conn, compiled)

    def _count_or_degrade(self, conn: Connection, compiled: CompiledPredicate) -> int | None:
        try:
            return self._count(conn, compiled)
        except DataAccessError as e:
            if self.settings.count_failure_mode == CountFailureMode.DEGRADE:
                logger.warning(
                    "Count query failed; returning page without total",
                    error=str(e.cause),
                )
                return None
            raise

    def _count(self, conn: Connection, compiled: CompiledPredicate) -> int:
        return self._run(
            conn,
            "count query",
            lambda: conn.execute(count_select(compiled)).scalar_one(),
        )

    def _run(self, conn: Connection, operation: str, fn):
        try:
            return fn()
        except sa_exc.SQLAlchemyError as e:
            logger.error("Feed query failed", operation=operation, error=str(e))
            raise DataAccessError(operation, e) from e

    def _connect(self, operation: str) -> "_PooledConnection":
        return _PooledConnection(self.engine, operation)


class _PooledConnection:
    """Checks out a pooled connection, translating checkout failures."""

    def __init__(self, engine: Engine, operation: str) -> None:
        self._engine = engine
        self._operation = operation
        self._conn: Connection | None = None

    def __enter__(self) -> Connection:
        try:
            self._conn = self._engine.connect()
        except sa_exc.TimeoutError as e:
            logger.error("Connection pool exhausted", operation=self._operation, error=str(e))
            raise DataAccessError(f"{self._operation} (pool checkout)", e) from e
        except sa_exc.SQLAlchemyError as e:
            logger.error("Could not connect", operation=self._operation, error=str(e))
            raise DataAccessError(self._operation, e) from e
        return self._conn

    def __exit__(self, *exc_info: Any) -> None:
        if self._conn is not None:
            self._conn.close()
