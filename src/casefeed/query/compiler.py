"""
Predicate compiler.

Compiles a visibility predicate, an InteractionFilter and a SortSpec into
SQLAlchemy conditions and an ORDER BY clause. Every caller-supplied value is
carried as a bound parameter; no filter value is ever spliced into SQL text.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import (
    ARRAY,
    ColumnElement,
    DateTime,
    String,
    UnaryExpression,
    and_,
    bindparam,
    false,
    func,
    literal_column,
    or_,
    select,
    true,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Dialect

from casefeed.core.dsl import InteractionFilter, SortSpec
from casefeed.core.types import SortDirection, SortField
from casefeed.db.models import Case, Interaction
from casefeed.policy.visibility import VisibilityKind, VisibilityPredicate
from casefeed.query.builder import Fragment, FragmentKind, PredicateBuilder

LIKE_ESCAPE = "\\"

SORT_COLUMNS = {
    SortField.TIMESTAMP: Interaction.timestamp,
    SortField.CASE_NUMBER: Interaction.case_number,
    SortField.PRIORITY: Interaction.priority,
    SortField.STATUS: Interaction.status,
}

_DIALECTS: dict[str, Callable[[], Dialect]] = {
    "postgresql": postgresql.dialect,
    "sqlite": sqlite.dialect,
}


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input always matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _contains_pattern(value: str) -> str:
    return f"%{escape_like(value)}%"


def _resolve_dialect(dialect: str | Dialect) -> Dialect:
    if isinstance(dialect, str):
        factory = _DIALECTS.get(dialect)
        if factory is None:
            raise ValueError(f"Unsupported dialect: {dialect}")
        return factory()
    return dialect


@dataclass(frozen=True)
class CompiledPredicate:
    """
    The compiled form of one feed request.

    ``fragments`` are in placeholder order; ``params`` is the matching
    positional parameter list. Scope parameters are named separately and are
    not part of ``params``.
    """

    scope: VisibilityPredicate
    scope_condition: ColumnElement[bool]
    fragments: tuple[Fragment, ...]
    sort: SortSpec
    order_by: tuple[UnaryExpression[Any], ...] = field(default=())

    @property
    def params(self) -> list[Any]:
        return [fragment.value for fragment in self.fragments]

    @property
    def placeholders(self) -> list[str]:
        return [fragment.placeholder for fragment in self.fragments]

    @property
    def conditions(self) -> list[ColumnElement[bool]]:
        """Scope condition first, then one condition per fragment."""
        return [self.scope_condition, *(f.condition for f in self.fragments)]

    @property
    def where(self) -> ColumnElement[bool]:
        return and_(*self.conditions)

    def render(self, dialect: str | Dialect = "postgresql") -> str:
        """Render the WHERE condition as SQL text with bind placeholders."""
        return str(self.where.compile(dialect=_resolve_dialect(dialect)))


class PredicateCompiler:
    """
    Compiles feed requests into SQLAlchemy predicates.

    The dialect decides how full-text search and tag overlap are expressed;
    every other filter compiles identically everywhere.
    """

    def __init__(self, dialect: str = "postgresql") -> None:
        self.dialect = dialect

    @property
    def is_postgresql(self) -> bool:
        return self.dialect == "postgresql"

    def compile(
        self,
        scope: VisibilityPredicate,
        filter: InteractionFilter | None = None,
        sort: SortSpec | None = None,
    ) -> CompiledPredicate:
        """
        Compile a scoped feed request.

        ``scope`` is mandatory: a query without a visibility predicate cannot
        be compiled.
        """
        if not isinstance(scope, VisibilityPredicate):
            raise TypeError(
                f"compile() requires a VisibilityPredicate scope, got {type(scope).__name__}"
            )
        filter = filter if filter is not None else InteractionFilter()
        sort = sort if sort is not None else SortSpec()

        builder = PredicateBuilder()
        self._add_filters(builder, filter)

        return CompiledPredicate(
            scope=scope,
            scope_condition=self.scope_condition(scope),
            fragments=builder.build(),
            sort=sort,
            order_by=self.order_by(sort),
        )

    def scope_condition(self, scope: VisibilityPredicate) -> ColumnElement[bool]:
        """Render a visibility predicate against the joined cases table."""
        match scope.kind:
            case VisibilityKind.UNRESTRICTED:
                return true()
            case VisibilityKind.ASSIGNED_CONTACT:
                contact = bindparam("scope_contact_id", scope.value, type_=String)
                return or_(
                    Case.assigned_lawyer_contact_id == contact,
                    Case.assigned_rental_company_contact_id == contact,
                )
            case VisibilityKind.WORKSPACE:
                return Case.workspace_id == bindparam(
                    "scope_workspace_id", scope.value, type_=String
                )
            case _:
                return false()

    def order_by(self, sort: SortSpec) -> tuple[UnaryExpression[Any], ...]:
        """Sort column plus a tie-break on id in the same direction."""
        column = SORT_COLUMNS.get(sort.field, Interaction.timestamp)
        if sort.direction == SortDirection.ASC:
            return (column.asc(), Interaction.id.asc())
        return (column.desc(), Interaction.id.desc())

    def _add_filters(self, builder: PredicateBuilder, f: InteractionFilter) -> None:
        # Fields are visited in declaration order so placeholders are stable.
        for name in f.accepted_fields():
            value = getattr(f, name)
            kind, factory = self._fragment_for(name)
            if kind == FragmentKind.IN_SET:
                value = [v.value if hasattr(v, "value") else v for v in value]
            elif kind == FragmentKind.SUBSTRING:
                value = _contains_pattern(value)
            elif kind == FragmentKind.FULL_TEXT and not self.is_postgresql:
                value = _contains_pattern(value)
            builder.add(name, kind, value, factory)

    def _fragment_for(self, name: str) -> tuple[FragmentKind, Callable[[str, Any], Any]]:
        match name:
            case "case_number":
                return FragmentKind.SUBSTRING, _substring(Interaction.case_number)
            case "case_id":
                return FragmentKind.EQUALS, lambda p, v: Interaction.case_id == bindparam(
                    p, v, type_=String
                )
            case "interaction_type":
                return FragmentKind.IN_SET, _in_set(Interaction.interaction_type)
            case "priority":
                return FragmentKind.IN_SET, _in_set(Interaction.priority)
            case "status":
                return FragmentKind.IN_SET, _in_set(Interaction.status)
            case "date_from":
                return FragmentKind.LOWER_BOUND, lambda p, v: Interaction.timestamp >= bindparam(
                    p, v, type_=DateTime
                )
            case "date_to":
                return FragmentKind.UPPER_BOUND, lambda p, v: Interaction.timestamp <= bindparam(
                    p, v, type_=DateTime
                )
            case "search_query":
                return FragmentKind.FULL_TEXT, self._full_text
            case "tags":
                return FragmentKind.OVERLAP, self._tag_overlap
            case "insurance_company":
                return FragmentKind.SUBSTRING, _substring(Case.client_insurance_company)
            case "lawyer_assigned":
                return FragmentKind.SUBSTRING, _substring(Case.lawyer)
            case "rental_company":
                return FragmentKind.SUBSTRING, _substring(Case.rental_company)
            case _:
                raise ValueError(f"No predicate fragment for filter: {name}")

    def _full_text(self, placeholder: str, value: str) -> ColumnElement[bool]:
        separator = literal_column("' '")
        document = (
            Interaction.situation.concat(separator)
            .concat(Interaction.action_taken)
            .concat(separator)
            .concat(Interaction.outcome)
        )
        if self.is_postgresql:
            config = literal_column("'english'")
            query = func.plainto_tsquery(config, bindparam(placeholder, value, type_=String))
            return func.to_tsvector(config, document).op("@@", is_comparison=True)(query)
        return document.ilike(bindparam(placeholder, value, type_=String), escape=LIKE_ESCAPE)

    def _tag_overlap(self, placeholder: str, value: list[str]) -> ColumnElement[bool]:
        if self.is_postgresql:
            return Interaction.tags.op("&&", is_comparison=True)(
                bindparam(placeholder, value, type_=ARRAY(String))
            )
        tag = func.json_each(Interaction.tags).table_valued(
            "value", joins_implicitly=True, name="tag"
        )
        return (
            select(tag.c.value)
            .where(tag.c.value.in_(bindparam(placeholder, value, expanding=True)))
            .exists()
        )


def _substring(column: Any) -> Callable[[str, str], ColumnElement[bool]]:
    def condition(placeholder: str, pattern: str) -> ColumnElement[bool]:
        return column.ilike(bindparam(placeholder, pattern, type_=String), escape=LIKE_ESCAPE)

    return condition


def _in_set(column: Any) -> Callable[[str, list[Any]], ColumnElement[bool]]:
    def condition(placeholder: str, values: list[Any]) -> ColumnElement[bool]:
        return column.in_(bindparam(placeholder, values, expanding=True))

    return condition
