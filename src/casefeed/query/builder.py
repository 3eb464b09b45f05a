"""
Predicate builder.

Filters are appended as ``(fragment, parameter)`` pairs. Placeholders are
assigned only when the builder assembles, in append order, so the placeholder
sequence is always ``p1 .. pn`` with no gaps and no reuse, and a filter that
was never appended cannot reserve an index.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import ColumnElement

PLACEHOLDER_PREFIX = "p"

# Builds the SQL condition for one fragment from its placeholder name and value.
ConditionFactory = Callable[[str, Any], ColumnElement[bool]]


class FragmentKind(str, Enum):
    """How a filter value constrains the query."""

    SUBSTRING = "substring"
    EQUALS = "equals"
    IN_SET = "in_set"
    LOWER_BOUND = "lower_bound"
    UPPER_BOUND = "upper_bound"
    FULL_TEXT = "full_text"
    OVERLAP = "overlap"


@dataclass(frozen=True, eq=False)
class Fragment:
    """One compiled filter: a condition bound to exactly one placeholder."""

    filter_name: str
    kind: FragmentKind
    placeholder: str
    value: Any
    condition: ColumnElement[bool]

    @property
    def position(self) -> int:
        """1-based placeholder index."""
        return int(self.placeholder[len(PLACEHOLDER_PREFIX):])


@dataclass(frozen=True)
class _Pending:
    filter_name: str
    kind: FragmentKind
    value: Any
    factory: ConditionFactory


class PredicateBuilder:
    """
    Accumulates filter fragments and assembles them with positional placeholders.

    Example:
        builder = PredicateBuilder()
        builder.add("priority", FragmentKind.IN_SET, ["urgent"], make_priority)
        fragments = builder.build()   # fragments[0].placeholder == "p1"
    """

    def __init__(self) -> None:
        self._pending: list[_Pending] = []

    def add(
        self,
        filter_name: str,
        kind: FragmentKind,
        value: Any,
        factory: ConditionFactory,
    ) -> "PredicateBuilder":
        """Append one fragment together with its single parameter value."""
        if value is None:
            raise ValueError(f"Filter '{filter_name}' has no value to bind")
        self._pending.append(_Pending(filter_name, kind, value, factory))
        return self

    def __len__(self) -> int:
        return len(self._pending)

    def build(self) -> tuple[Fragment, ...]:
        """Assign placeholders in append order and build each condition."""
        fragments = []
        for position, pending in enumerate(self._pending, start=1):
            placeholder = f"{PLACEHOLDER_PREFIX}{position}"
            fragments.append(
                Fragment(
                    filter_name=pending.filter_name,
                    kind=pending.kind,
                    placeholder=placeholder,
                    value=pending.value,
                    condition=pending.factory(placeholder, pending.value),
                )
            )
        return tuple(fragments)
