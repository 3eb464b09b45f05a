"""
Request and result schemas for the interaction feed.

These Pydantic models are the wire contract between callers and the engine.
Fields are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``); both spellings are accepted on input.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from casefeed.core.errors import ValidationError as CaseFeedValidationError
from casefeed.core.types import (
    InteractionPriority,
    InteractionStatus,
    InteractionType,
    SortDirection,
    SortField,
)

WIRE_CONFIG = {"populate_by_name": True, "alias_generator": to_camel}

_TEXT_FILTERS = (
    "case_number",
    "case_id",
    "search_query",
    "insurance_company",
    "lawyer_assigned",
    "rental_company",
)
_LIST_FILTERS = ("interaction_type", "priority", "status", "tags")


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class InteractionFilter(BaseModel):
    """
    Caller-supplied feed filter.

    Only the fields below are recognized; any other key is dropped during
    validation and never reaches the query. Empty strings and empty lists
    count as absent.

    Example:
        {"interactionType": ["call", "email"], "priority": ["urgent"],
         "dateFrom": "2024-01-01T00:00:00", "searchQuery": "tow truck"}
    """

    case_number: str | None = Field(default=None, description="Substring of the case number")
    case_id: str | None = Field(default=None, description="Exact parent case id")
    interaction_type: list[InteractionType] | None = None
    priority: list[InteractionPriority] | None = None
    status: list[InteractionStatus] | None = None
    date_from: datetime | None = Field(default=None, description="Inclusive lower bound")
    date_to: datetime | None = Field(default=None, description="Inclusive upper bound")
    search_query: str | None = Field(
        default=None, description="Full-text query over situation, action taken and outcome"
    )
    tags: list[str] | None = Field(default=None, description="Matches if any tag overlaps")
    insurance_company: str | None = None
    lawyer_assigned: str | None = None
    rental_company: str | None = None

    model_config = {"frozen": True, "extra": "ignore", **WIRE_CONFIG}

    @field_validator(*_TEXT_FILTERS, mode="before")
    @classmethod
    def blank_text_is_absent(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator(*_LIST_FILTERS, mode="before")
    @classmethod
    def empty_list_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple, set)):
            if any(i is not None and not isinstance(i, str) for i in v):
                raise ValueError("list items must be strings")
            items = [i.strip() for i in v if i is not None]
            items = [i for i in items if i]
            return list(dict.fromkeys(items)) or None
        return v

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def blank_date_is_absent(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("date_from", "date_to")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v) if v is not None else None

    def accepted_fields(self) -> list[str]:
        """Names of the filters that will contribute a predicate fragment."""
        return [name for name in type(self).model_fields if getattr(self, name) is not None]


class SortSpec(BaseModel):
    """
    Feed sort order.

    An unknown ``field`` silently falls back to the default sort
    (timestamp, descending), discarding the supplied direction as well.
    """

    field: SortField = Field(default=SortField.TIMESTAMP, description="Field to sort on")
    direction: SortDirection = Field(default=SortDirection.DESC, description="Sort direction")

    model_config = {"frozen": True, "extra": "ignore"}

    @model_validator(mode="before")
    @classmethod
    def fallback_unknown_field(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        field = data.get("field")
        if not isinstance(field, str) or isinstance(field, SortField):
            return data
        if field not in {f.value for f in SortField}:
            return {}
        return data

    @field_validator("direction", mode="before")
    @classmethod
    def lowercase_direction(cls, v: Any) -> Any:
        if v is None:
            return SortDirection.DESC
        if isinstance(v, str):
            return v.strip().lower()
        return v


class PageFacets(BaseModel):
    """
    Distinct values seen in the current page window.

    These are computed from the returned rows only, not the full matching
    corpus; use them to seed filter choices, not as authoritative lists.
    """

    insurance_companies: list[str] = Field(default_factory=list)
    lawyers: list[str] = Field(default_factory=list)
    rental_companies: list[str] = Field(default_factory=list)
    case_numbers: list[str] = Field(default_factory=list)

    model_config = {"frozen": True, **WIRE_CONFIG}


class FeedItem(BaseModel):
    """An interaction joined with its parent case context."""

    id: int
    case_id: str | None = None
    case_number: str
    interaction_type: str
    timestamp: datetime
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    situation: str
    action_taken: str
    outcome: str
    priority: str
    status: str
    tags: list[str] = Field(default_factory=list)
    created_by: str
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Case-derived; None when the parent case no longer exists
    case_client_name: str | None = None
    incident_date: datetime | None = None
    case_status: str | None = None
    insurance_company: str | None = None
    lawyer_assigned: str | None = None
    rental_company: str | None = None

    model_config = {"frozen": True, **WIRE_CONFIG}


class FeedPage(BaseModel):
    """A successful page of the interaction feed."""

    items: list[FeedItem] = Field(default_factory=list)
    total_count: int | None = Field(
        default=0, description="None only when the count query failed in degrade mode"
    )
    has_more: bool = False
    page: int = 1
    page_size: int = 20
    page_facets: PageFacets = Field(default_factory=PageFacets)

    model_config = {"frozen": True, **WIRE_CONFIG}


class Failure(BaseModel):
    """A failed feed request. Returned, never raised, across the engine boundary."""

    error: str
    code: str = "DATA_ACCESS_ERROR"

    model_config = {"frozen": True}

    @classmethod
    def from_error(cls, exc: Exception) -> "Failure":
        code = getattr(exc, "code", "INTERNAL_ERROR")
        message = getattr(exc, "message", None) or str(exc)
        return cls(error=message, code=code)


class CreateInteraction(BaseModel):
    """Input for logging a new interaction against a case."""

    case_id: str
    interaction_type: InteractionType
    situation: str
    action_taken: str
    outcome: str
    contact_name: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    priority: InteractionPriority = InteractionPriority.MEDIUM
    status: InteractionStatus = InteractionStatus.COMPLETED
    tags: list[str] = Field(default_factory=list)
    timestamp: datetime | None = None

    model_config = {"frozen": True, "extra": "forbid", **WIRE_CONFIG}

    @field_validator("case_id", mode="before")
    @classmethod
    def coerce_case_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        return _naive_utc(v) if v is not None else None


class UpdateInteraction(BaseModel):
    """
    Input for updating an interaction.

    Content fields are immutable; only workflow metadata may change.
    """

    priority: InteractionPriority | None = None
    status: InteractionStatus | None = None
    tags: list[str] | None = None

    model_config = {"frozen": True, "extra": "forbid", **WIRE_CONFIG}

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set on this update."""
        values = self.model_dump(exclude_unset=True)
        return {k: (v.value if hasattr(v, "value") else v) for k, v in values.items() if v is not None}


def parse_model(model: type[BaseModel], value: Any, label: str) -> Any:
    """
    Accept a model instance, a mapping or None and return a validated model.

    Pydantic errors are re-raised as casefeed ValidationErrors.
    """
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value if value is not None else {})
    except PydanticValidationError as e:
        raise CaseFeedValidationError.from_pydantic(e, label) from e
