"""Tests for the request and result schemas."""

from datetime import datetime, timedelta, timezone

import pytest

from casefeed.core.dsl import (
    CreateInteraction,
    Failure,
    FeedItem,
    FeedPage,
    InteractionFilter,
    SortSpec,
    UpdateInteraction,
    parse_model,
)
from casefeed.core.errors import DataAccessError, NotFoundError, ValidationError
from casefeed.core.types import InteractionPriority, SortDirection, SortField


class TestInteractionFilter:
    def test_accepts_wire_and_python_names(self):
        wire = InteractionFilter.model_validate({"caseNumber": "A-001", "interactionType": ["call"]})
        python = InteractionFilter(case_number="A-001", interaction_type=["call"])
        assert wire == python

    def test_unknown_keys_are_dropped(self):
        f = InteractionFilter.model_validate({"caseNumber": "A", "workspaceId": "ws-9", "sql": "1=1"})
        assert f.accepted_fields() == ["case_number"]

    def test_blank_values_are_absent(self):
        f = InteractionFilter.model_validate(
            {"caseNumber": "  ", "priority": [], "tags": ["", " "], "searchQuery": ""}
        )
        assert f.accepted_fields() == []

    def test_single_value_becomes_list(self):
        f = InteractionFilter.model_validate({"priority": "urgent", "tags": "tow"})
        assert f.priority == [InteractionPriority.URGENT]
        assert f.tags == ["tow"]

    def test_list_values_are_deduplicated(self):
        f = InteractionFilter.model_validate({"status": ["pending", "pending", "completed"]})
        assert [s.value for s in f.status] == ["pending", "completed"]

    def test_accepted_fields_follow_declaration_order(self):
        f = InteractionFilter.model_validate(
            {"rentalCompany": "Fast", "dateFrom": "2024-01-01T00:00:00", "caseId": "case-a"}
        )
        assert f.accepted_fields() == ["case_id", "date_from", "rental_company"]

    def test_aware_dates_are_normalized_to_naive_utc(self):
        f = InteractionFilter(date_from=datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
        assert f.date_from == datetime(2024, 1, 1, 10, 0)

    def test_blank_dates_are_absent(self):
        f = InteractionFilter.model_validate({"dateFrom": "", "dateTo": "   "})
        assert f.accepted_fields() == []

    @pytest.mark.parametrize("value", [[{"x": 1}], [["tow"]], [3]])
    def test_non_string_list_items_rejected(self, value):
        with pytest.raises(ValueError):
            InteractionFilter.model_validate({"tags": value})

    def test_unknown_enum_rejected(self):
        with pytest.raises(ValueError):
            InteractionFilter.model_validate({"priority": ["critical"]})


class TestSortSpec:
    def test_defaults(self):
        spec = SortSpec()
        assert spec.field == SortField.TIMESTAMP
        assert spec.direction == SortDirection.DESC

    def test_direction_is_case_insensitive(self):
        assert SortSpec.model_validate({"field": "priority", "direction": "ASC"}).direction == SortDirection.ASC

    def test_unknown_field_falls_back_to_default(self):
        spec = SortSpec.model_validate({"field": "situation", "direction": "asc"})
        assert spec == SortSpec()

    def test_non_string_field_rejected(self):
        with pytest.raises(ValueError):
            SortSpec.model_validate({"field": ["timestamp"]})

    def test_wire_name_for_case_number(self):
        assert SortSpec.model_validate({"field": "caseNumber"}).field == SortField.CASE_NUMBER


class TestWriteModels:
    def test_create_defaults(self):
        payload = CreateInteraction.model_validate(
            {"caseId": 12, "interactionType": "note", "situation": "s", "actionTaken": "a", "outcome": "o"}
        )
        assert payload.case_id == "12"
        assert payload.priority == InteractionPriority.MEDIUM
        assert payload.tags == []
        assert payload.timestamp is None

    def test_update_changes_only_include_set_fields(self):
        assert UpdateInteraction(priority="high").changes() == {"priority": "high"}
        assert UpdateInteraction().changes() == {}


class TestParseModel:
    def test_passes_instances_through(self):
        f = InteractionFilter(case_id="case-a")
        assert parse_model(InteractionFilter, f, "filter") is f

    def test_none_means_empty(self):
        assert parse_model(InteractionFilter, None, "filter") == InteractionFilter()

    def test_errors_name_the_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_model(InteractionFilter, {"dateTo": "not a date"}, "filter")

        error = exc_info.value
        assert error.code == "VALIDATION_ERROR"
        assert error.details == {"field": "dateTo"}
        assert error.message.startswith("Invalid filter: dateTo")

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError):
            parse_model(CreateInteraction, None, "interaction")


class TestResults:
    def test_feed_page_wire_format(self):
        item = FeedItem(
            id=1,
            case_id=None,
            case_number="CASE-1",
            interaction_type="call",
            timestamp=datetime(2024, 3, 1, 9, 0),
            situation="s",
            action_taken="a",
            outcome="o",
            priority="low",
            status="pending",
            created_by="u-1",
        )
        data = FeedPage(items=[item], total_count=None).model_dump(mode="json", by_alias=True)

        assert data["totalCount"] is None
        assert data["items"][0]["caseId"] is None
        assert data["items"][0]["caseClientName"] is None
        assert data["pageFacets"] == {
            "insuranceCompanies": [],
            "lawyers": [],
            "rentalCompanies": [],
            "caseNumbers": [],
        }

    def test_failure_from_error(self):
        failure = Failure.from_error(DataAccessError("page query", TimeoutError("slow")))
        assert failure.code == "DATA_ACCESS_ERROR"
        assert "page query" in failure.error
        assert "TimeoutError: slow" in failure.error

    def test_failure_from_foreign_error(self):
        failure = Failure.from_error(RuntimeError("boom"))
        assert failure == Failure(error="boom", code="INTERNAL_ERROR")

    def test_not_found_to_dict(self):
        assert NotFoundError("Interaction", 5).to_dict()["details"] == {"entity": "Interaction", "id": 5}
