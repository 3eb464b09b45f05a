"""Tests for the audit stores."""

from datetime import datetime, timedelta, timezone

import pytest

from casefeed.store.base import AuditStore
from casefeed.store.jsonl import JsonlAuditStore
from casefeed.store.memory import InMemoryAuditStore
from casefeed.store.models import AuditRecord, AuditStatus


@pytest.fixture(params=["memory", "jsonl"])
def store(request, tmp_path) -> AuditStore:
    if request.param == "memory":
        return InMemoryAuditStore()
    return JsonlAuditStore(tmp_path / "audit" / "records.jsonl")


class TestRecord:
    def test_record_builds_and_stores(self, store):
        record = store.record("interaction.create", "u-1", "interaction", 17, "success")

        assert record.action == "interaction.create"
        assert record.target_id == "17"
        assert record.status == AuditStatus.SUCCESS
        assert record.is_success()
        assert record.timestamp.tzinfo is not None
        assert store.get(record.id) == record

    def test_failure_record(self, store):
        record = store.record(
            "interaction.delete",
            "u-1",
            "interaction",
            None,
            AuditStatus.FAILURE,
            error="not found",
            request_id="req-1",
        )

        assert not record.is_success()
        assert record.target_id is None
        assert record.error == "not found"
        assert record.request_id == "req-1"
        assert record.metadata is None

    def test_extra_fields_go_to_metadata(self, store):
        record = store.record("interaction.update", "u-1", "interaction", 1, "success", fields=["status"])
        assert record.metadata == {"fields": ["status"]}

    def test_invalid_status(self, store):
        with pytest.raises(ValueError):
            store.record("interaction.update", "u-1", "interaction", 1, "maybe")

    def test_get_missing(self, store):
        assert store.get("nope") is None


class TestQuery:
    @pytest.fixture
    def populated(self, store):
        store.record("interaction.create", "u-1", "interaction", 1, "success")
        store.record("interaction.update", "u-1", "interaction", 1, "success")
        store.record("interaction.create", "u-2", "interaction", 2, "failure")
        store.record("interaction.delete", "u-2", "interaction", 1, "success")
        return store

    def test_filter_by_actor(self, populated):
        assert [r.action for r in populated.query(actor_id="u-2")] == [
            "interaction.create",
            "interaction.delete",
        ]

    def test_filter_by_action_and_target(self, populated):
        results = populated.query(action="interaction.create", target_id="1")
        assert len(results) == 1
        assert results[0].actor_id == "u-1"

    def test_limit_and_offset(self, populated):
        assert len(populated.query(limit=2)) == 2
        assert [r.action for r in populated.query(offset=3)] == ["interaction.delete"]

    def test_time_window(self, populated):
        now = datetime.now(timezone.utc)
        assert len(populated.query(start_time=now - timedelta(minutes=1))) == 4
        assert populated.query(end_time=now - timedelta(minutes=1)) == []


def test_jsonl_is_append_only_lines(tmp_path):
    path = tmp_path / "audit.jsonl"
    store = JsonlAuditStore(path)
    store.record("interaction.create", "u-1", "interaction", 1, "success")
    store.record("interaction.delete", "u-1", "interaction", 1, "success")

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    assert AuditRecord.model_validate_json(lines[1]).action == "interaction.delete"

    # A fresh store over the same file sees existing records
    assert len(JsonlAuditStore(path).query()) == 2

    store.clear()
    assert store.query() == []


def test_memory_clear():
    store = InMemoryAuditStore()
    store.record("interaction.create", "u-1", "interaction", 1, "success")
    store.clear()
    assert store.records == []
