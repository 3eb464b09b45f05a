"""Tests for the audited interaction write path."""

import logging
from datetime import datetime

import pytest
from sqlalchemy.orm import Session

from casefeed.core.dsl import CreateInteraction, UpdateInteraction
from casefeed.core.errors import DataAccessError, NotFoundError, ValidationError
from casefeed.db.models import Interaction
from casefeed.feed.writer import InteractionWriter
from casefeed.store.memory import InMemoryAuditStore
from casefeed.store.models import AuditStatus


class BrokenAudit:
    """Audit hook that always fails."""

    def __init__(self) -> None:
        self.calls = 0

    def record(self, action, actor_id, target_type, target_id, status):
        self.calls += 1
        raise RuntimeError("audit backend unavailable")


@pytest.fixture
def audit() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def writer(engine, audit) -> InteractionWriter:
    return InteractionWriter(engine, audit=audit)


def new_interaction(**overrides):
    data = {
        "caseId": "case-a",
        "interactionType": "call",
        "situation": "Client called about hire car",
        "actionTaken": "Explained hire terms",
        "outcome": "Client satisfied",
    }
    data.update(overrides)
    return data


class TestCreate:
    def test_create_copies_case_number_and_defaults(self, seeded, writer, audit, lawyer_contact):
        interaction = writer.create(lawyer_contact, new_interaction())

        assert interaction.id is not None
        assert interaction.case_id == "case-a"
        assert interaction.case_number == "CASE-A-001"
        assert interaction.priority == "medium"
        assert interaction.status == "completed"
        assert interaction.tags == []
        assert interaction.created_by == "u-lex"

        [record] = audit.records
        assert record.action == "interaction.create"
        assert record.actor_id == "u-lex"
        assert record.target_type == "interaction"
        assert record.target_id == str(interaction.id)
        assert record.status == AuditStatus.SUCCESS

    def test_create_from_model(self, seeded, writer, service, admin):
        payload = CreateInteraction(
            case_id="case-b",
            interaction_type="email",
            situation="s",
            action_taken="a",
            outcome="o",
            priority="urgent",
            tags=["hire"],
            timestamp=datetime(2024, 4, 1, 12, 0, 0),
        )
        interaction = writer.create(admin, payload)

        item = service.get_interaction(admin, interaction.id)
        assert item.priority == "urgent"
        assert item.tags == ["hire"]
        assert item.timestamp == datetime(2024, 4, 1, 12, 0, 0)
        assert item.case_client_name == "Bruno Baker"

    def test_invisible_case_is_not_found(self, seeded, writer, audit, lawyer_contact):
        with pytest.raises(NotFoundError):
            writer.create(lawyer_contact, new_interaction(caseId="case-b"))

        [record] = audit.records
        assert record.status == AuditStatus.FAILURE
        assert record.target_id is None

    def test_missing_case_is_not_found(self, seeded, writer, admin):
        with pytest.raises(NotFoundError):
            writer.create(admin, new_interaction(caseId="case-zzz"))

    def test_unscoped_actor_cannot_write(self, seeded, writer, unscoped):
        with pytest.raises(NotFoundError):
            writer.create(unscoped, new_interaction())

    def test_case_number_cannot_be_supplied(self, seeded, writer, admin):
        with pytest.raises(ValidationError):
            writer.create(admin, new_interaction(caseNumber="FORGED-1"))

    def test_invalid_type(self, seeded, writer, admin):
        with pytest.raises(ValidationError) as exc_info:
            writer.create(admin, new_interaction(interactionType="telegram"))
        assert exc_info.value.details == {"field": "interactionType"}


class TestUpdate:
    def test_update_workflow_fields(self, seeded, writer, audit, lawyer_contact):
        target = seeded["ids"]["a"][2]

        updated = writer.update(
            lawyer_contact,
            target,
            {"priority": "high", "status": "follow_up_required", "tags": ["callback"]},
        )

        assert updated.priority == "high"
        assert updated.status == "follow_up_required"
        assert updated.tags == ["callback"]
        assert updated.updated_by == "u-lex"
        assert updated.situation == "Met client to review statement"
        assert audit.records[-1].action == "interaction.update"
        assert audit.records[-1].status == AuditStatus.SUCCESS

    def test_update_persists(self, seeded, engine, writer, admin):
        target = seeded["ids"]["b"][1]
        writer.update(admin, target, UpdateInteraction(status="completed"))

        with Session(engine) as session:
            stored = session.get(Interaction, target)
            assert stored.status == "completed"
            assert stored.priority == "low"
            assert stored.updated_by == "u-admin"

    def test_content_fields_are_immutable(self, seeded, writer, admin):
        with pytest.raises(ValidationError):
            writer.update(admin, seeded["ids"]["a"][0], {"situation": "rewritten"})

    def test_empty_update_rejected(self, seeded, writer, admin):
        with pytest.raises(ValidationError):
            writer.update(admin, seeded["ids"]["a"][0], {})

    def test_invisible_interaction(self, seeded, writer, audit, lawyer_contact):
        target = seeded["ids"]["b"][0]
        with pytest.raises(NotFoundError):
            writer.update(lawyer_contact, target, {"priority": "low"})

        assert audit.records[-1].status == AuditStatus.FAILURE
        assert audit.records[-1].target_id == str(target)


class TestDelete:
    def test_hard_delete(self, seeded, engine, writer, audit, service, north_lawyer):
        target = seeded["ids"]["c"][0]

        writer.delete(north_lawyer, target)

        with Session(engine) as session:
            assert session.get(Interaction, target) is None
        with pytest.raises(NotFoundError):
            service.get_interaction(north_lawyer, target)
        assert audit.query(action="interaction.delete")[0].target_id == str(target)

    def test_delete_invisible(self, seeded, writer, south_rental):
        with pytest.raises(NotFoundError):
            writer.delete(south_rental, seeded["ids"]["a"][0])

    def test_delete_missing(self, seeded, writer, admin):
        with pytest.raises(NotFoundError):
            writer.delete(admin, 424242)


class TestAuditHook:
    def test_failing_hook_never_undoes_the_write(self, seeded, engine, admin, caplog):
        hook = BrokenAudit()
        writer = InteractionWriter(engine, audit=hook)

        with caplog.at_level(logging.ERROR, logger="casefeed.feed.writer"):
            interaction = writer.create(admin, new_interaction())

        assert hook.calls == 1
        with Session(engine) as session:
            assert session.get(Interaction, interaction.id) is not None

        record = next(r for r in caplog.records if r.getMessage() == "Audit hook failed")
        assert record.exc_info is not None
        assert record.action == "interaction.create"

    def test_no_hook(self, seeded, engine, admin):
        writer = InteractionWriter(engine)
        assert writer.create(admin, new_interaction()).id is not None

    def test_storage_error_rolls_back(self, seeded, engine, audit, admin):
        writer = InteractionWriter(engine, audit=audit)
        Interaction.__table__.drop(engine)

        with pytest.raises(DataAccessError) as exc_info:
            writer.create(admin, new_interaction())

        assert exc_info.value.operation == "interaction.create"
        assert audit.records[-1].status == AuditStatus.FAILURE
