"""
SQLAlchemy models for workspaces, contacts, cases and interactions.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# TEXT[] on PostgreSQL so tags can use the && overlap operator; JSON elsewhere.
TagList = JSON().with_variant(ARRAY(String(100)), "postgresql")


def utcnow() -> datetime:
    """Naive UTC timestamp; all stored datetimes are naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _uuid() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Workspace(Base):
    """A tenant-like grouping that owns cases."""

    __tablename__ = "workspaces"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255))
    contact_id: Mapped[str | None] = mapped_column(
        ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Contact(Base):
    """A lawyer, rental company, insurer or other party."""

    __tablename__ = "contacts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255))
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(100))
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Case(Base):
    """
    A claim case.

    Ownership is three independent relations: the owning workspace, the
    assigned lawyer contact and the assigned rental-company contact.
    """

    __tablename__ = "cases"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    case_number: Mapped[str] = mapped_column(String(255), unique=True)
    workspace_id: Mapped[str | None] = mapped_column(
        ForeignKey("workspaces.id", ondelete="SET NULL"), nullable=True, index=True
    )
    assigned_lawyer_contact_id: Mapped[str | None] = mapped_column(
        "assigned_lawyer_id", String(36), nullable=True, index=True
    )
    assigned_rental_company_contact_id: Mapped[str | None] = mapped_column(
        "assigned_rental_company_id", String(36), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(String(100), default="New Matter")

    client_name: Mapped[str] = mapped_column(String(255))
    client_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_insurance_company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_insurer: Mapped[str | None] = mapped_column(String(255), nullable=True)

    at_fault_party_name: Mapped[str] = mapped_column(String(255), default="")
    at_fault_party_insurance_company: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    at_fault_party_insurer: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Display names of the assigned parties
    lawyer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    rental_company: Mapped[str | None] = mapped_column(String(255), nullable=True)

    accident_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Interaction(Base):
    """
    A logged event against a case.

    ``case_id`` has no foreign key: deleting a case leaves its interactions
    in place, and the feed's outer join reports them with empty case fields.
    """

    __tablename__ = "interactions"
    __table_args__ = (
        Index("idx_interactions_timestamp", "timestamp"),
        Index("idx_interactions_case_id", "case_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    case_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    case_number: Mapped[str] = mapped_column(String(255), index=True)
    interaction_type: Mapped[str] = mapped_column(String(50))
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    situation: Mapped[str] = mapped_column(Text)
    action_taken: Mapped[str] = mapped_column(Text)
    outcome: Mapped[str] = mapped_column(Text)

    priority: Mapped[str] = mapped_column(String(20), default="medium")
    status: Mapped[str] = mapped_column(String(30), default="completed")
    tags: Mapped[list[str]] = mapped_column(TagList, default=list)

    created_by: Mapped[str] = mapped_column(String(36))
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
