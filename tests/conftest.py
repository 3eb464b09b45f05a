"""
Shared test fixtures.
"""

from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from casefeed.config import FeedSettings
from casefeed.core.context import Actor
from casefeed.db.session import init_schema
from casefeed.feed.service import InteractionFeedService
from tests.factories import seed_feed

# === Fixtures ===


@pytest.fixture
def engine():
    """In-memory SQLite engine sharing one connection across threads."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create a database session."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def seeded(engine) -> dict[str, Any]:
    """Standard dataset: cases a, b and c with nine interactions."""
    return seed_feed(engine)


@pytest.fixture
def settings() -> FeedSettings:
    return FeedSettings()


@pytest.fixture
def service(engine, settings) -> InteractionFeedService:
    return InteractionFeedService(engine, settings)


# === Actors ===


@pytest.fixture
def admin() -> Actor:
    return Actor(id="u-admin", role="admin")


@pytest.fixture
def developer() -> Actor:
    return Actor(id="u-dev", role="developer")


@pytest.fixture
def lawyer_contact() -> Actor:
    """workspace_user linked to contact-77 (lawyer on case a)."""
    return Actor(id="u-lex", role="workspace_user", contact_id="contact-77")


@pytest.fixture
def rental_contact() -> Actor:
    """workspace_user linked to contact-99 (rental company on cases b and c)."""
    return Actor(id="u-fastcars", role="workspace_user", contact_id="contact-99")


@pytest.fixture
def north_lawyer() -> Actor:
    """Lawyer scoped to workspace ws-1 (cases a and c)."""
    return Actor(id="u-north", role="lawyer", workspace_id="ws-1")


@pytest.fixture
def south_rental() -> Actor:
    """Rental company scoped to workspace ws-2 (case b)."""
    return Actor(id="u-south", role="rental_company", workspace_id="ws-2")


@pytest.fixture
def unscoped() -> Actor:
    """No contact and no workspace: sees nothing."""
    return Actor(id="u-nobody", role="workspace_user")
