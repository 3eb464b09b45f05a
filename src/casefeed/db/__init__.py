"""
casefeed Database Module.

Contains the SQLAlchemy models and engine/session helpers.
"""

from casefeed.db.models import (
    Base,
    Case,
    Contact,
    Interaction,
    Workspace,
    utcnow,
)
from casefeed.db.session import SessionManager, create_engine_from_settings, init_schema

__all__ = [
    # Models
    "Base",
    "Workspace",
    "Contact",
    "Case",
    "Interaction",
    "utcnow",
    # Session
    "SessionManager",
    "create_engine_from_settings",
    "init_schema",
]
