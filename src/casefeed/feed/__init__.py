"""
casefeed Feed Module.

The read facade, row projection and the audited write path.
"""

from casefeed.feed.projector import FeedProjector
from casefeed.feed.service import InteractionFeedService
from casefeed.feed.writer import AuditHook, InteractionWriter

__all__ = [
    "FeedProjector",
    "InteractionFeedService",
    "InteractionWriter",
    "AuditHook",
]
