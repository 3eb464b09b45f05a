"""
casefeed Integrations Module.

HTTP wiring for the interaction feed.
"""

from casefeed.integrations.fastapi import FeedRouter, create_feed_router

__all__ = [
    "FeedRouter",
    "create_feed_router",
]
