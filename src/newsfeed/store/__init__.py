"""Feed store — the boundary to the feed engine."""

from newsfeed.store.base import FeedKey, FeedStore, source_feed, user_feed
from newsfeed.store.memory import InMemoryFeedStore
from newsfeed.store.sqlite import SQLiteFeedStore

__all__ = [
    "FeedKey",
    "FeedStore",
    "InMemoryFeedStore",
    "SQLiteFeedStore",
    "source_feed",
    "user_feed",
]
