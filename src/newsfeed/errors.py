"""Error taxonomy shared by ingesters, the feed store, and registration."""

from __future__ import annotations


class FeedError(Exception):
    """Base class for all newsfeed errors."""


class MalformedInput(FeedError, ValueError):
    """A raw item is missing a field its source type requires."""


class UpstreamUnavailable(FeedError):
    """An external content source was unreachable or returned an error."""


class StoreUnavailable(FeedError):
    """The feed store could not complete an operation."""


class InvalidFeedKey(FeedError, ValueError):
    """A feed key does not have the form ``group:slug``."""


class RegistrationIncomplete(FeedError):
    """One or more follow edges could not be created during registration.

    The user and any edges created before the failure remain in place;
    registering again with the same username is safe.
    """

    def __init__(self, username: str, failed_feeds: list[str]) -> None:
        self.username = username
        self.failed_feeds = failed_feeds
        super().__init__(
            f"Registration of '{username}' incomplete; "
            f"could not follow: {', '.join(failed_feeds)}"
        )


class InvalidToken(FeedError):
    """A client token is malformed, forged, or lacks a ``user_id`` claim."""
