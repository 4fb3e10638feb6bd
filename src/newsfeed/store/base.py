"""Feed store interface — the only boundary to the feed engine."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt

from newsfeed.errors import InvalidFeedKey, InvalidToken, StoreUnavailable

if TYPE_CHECKING:
    from newsfeed.ingestion.normalize import Activity

SOURCE_GROUP = "source"
USER_GROUP = "user"

_GROUP_RE = re.compile(r"^\w+$")
_SLUG_RE = re.compile(r"^[\w-]+$")


@dataclass(frozen=True)
class FeedKey:
    """A feed's identity: ``group:slug``."""

    group: str
    slug: str

    def __post_init__(self) -> None:
        if not isinstance(self.group, str) or not _GROUP_RE.match(self.group):
            raise InvalidFeedKey(f"Invalid feed group {self.group!r}")
        if not isinstance(self.slug, str) or not _SLUG_RE.match(self.slug):
            raise InvalidFeedKey(f"Invalid feed slug {self.slug!r}")

    def __str__(self) -> str:
        return f"{self.group}:{self.slug}"

    @classmethod
    def parse(cls, value: str) -> FeedKey:
        group, sep, slug = value.partition(":")
        if not sep:
            raise InvalidFeedKey(f"Feed key {value!r} is not of the form group:slug")
        return cls(group, slug)


def as_feed_key(value: FeedKey | str) -> FeedKey:
    """Accept a FeedKey or its ``group:slug`` string form."""
    if isinstance(value, FeedKey):
        return value
    if isinstance(value, str):
        return FeedKey.parse(value)
    raise InvalidFeedKey(f"Invalid feed key {value!r}")


def source_feed(name: str) -> FeedKey:
    return FeedKey(SOURCE_GROUP, name)


def user_feed(username: str) -> FeedKey:
    return FeedKey(USER_GROUP, username)


class FeedStore(ABC):
    """Abstract feed engine.

    Every write is idempotent: ``ensure_user`` and ``follow`` are
    create-or-noop, and ``append`` returns the existing activity id when an
    activity with the same ``(foreign_id, object)`` is already in the feed.
    Implementations raise StoreUnavailable when the engine cannot be reached
    and after ``close()``.
    """

    def __init__(self, api_secret: str) -> None:
        self._api_secret = api_secret
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise StoreUnavailable("Feed store is closed")

    def issue_token(self, user_id: str) -> str:
        """Issue the client token for reading ``user_id``'s own feed.

        Deterministic per id and computed locally.
        """
        self._check_open()
        return jwt.encode({"user_id": user_id}, self._api_secret, algorithm="HS256")

    def verify_token(self, token: str) -> str:
        """Return the user id a token issued by ``issue_token`` was made for.

        Raises InvalidToken if the signature does not match or the claim is
        missing.
        """
        try:
            claims = jwt.decode(token, self._api_secret, algorithms=["HS256"])
        except JWTError as exc:
            raise InvalidToken(f"Invalid token: {exc}") from exc
        user_id = claims.get("user_id")
        if not isinstance(user_id, str):
            raise InvalidToken("Token has no user_id claim")
        return user_id

    @abstractmethod
    def ensure_user(self, user_id: str, display_name: str) -> None:
        """Create the user if it does not exist."""

    @abstractmethod
    def append(self, feed: FeedKey | str, activity: Activity) -> str:
        """Add an activity to a feed and return its id."""

    @abstractmethod
    def follow(self, follower: FeedKey | str, target: FeedKey | str) -> None:
        """Make ``target``'s activities visible in ``follower``."""

    @abstractmethod
    def read_feed(self, feed: FeedKey | str, limit: int = 25) -> list[dict[str, Any]]:
        """Return the feed's own and followed activities, newest first."""

    def ping(self) -> None:
        """Raise StoreUnavailable if the engine cannot serve requests."""
        self._check_open()

    def close(self) -> None:
        """Release engine resources. Later calls raise StoreUnavailable."""
        self._closed = True
