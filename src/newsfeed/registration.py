"""Registration — create a user and compose its feed from the source feeds."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass

from newsfeed.errors import RegistrationIncomplete, StoreUnavailable
from newsfeed.store.base import FeedStore, source_feed, user_feed

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s")


class RegistrationState(enum.Enum):
    RECEIVED = "received"
    USERNAME_NORMALIZED = "username_normalized"
    USER_ENSURED = "user_ensured"
    FEED_CREATED = "feed_created"
    FOLLOWING = "following"
    COMPLETE = "complete"


@dataclass(frozen=True)
class RegistrationResult:
    token: str
    username: str


def _transition(username: str, state: RegistrationState) -> None:
    logger.debug("Registration %s: %s", username, state.value)


def normalize_username(raw: str) -> str:
    """Replace every whitespace character with ``_`` and lower-case.

    Idempotent, so ``"Jane Doe"`` and ``"jane_doe"`` map to the same user.
    """
    return _WHITESPACE_RE.sub("_", raw).lower()


def register(
    store: FeedStore, raw_username: str, source_names: list[str]
) -> RegistrationResult:
    """Register a user and follow every configured source feed.

    Each step is idempotent, so a failed registration can be retried with
    the same username. Every follow is attempted before failing; if any
    fails, RegistrationIncomplete names the feeds that were not followed.
    """
    _transition(raw_username, RegistrationState.RECEIVED)
    username = normalize_username(raw_username)
    feed = user_feed(username)
    targets = [source_feed(name) for name in source_names]
    _transition(username, RegistrationState.USERNAME_NORMALIZED)

    store.ensure_user(username, username)
    _transition(username, RegistrationState.USER_ENSURED)

    # Feeds are created lazily by the engine on first follow or append.
    token = store.issue_token(username)
    _transition(username, RegistrationState.FEED_CREATED)

    _transition(username, RegistrationState.FOLLOWING)
    failed: list[str] = []
    for i, target in enumerate(targets, start=1):
        try:
            store.follow(feed, target)
        except StoreUnavailable:
            logger.exception("Registration %s: follow %d/%d (%s) failed",
                             username, i, len(targets), target)
            failed.append(str(target))
    if failed:
        raise RegistrationIncomplete(username, failed)

    _transition(username, RegistrationState.COMPLETE)
    logger.info("Registered %s following %d source feeds", username, len(targets))
    return RegistrationResult(token=token, username=username)
