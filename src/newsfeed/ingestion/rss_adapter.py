"""RSS/Atom feed source adapter."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from html import unescape
from typing import Any

import feedparser
import httpx

from newsfeed.errors import UpstreamUnavailable
from newsfeed.ingestion.adapter import PullAdapter

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    """Remove HTML tags and unescape entities."""
    return unescape(_HTML_TAG_RE.sub("", text)).strip()


def _parse_pub_date(entry: dict) -> str | None:
    """Extract the publication date of a feed entry as ISO 8601."""
    raw = entry.get("published") or entry.get("updated")
    if raw:
        try:
            return parsedate_to_datetime(raw).isoformat()
        except (ValueError, TypeError):
            pass
    # Atom dates are not RFC 2822; fall back to feedparser's parsed tuple
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        try:
            return datetime(*parsed[:6], tzinfo=timezone.utc).isoformat()
        except (ValueError, TypeError):
            pass
    return None


def _get_snippet(entry: dict) -> str:
    """Plain-text summary of a feed entry."""
    return strip_html(entry.get("summary", "") or entry.get("description", ""))


def flatten_entry(entry: dict) -> dict[str, Any]:
    """Flatten a feedparser entry into the raw item shape of ``bbc_rss``."""
    return {
        "link": entry.get("link"),
        "title": entry.get("title", "").strip(),
        "snippet": _get_snippet(entry),
        "date": _parse_pub_date(entry),
        "guid": entry.get("id"),
    }


class RSSAdapter(PullAdapter):
    """Adapter for RSS and Atom feeds."""

    @property
    def name(self) -> str:
        return "rss"

    def fetch(self) -> list[dict[str, Any]]:
        try:
            response = httpx.get(self.url, timeout=self._timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Failed to fetch feed {self.url}: {exc}") from exc

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            raise UpstreamUnavailable(
                f"Feed {self.url} could not be parsed: {feed.get('bozo_exception')}"
            )

        items = [flatten_entry(entry) for entry in feed.entries[: self._max_items]]
        logger.info("Fetched %d items from %s", len(items), self.url)
        return items
