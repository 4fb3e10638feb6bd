"""Ranked listing adapter — fetches the top items of a JSON listing endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from newsfeed.errors import UpstreamUnavailable
from newsfeed.ingestion.adapter import PullAdapter

logger = logging.getLogger(__name__)

_USER_AGENT = "newsfeed/0.1 (source-ingestion)"


class ListingAdapter(PullAdapter):
    """Adapter for ranked JSON listings such as Reddit's ``top.json``."""

    def __init__(self, max_items: int = 25, timeout: float = 30.0) -> None:
        super().__init__(max_items, timeout)
        self._items_path: list[str] = ["data", "children"]
        self._item_key: str | None = "data"
        self._params: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return "listing"

    def configure(self, config: dict) -> None:
        """Accept listing configuration.

        ``items_path`` is a dotted path to the list of entries in the
        response body (default ``data.children``); ``item_key`` is the key
        holding the item inside each entry (default ``data``, null for
        entries that are the item itself). ``params`` are extra query
        parameters.
        """
        super().configure(config)
        self._items_path = config.get("items_path", "data.children").split(".")
        self._item_key = config.get("item_key", "data")
        self._params = dict(config.get("params", {}))

    def fetch(self) -> list[dict[str, Any]]:
        try:
            resp = httpx.get(
                self.url,
                params={"limit": self._max_items, **self._params},
                headers={"User-Agent": _USER_AGENT},
                timeout=self._timeout,
                follow_redirects=True,
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamUnavailable(f"Failed to fetch listing {self.url}: {exc}") from exc

        entries: Any = data
        for key in self._items_path:
            if not isinstance(entries, dict):
                entries = None
                break
            entries = entries.get(key)
        if not isinstance(entries, list):
            raise UpstreamUnavailable(
                f"Listing {self.url} has no list at '{'.'.join(self._items_path)}'"
            )

        items: list[dict[str, Any]] = []
        for entry in entries[: self._max_items]:
            if self._item_key and isinstance(entry, dict):
                entry = entry.get(self._item_key, {})
            items.append(entry)

        logger.info("Fetched %d items from %s", len(items), self.url)
        return items
