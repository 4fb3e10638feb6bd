"""Pull adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from newsfeed.ingestion.normalize import resolve_source_type


class PullAdapter(ABC):
    """Abstract base class for pull-based source adapters.

    An adapter knows how to fetch a bounded batch of raw items from one kind
    of upstream endpoint. It does not normalize or submit; the pull
    ingester drives the returned items through the normalizer.
    """

    def __init__(self, max_items: int = 25, timeout: float = 30.0) -> None:
        self._max_items = max_items
        self._timeout = timeout
        self.url = ""
        self.source_type = ""
        self.source = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter type name."""

    def configure(self, config: dict) -> None:
        """Accept source configuration.

        Expected keys: ``url``, ``source_type`` (a registered source type
        name), and optionally ``source`` (the source feed name, defaulting
        to the source type's actor) and ``limit``.
        """
        self.url = config["url"]
        st = resolve_source_type(config["source_type"])
        self.source_type = st.name
        self.source = config.get("source", st.actor)
        self._max_items = int(config.get("limit", self._max_items))

    @abstractmethod
    def fetch(self) -> list[dict[str, Any]]:
        """Fetch at most ``limit`` raw items from the upstream endpoint.

        Raises UpstreamUnavailable if the endpoint is unreachable, times out,
        or returns something that cannot be decoded.
        """
