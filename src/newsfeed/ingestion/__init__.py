"""Ingestion pipeline — source fetching, normalization, and submission."""

from newsfeed.ingestion.listing_adapter import ListingAdapter
from newsfeed.ingestion.registry import register_adapter, register_source_type
from newsfeed.ingestion.rss_adapter import RSSAdapter
from newsfeed.ingestion.sources import BUILTIN_SOURCE_TYPES

register_adapter("listing", ListingAdapter)
register_adapter("rss", RSSAdapter)

for _source_type in BUILTIN_SOURCE_TYPES:
    register_source_type(_source_type)
