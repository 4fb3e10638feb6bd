"""Tests for newsfeed.ingestion.pull and the listing adapter."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from newsfeed.errors import StoreUnavailable, UpstreamUnavailable
from newsfeed.ingestion.listing_adapter import ListingAdapter
from newsfeed.ingestion.pull import build_adapter, ingest_once
from newsfeed.store import InMemoryFeedStore
from newsfeed.store.base import source_feed

REDDIT_CONFIG = {
    "type": "listing",
    "source_type": "reddit",
    "url": "https://www.reddit.com/r/popular/top.json",
    "limit": 3,
}


def _make_post(post_id, title="Test Post", url=None, subreddit="popular"):
    return {
        "kind": "t3",
        "data": {
            "id": post_id,
            "title": title,
            "url": url if url is not None else f"https://example.com/{post_id}",
            "subreddit": subreddit,
            "thumbnail": "default",
            "author": "poster",
        },
    }


def _make_response(posts):
    return {"kind": "Listing", "data": {"children": posts}}


def _mock_get(payload):
    def side_effect(url, **kwargs):
        resp = MagicMock()
        resp.raise_for_status = MagicMock()
        resp.json.return_value = payload
        return resp
    return side_effect


@pytest.fixture()
def store():
    return InMemoryFeedStore("secret")


class TestIngestOnce:
    def test_submits_every_item(self, store):
        posts = [_make_post("a1"), _make_post("a2"), _make_post("a3")]
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response(posts))):
            result = ingest_once(store, REDDIT_CONFIG)

        assert (result.submitted, result.failed) == (3, 0)
        assert result.source == "reddit"
        activities = store.read_feed(source_feed("reddit"))
        assert len(activities) == 3
        assert {a["actor"] for a in activities} == {"reddit"}
        assert {a["foreign_id"] for a in activities} == {"a1", "a2", "a3"}

    def test_item_without_url_is_counted_and_skipped(self, store):
        posts = [_make_post("a1"), _make_post("a2", url=""), _make_post("a3")]
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response(posts))):
            result = ingest_once(store, REDDIT_CONFIG)

        assert (result.submitted, result.failed) == (2, 1)
        assert len(store.read_feed(source_feed("reddit"))) == 2

    def test_append_failure_does_not_abort_batch(self, store):
        posts = [_make_post("a1"), _make_post("a2"), _make_post("a3")]
        real_append = store.append

        def flaky_append(feed, activity):
            if activity.foreign_id == "a2":
                raise StoreUnavailable("boom")
            return real_append(feed, activity)

        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response(posts))), \
                patch.object(store, "append", side_effect=flaky_append):
            result = ingest_once(store, REDDIT_CONFIG)

        assert (result.submitted, result.failed) == (2, 1)

    def test_timeout_submits_nothing(self, store):
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=httpx.ReadTimeout("timed out")):
            with pytest.raises(UpstreamUnavailable):
                ingest_once(store, REDDIT_CONFIG)

        assert store.read_feed(source_feed("reddit")) == []

    def test_repeated_invocation_is_idempotent(self, store):
        posts = [_make_post("a1"), _make_post("a2")]
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response(posts))):
            ingest_once(store, REDDIT_CONFIG)
            result = ingest_once(store, REDDIT_CONFIG)

        assert result.submitted == 2
        assert len(store.read_feed(source_feed("reddit"))) == 2

    def test_ensures_source_user(self, store):
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response([]))):
            ingest_once(store, {**REDDIT_CONFIG, "name": "Reddit"})

        assert store.users == {"reddit": "Reddit"}

    def test_custom_source_feed_name(self, store):
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response([_make_post("a1")]))):
            result = ingest_once(store, {**REDDIT_CONFIG, "source": "reddit-tech"})

        assert result.source == "reddit-tech"
        assert len(store.read_feed("source:reddit-tech")) == 1


class TestListingAdapter:
    def test_limit_bounds_batch(self):
        posts = [_make_post(f"p{i}") for i in range(10)]
        adapter = build_adapter({**REDDIT_CONFIG, "limit": 4})
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response(posts))) as mock_get:
            items = adapter.fetch()

        assert len(items) == 4
        assert mock_get.call_args.kwargs["params"]["limit"] == 4

    def test_unwraps_item_key(self):
        adapter = build_adapter(REDDIT_CONFIG)
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(_make_response([_make_post("a1")]))):
            items = adapter.fetch()

        assert items[0]["id"] == "a1"

    def test_flat_results_path(self):
        adapter = build_adapter({
            "type": "listing",
            "source_type": "nyt_api",
            "url": "https://api.nytimes.com/svc/mostpopular/v2/viewed/1.json",
            "items_path": "results",
            "item_key": None,
            "params": {"api-key": "k"},
        })
        payload = {"results": [{"id": 1, "url": "https://nyt.com/1", "title": "T"}]}
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get(payload)) as mock_get:
            items = adapter.fetch()

        assert items == [{"id": 1, "url": "https://nyt.com/1", "title": "T"}]
        assert adapter.source == "nyt"
        assert mock_get.call_args.kwargs["params"]["api-key"] == "k"

    def test_http_error_status(self):
        adapter = build_adapter(REDDIT_CONFIG)
        request = httpx.Request("GET", REDDIT_CONFIG["url"])
        response = httpx.Response(503, request=request)
        with patch("newsfeed.ingestion.listing_adapter.httpx.get", return_value=response):
            with pytest.raises(UpstreamUnavailable):
                adapter.fetch()

    def test_invalid_json(self):
        adapter = build_adapter(REDDIT_CONFIG)
        resp = MagicMock()
        resp.json.side_effect = ValueError("not json")
        with patch("newsfeed.ingestion.listing_adapter.httpx.get", return_value=resp):
            with pytest.raises(UpstreamUnavailable):
                adapter.fetch()

    def test_unexpected_shape(self):
        adapter = build_adapter(REDDIT_CONFIG)
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=_mock_get({"error": 429})):
            with pytest.raises(UpstreamUnavailable, match="data.children"):
                adapter.fetch()

    def test_name(self):
        assert ListingAdapter().name == "listing"


class TestBuildAdapter:
    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown adapter type"):
            build_adapter({"type": "carrier-pigeon", "url": "x", "source_type": "reddit"})
