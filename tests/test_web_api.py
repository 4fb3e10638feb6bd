"""Integration tests for the newsfeed web API endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from newsfeed.config import Config, SourcesConfig
from newsfeed.errors import StoreUnavailable
from newsfeed.store import InMemoryFeedStore, SQLiteFeedStore
from newsfeed.store.base import source_feed, user_feed
from newsfeed.web.app import create_app

SECRET = "secret-456"

SOURCES = SourcesConfig(
    sources=[{
        "type": "listing",
        "source_type": "reddit",
        "url": "https://www.reddit.com/r/popular/top.json",
        "limit": 3,
    }],
    follow=["reddit", "nyt", "bbc"],
)


def _config(tmp_path) -> Config:
    return Config(
        feed_api_key="key-123",
        feed_api_secret=SECRET,
        database_path=str(tmp_path / "feeds.db"),
    )


@pytest.fixture()
def store(tmp_path):
    s = SQLiteFeedStore(str(tmp_path / "feeds.db"), SECRET)
    yield s
    s.close()


@pytest.fixture()
def client(tmp_path, store):
    return TestClient(create_app(_config(tmp_path), store, SOURCES))


def _listing(posts):
    resp = MagicMock()
    resp.raise_for_status = MagicMock()
    resp.json.return_value = {"data": {"children": [{"data": p} for p in posts]}}
    return resp


class TestHealth:
    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "store": "ok"}

    def test_unhealthy_when_store_closed(self, client, store):
        store.close()
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"


class TestRegistration:
    def test_success(self, client, store):
        resp = client.post("/registration", json={"username": "Jane Doe"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["username"] == "jane_doe"
        assert data["apiKey"] == "key-123"
        assert jwt.decode(data["token"], SECRET, algorithms=["HS256"]) == {"user_id": "jane_doe"}

    def test_repeat_registration(self, client, store):
        first = client.post("/registration", json={"username": "Jane Doe"}).json()
        second = client.post("/registration", json={"username": "jane_doe"}).json()
        assert first == second

        store.append(source_feed("bbc"), _bbc_activity())
        assert len(store.read_feed(user_feed("jane_doe"))) == 1

    def test_store_failure_is_500(self, tmp_path):
        failing = InMemoryFeedStore(SECRET)
        failing.follow = MagicMock(side_effect=StoreUnavailable("engine down"))
        client = TestClient(create_app(_config(tmp_path), failing, SOURCES))

        resp = client.post("/registration", json={"username": "Jane Doe"})
        assert resp.status_code == 500
        assert "source:reddit" in resp.json()["error"]
        assert "token" not in resp.json()

    def test_invalid_username_is_500(self, client):
        resp = client.post("/registration", json={"username": "jane@example.com"})
        assert resp.status_code == 500
        assert "error" in resp.json()

    def test_empty_username_is_500(self, client, store):
        resp = client.post("/registration", json={"username": ""})
        assert resp.status_code == 500
        assert "username" in resp.json()["error"]
        assert "detail" not in resp.json()

    def test_missing_username_is_500(self, client):
        resp = client.post("/registration", json={})
        assert resp.status_code == 500
        assert "username" in resp.json()["error"]


def _bbc_activity():
    from newsfeed.ingestion.normalize import Activity
    return Activity(actor="bbc", verb="article", object="https://bbc.co.uk/1", title="BBC")


class TestInitialize:
    def test_success(self, client, store):
        posts = [
            {"id": "a1", "title": "One", "url": "https://example.com/1"},
            {"id": "a2", "title": "Two", "url": "https://example.com/2"},
            {"id": "a3", "title": "Three"},
        ]
        with patch("newsfeed.ingestion.listing_adapter.httpx.get", return_value=_listing(posts)):
            resp = client.post("/initialize")

        assert resp.status_code == 200
        assert resp.json() == {"sources": {"reddit": {"submitted": 2, "failed": 1}}}
        assert len(store.read_feed(source_feed("reddit"))) == 2

    def test_upstream_failure_is_500(self, client, store):
        with patch("newsfeed.ingestion.listing_adapter.httpx.get",
                   side_effect=httpx.ReadTimeout("timed out")):
            resp = client.post("/initialize")

        assert resp.status_code == 500
        assert "reddit" in resp.json()["error"]
        assert store.read_feed(source_feed("reddit")) == []


class TestWebhooks:
    def test_reddit_webhook(self, client, store):
        payload = {"id": "z1", "title": "Zapped", "url": "https://example.com/z1",
                   "author": "a", "subreddit": "news", "thumbnail": "self"}
        resp = client.post("/reddit-webhook", json=payload)
        assert resp.status_code == 200
        activities = store.read_feed(source_feed("reddit"))
        assert [a["id"] for a in activities] == [resp.json()["id"]]

    def test_redelivery_returns_same_id(self, client):
        payload = {"link": "https://bbc.co.uk/2", "title": "Story", "blurb": "b"}
        first = client.post("/bbc-webhook", json=payload).json()
        second = client.post("/bbc-webhook", json=payload).json()
        assert first == second

    def test_missing_title_is_500(self, client, store):
        resp = client.post("/bbc-webhook", json={"link": "https://bbc.co.uk/3"})
        assert resp.status_code == 500
        assert "title" in resp.json()["error"]
        assert store.read_feed(source_feed("bbc")) == []

    def test_non_object_body_is_500(self, client, store):
        resp = client.post("/reddit-webhook", json=[{"id": "z1", "url": "https://example.com/z1"}])
        assert resp.status_code == 500
        assert "must be an object" in resp.json()["error"]
        assert store.read_feed(source_feed("reddit")) == []

    def test_unparseable_body_is_500(self, client):
        resp = client.post(
            "/reddit-webhook",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 500
        assert "error" in resp.json()

    def test_unknown_source_is_404(self, client):
        resp = client.post("/myspace-webhook", json={"url": "x"})
        assert resp.status_code == 404
        assert "myspace" in resp.json()["error"]


class TestFeeds:
    def _register(self, client, username):
        return client.post("/registration", json={"username": username}).json()["token"]

    def test_user_timeline(self, client, store):
        token = self._register(client, "Jane Doe")
        client.post("/npr-webhook", json={"storyUrl": "https://npr.org/1", "StoryTitle": "Not followed"})
        client.post("/nyt-webhook", json={"articleUrl": "https://nyt.com/1", "title": "Followed"})

        resp = client.get("/feeds/user/jane_doe", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["feed"] == "user:jane_doe"
        assert [a["title"] for a in data["activities"]] == ["Followed"]

    def test_user_timeline_without_token_is_401(self, client):
        self._register(client, "Jane Doe")
        resp = client.get("/feeds/user/jane_doe")
        assert resp.status_code == 401
        assert "error" in resp.json()

    def test_other_users_token_is_403(self, client):
        self._register(client, "Jane Doe")
        john = self._register(client, "John")
        resp = client.get("/feeds/user/jane_doe", headers={"Authorization": f"Bearer {john}"})
        assert resp.status_code == 403
        assert "user:jane_doe" in resp.json()["error"]

    def test_forged_token_is_401(self, client):
        self._register(client, "Jane Doe")
        forged = jwt.encode({"user_id": "jane_doe"}, "not-the-secret", algorithm="HS256")
        resp = client.get("/feeds/user/jane_doe", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

    def test_non_bearer_scheme_is_401(self, client):
        token = self._register(client, "Jane Doe")
        resp = client.get("/feeds/user/jane_doe", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401

    def test_source_feed_is_public(self, client):
        client.post("/nyt-webhook", json={"articleUrl": "https://nyt.com/1", "title": "Public"})
        resp = client.get("/feeds/source/nyt")
        assert resp.status_code == 200
        assert [a["title"] for a in resp.json()["activities"]] == ["Public"]

    def test_invalid_feed_key(self, client):
        resp = client.get("/feeds/user/bad%20slug")
        assert resp.status_code == 500

    def test_invalid_limit_is_500(self, client):
        resp = client.get("/feeds/source/nyt?limit=0")
        assert resp.status_code == 500
        assert "limit" in resp.json()["error"]
