"""Built-in source types — one field-mapping table per external item shape."""

from __future__ import annotations

from newsfeed.ingestion.normalize import SourceType

# Ranked listing post (``data.children[].data``); the Zapier webhook body
# carries the same keys.
REDDIT = SourceType(
    name="reddit",
    actor="reddit",
    verb="post",
    object_field="url",
    foreign_id_field="id",
    extra_fields={
        "subreddit": "subreddit",
        "thumbnail": "thumbnail",
        "author": "author",
        "url": "url",
    },
    required_fields=("title",),
)

# Syndication entry as flattened by the RSS adapter.
BBC_RSS = SourceType(
    name="bbc_rss",
    actor="bbc",
    verb="article",
    object_field="link",
    foreign_id_field="guid",
    extra_fields={"snippet": "abstract", "date": "date"},
)

# Zapier RSS bridge.
BBC = SourceType(
    name="bbc",
    actor="bbc",
    verb="article",
    object_field="link",
    extra_fields={"blurb": "abstract", "date": "date"},
    required_fields=("title",),
)

# IFTTT bridge.
NYT = SourceType(
    name="nyt",
    actor="nyt",
    verb="article",
    object_field="articleUrl",
    extra_fields={"blurb": "abstract", "PublishedDate": "date", "author": "author"},
    required_fields=("title",),
)

# Most-popular API (``results[]``).
NYT_API = SourceType(
    name="nyt_api",
    actor="nyt",
    verb="article",
    object_field="url",
    foreign_id_field="id",
    extra_fields={
        "abstract": "abstract",
        "published_date": "date",
        "byline": "author",
        "section": "section",
    },
)

# IFTTT bridge.
NPR = SourceType(
    name="npr",
    actor="npr",
    verb="article",
    object_field="storyUrl",
    title_field="StoryTitle",
    extra_fields={"StoryExcerpt": "abstract", "PublishedAt": "date"},
    required_fields=("StoryTitle",),
)

BUILTIN_SOURCE_TYPES = (REDDIT, BBC_RSS, BBC, NYT, NYT_API, NPR)
