from __future__ import annotations

from datetime import datetime, timezone

import pytest

from common.models.post import Post
from touch_client.app.models.bookmark import Bookmark, BookmarkType
from touch_client.app.services.bookmark_titles import (
    derive_post_title,
    is_title_degraded,
    post_has_content,
    truncate_title,
)
from touch_client.app.services.bookmark_view import BookmarkFilter, visible_bookmarks


def _post(content: str | None = None, media_urls: list[str] | None = None) -> Post:
    return Post(
        id="post-abc123",
        content=content,
        media_urls=media_urls or [],
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


@pytest.mark.parametrize(
    "title,expected",
    [
        (None, True),
        ("...", True),
        ("…", True),
        ("", True),
        ("  ab ", True),
        ("abc", False),
        ("Walk Outside", False),
    ],
)
def test_is_title_degraded(title: str | None, expected: bool) -> None:
    assert is_title_degraded(title) is expected


def test_short_body_is_used_as_is() -> None:
    assert derive_post_title(_post("  Great walk today!  ")) == "Great walk today!"


def test_long_body_is_truncated_with_ellipsis() -> None:
    body = "a" * 80

    title = derive_post_title(_post(body))

    assert title == "a" * 50 + "…"
    assert truncate_title("b" * 50, 50) == "b" * 50


@pytest.mark.parametrize(
    "media_urls,expected",
    [
        (["https://cdn.example.com/image/abc.jpg"], "Image post"),
        (["https://cdn.example.com/video/abc.mp4"], "Video post"),
        (["https://cdn.example.com/files/abc.bin"], "Community post"),
        ([], "Community post"),
    ],
)
def test_media_fallback_titles(media_urls: list[str], expected: str) -> None:
    assert derive_post_title(_post("   ", media_urls)) == expected


def test_post_has_content() -> None:
    assert post_has_content(_post("hello"))
    assert post_has_content(_post(None, ["https://cdn.example.com/image/a.jpg"]))
    assert not post_has_content(_post("   "))


def test_visible_bookmarks_filters_searches_and_sorts_newest_first() -> None:
    bookmarks = [
        Bookmark(
            id="post-older1",
            type=BookmarkType.POST,
            title="Sunset WALK",
            saved_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        ),
        Bookmark(
            id="challenge-1",
            type=BookmarkType.CHALLENGE,
            title="Walk Outside",
            saved_at=datetime(2024, 5, 2, tzinfo=timezone.utc),
        ),
        Bookmark(
            id="post-newer1",
            type=BookmarkType.POST,
            title="Evening walk",
            saved_at=datetime(2024, 5, 3, tzinfo=timezone.utc),
        ),
        Bookmark(
            id="content-article",
            type=BookmarkType.ARTICLE,
            title="Why nature helps",
            saved_at=datetime(2024, 5, 4, tzinfo=timezone.utc),
        ),
    ]

    everything = visible_bookmarks(bookmarks)
    posts = visible_bookmarks(bookmarks, BookmarkFilter.POSTS, "walk")

    assert [b.id for b in everything] == [
        "content-article",
        "post-newer1",
        "challenge-1",
        "post-older1",
    ]
    assert [b.id for b in posts] == ["post-newer1", "post-older1"]
    assert visible_bookmarks(bookmarks, BookmarkFilter.VIDEOS) == []
