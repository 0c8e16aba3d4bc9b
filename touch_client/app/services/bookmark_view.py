from __future__ import annotations

from enum import StrEnum

from ..models.bookmark import Bookmark, BookmarkType


class BookmarkFilter(StrEnum):
    ALL = "all"
    CHALLENGES = "challenges"
    POSTS = "posts"
    ARTICLES = "articles"
    VIDEOS = "videos"


_FILTER_TO_TYPE: dict[BookmarkFilter, BookmarkType] = {
    BookmarkFilter.CHALLENGES: BookmarkType.CHALLENGE,
    BookmarkFilter.POSTS: BookmarkType.POST,
    BookmarkFilter.ARTICLES: BookmarkType.ARTICLE,
    BookmarkFilter.VIDEOS: BookmarkType.VIDEO,
}


def visible_bookmarks(
    bookmarks: list[Bookmark],
    active_filter: BookmarkFilter = BookmarkFilter.ALL,
    query: str = "",
) -> list[Bookmark]:
    """북마크 화면에 보여줄 목록을 만든다.

    type 필터 -> 제목 검색(대소문자 무시) -> 저장 시각 최신순 정렬 순서로 적용한다.
    """

    wanted_type = _FILTER_TO_TYPE.get(active_filter)
    items = [b for b in bookmarks if wanted_type is None or b.type == wanted_type]

    needle = query.strip().lower()
    if needle:
        items = [b for b in items if needle in (b.title or "").lower()]

    return sorted(items, key=lambda b: b.saved_at, reverse=True)
