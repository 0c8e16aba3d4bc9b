"""북마크 제목 캐시의 staleness 판정과 대체 제목 계산."""

from __future__ import annotations

from common.models.post import Post


ELLIPSIS = "…"
_PLACEHOLDER_TITLES = {"...", ELLIPSIS}
_MIN_TITLE_LENGTH = 3

DEFAULT_POST_TITLE = "Community post"
IMAGE_POST_TITLE = "Image post"
VIDEO_POST_TITLE = "Video post"


def is_title_degraded(title: str | None) -> bool:
    """제목이 말줄임표뿐이거나 비어 있거나 3자 미만이면 True."""

    if title is None:
        return True
    if title in _PLACEHOLDER_TITLES:
        return True
    return len(title.strip()) < _MIN_TITLE_LENGTH


def truncate_title(text: str, max_length: int) -> str:
    if len(text) > max_length:
        return text[:max_length] + ELLIPSIS
    return text


def derive_post_title(post: Post, max_length: int = 50) -> str:
    """게시글 본문 앞부분으로 제목을 만든다. 본문이 없으면 미디어 종류로 대신한다."""

    body = post.body
    if body:
        return truncate_title(body, max_length)

    media_url = post.first_media_url or ""
    if "image" in media_url:
        return IMAGE_POST_TITLE
    if "video" in media_url:
        return VIDEO_POST_TITLE
    return DEFAULT_POST_TITLE


def post_has_content(post: Post) -> bool:
    """본문이나 미디어 중 하나라도 있어야 북마크 대상으로 의미가 있다."""
    return bool(post.body) or bool(post.media_urls)
