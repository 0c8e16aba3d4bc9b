from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from common.models.post import MediaType, Post
from common.types.datetime import UtcDateTime


class FeedSort(StrEnum):
    NEWEST = "newest"
    TOP = "top"
    FOLLOWING = "following"


class FeedType(StrEnum):
    ALL = "all"
    IMAGES = "images"
    VIDEOS = "videos"
    TEXT = "text"


class FeedQuery(BaseModel):
    """피드 조회 옵션"""

    sort: FeedSort = FeedSort.NEWEST
    type: FeedType = FeedType.ALL


class FeedPost(BaseModel):
    """화면에 보이는 게시글 스냅샷.

    likes / viewer_has_liked 는 원격 집계값에서 시작하지만 낙관적 업데이트로 먼저 바뀔 수 있다.
    pending 은 아직 서버 확인을 받지 못한 로컬 작성 게시글을 뜻한다.
    """

    id: str
    author_id: str | None = None
    body: str = ""
    media_type: str | None = None
    media_url: str | None = None
    created_at: UtcDateTime
    likes: int = 0
    comments: int = 0
    viewer_has_liked: bool = False
    is_anonymous: bool = False
    challenge_id: str | None = None
    pending: bool = Field(default=False)

    @property
    def engagement(self) -> int:
        return self.likes + self.comments

    def matches_type(self, feed_type: FeedType) -> bool:
        if feed_type == FeedType.ALL:
            return True
        if feed_type == FeedType.IMAGES:
            return self.media_type == MediaType.IMAGE
        if feed_type == FeedType.VIDEOS:
            return self.media_type == MediaType.VIDEO
        # 원격 조회의 media_type=is.null 조건과 같은 기준
        return self.media_type is None

    @classmethod
    def from_post(cls, post: Post) -> "FeedPost":
        return cls(
            id=post.id,
            author_id=post.user_id,
            body=post.content or "",
            media_type=post.media_type,
            media_url=post.first_media_url,
            created_at=post.created_at,
            likes=post.likes_count or 0,
            comments=post.comments_count or 0,
            viewer_has_liked=post.viewer_has_liked,
            is_anonymous=post.is_anonymous,
            challenge_id=post.challenge_id,
        )
