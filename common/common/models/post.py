from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class MediaType:
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


class Post(BaseModel):
    """커뮤니티 게시글 도메인 모델 (백엔드 posts 테이블 기준)"""

    id: str
    user_id: str | None = Field(default=None, alias="user_id")
    content: str | None = None
    media_type: str | None = Field(default=None, alias="media_type")
    media_urls: list[str] = Field(default_factory=list, alias="media_urls")
    likes_count: int = Field(default=0, alias="likes_count")
    comments_count: int = Field(default=0, alias="comments_count")
    created_at: UtcDateTime = Field(alias="created_at")
    viewer_has_liked: bool = Field(default=False, alias="viewer_has_liked")
    is_anonymous: bool = Field(default=False, alias="is_anonymous")
    challenge_id: str | None = Field(default=None, alias="challenge_id")

    @property
    def body(self) -> str:
        return (self.content or "").strip()

    @property
    def first_media_url(self) -> str | None:
        return self.media_urls[0] if self.media_urls else None
