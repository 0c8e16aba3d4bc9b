from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class ContentItem(BaseModel):
    """라이브러리 콘텐츠(아티클/영상) 도메인 모델 (content 테이블)"""

    id: str
    title: str | None = None
    content_type: str = Field(default="article", alias="content_type")
    summary: str | None = None
    thumbnail_url: str | None = Field(default=None, alias="thumbnail_url")
    video_url: str | None = Field(default=None, alias="video_url")
    tags: list[str] = Field(default_factory=list)
    published_at: UtcDateTime | None = Field(default=None, alias="published_at")
