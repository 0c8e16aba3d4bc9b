from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class Comment(BaseModel):
    """게시글 댓글 도메인 모델 (comments 테이블)"""

    id: str
    post_id: str = Field(alias="post_id")
    user_id: str = Field(alias="user_id")
    content: str = ""
    media_url: str | None = Field(default=None, alias="media_url")
    media_type: str | None = Field(default=None, alias="media_type")
    created_at: UtcDateTime = Field(alias="created_at")
    likes_count: int = Field(default=0, alias="likes_count")
    replies_count: int = Field(default=0, alias="replies_count")
    parent_comment_id: str | None = Field(default=None, alias="parent_comment_id")
