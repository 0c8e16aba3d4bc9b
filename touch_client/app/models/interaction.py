from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel

from common.models.comment import Comment
from common.types.datetime import UtcDateTime


class InteractionState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"


class InteractionOutcome(StrEnum):
    """한 번의 트리거가 끝났을 때의 결과."""

    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    IGNORED = "ignored"  # 같은 id 의 요청이 이미 진행 중이었음
    MISSING = "missing"  # 화면 스냅샷에 해당 엔티티가 없음


@dataclass(frozen=True, slots=True)
class LikeSnapshot:
    viewer_has_liked: bool
    likes: int

    def toggled(self) -> "LikeSnapshot":
        if self.viewer_has_liked:
            return LikeSnapshot(viewer_has_liked=False, likes=max(0, self.likes - 1))
        return LikeSnapshot(viewer_has_liked=True, likes=self.likes + 1)


class CommentView(BaseModel):
    """댓글 목록 화면의 댓글 스냅샷."""

    id: str
    post_id: str
    user_id: str
    content: str = ""
    created_at: UtcDateTime
    likes: int = 0
    viewer_has_liked: bool = False
    replies: int = 0
    parent_comment_id: str | None = None
    pending: bool = False

    @classmethod
    def from_comment(
        cls, comment: Comment, *, viewer_has_liked: bool = False
    ) -> "CommentView":
        return cls(
            id=comment.id,
            post_id=comment.post_id,
            user_id=comment.user_id,
            content=comment.content,
            created_at=comment.created_at,
            likes=comment.likes_count,
            viewer_has_liked=viewer_has_liked,
            replies=comment.replies_count,
            parent_comment_id=comment.parent_comment_id,
        )
