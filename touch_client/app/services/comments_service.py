from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable

from common.types.datetime import utc_now

from ..exceptions import CommentValidationError
from ..models.interaction import CommentView, LikeSnapshot
from ..repositories.interfaces import BackendRepositoryInterface
from .interactions_service import InFlightGuard
from .notifications import NotifierInterface


logger = logging.getLogger(__name__)


MAX_COMMENT_LENGTH = 1000
TEMP_ID_PREFIX = "temp-"

CommentCountCallback = Callable[[str, int], None]


def validate_comment_content(content: str) -> str:
    """댓글 본문을 정리(trim)하고 길이를 검사한다."""

    text = (content or "").strip()
    if not text:
        raise CommentValidationError("Comment cannot be empty")
    if len(text) > MAX_COMMENT_LENGTH:
        raise CommentValidationError(
            f"Comment must be less than {MAX_COMMENT_LENGTH} characters"
        )
    return text


class CommentThread:
    """게시글 하나의 댓글 목록 스냅샷."""

    def __init__(self, post_id: str, comments: list[CommentView] | None = None) -> None:
        self.post_id = post_id
        self._comments: list[CommentView] = list(comments or [])

    @property
    def comments(self) -> list[CommentView]:
        return list(self._comments)

    def get(self, comment_id: str) -> CommentView | None:
        for comment in self._comments:
            if comment.id == comment_id:
                return comment
        return None

    def replace_all(self, comments: list[CommentView]) -> None:
        self._comments = list(comments)

    def append(self, comment: CommentView) -> None:
        self._comments.append(comment)

    def replace(self, comment_id: str, comment: CommentView) -> bool:
        for index, existing in enumerate(self._comments):
            if existing.id == comment_id:
                self._comments[index] = comment
                return True
        return False

    def remove(self, comment_id: str) -> bool:
        remaining = [c for c in self._comments if c.id != comment_id]
        removed = len(remaining) != len(self._comments)
        self._comments = remaining
        return removed

    def get_like_snapshot(self, entity_id: str) -> LikeSnapshot | None:
        comment = self.get(entity_id)
        if comment is None:
            return None
        return LikeSnapshot(viewer_has_liked=comment.viewer_has_liked, likes=comment.likes)

    def set_like_snapshot(self, entity_id: str, snapshot: LikeSnapshot) -> None:
        comment = self.get(entity_id)
        if comment is None:
            return
        self.replace(
            entity_id,
            comment.model_copy(
                update={
                    "viewer_has_liked": snapshot.viewer_has_liked,
                    "likes": snapshot.likes,
                }
            ),
        )


class CommentsService:
    """댓글 조회/작성/삭제.

    - 작성은 임시 댓글을 먼저 보여주고, 서버 응답으로 교체하거나 실패 시 그 임시 댓글만 지운다.
    - 같은 게시글에 대한 작성은 한 번에 하나만 진행한다.
    - 삭제는 서버 확인 후 목록에서 제거한다.
    """

    def __init__(
        self,
        backend: BackendRepositoryInterface,
        notifier: NotifierInterface,
        *,
        submit_guard: InFlightGuard,
        viewer_id: str | None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._guard = submit_guard
        self._viewer_id = viewer_id
        self._clock = clock

    async def load(self, thread: CommentThread) -> bool:
        try:
            comments = await self._backend.fetch_comments(thread.post_id)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "failed to load comments: %s", exc, extra={"entity_id": thread.post_id}
            )
            self._notifier.error("Error loading comments", "Please try again later")
            return False

        thread.replace_all([CommentView.from_comment(c) for c in comments])
        return True

    async def submit(
        self,
        thread: CommentThread,
        content: str,
        *,
        parent_comment_id: str | None = None,
        on_count_changed: CommentCountCallback | None = None,
    ) -> CommentView | None:
        try:
            text = validate_comment_content(content)
        except CommentValidationError as exc:
            self._notifier.error(str(exc))
            return None

        if not self._guard.try_acquire(thread.post_id):
            logger.debug(
                "comment submission already in flight",
                extra={"entity_id": thread.post_id},
            )
            return None

        temp = CommentView(
            id=f"{TEMP_ID_PREFIX}{uuid.uuid4()}",
            post_id=thread.post_id,
            user_id=self._viewer_id or "",
            content=text,
            created_at=self._clock(),
            parent_comment_id=parent_comment_id,
            pending=True,
        )
        thread.append(temp)

        is_reply = parent_comment_id is not None
        try:
            created = await self._backend.create_comment(
                thread.post_id, text, parent_comment_id
            )
        except Exception as exc:  # noqa: BLE001
            thread.remove(temp.id)
            logger.warning(
                "comment submission failed: %s", exc, extra={"entity_id": thread.post_id}
            )
            self._notifier.error(
                "Error posting reply" if is_reply else "Error posting comment",
                "Please try again" if is_reply else "Please try again later",
            )
            return None
        finally:
            self._guard.release(thread.post_id)

        confirmed = CommentView.from_comment(created)
        thread.replace(temp.id, confirmed)
        if on_count_changed is not None:
            on_count_changed(thread.post_id, 1)
        self._notifier.info("Reply posted! 💬" if is_reply else "Comment posted! 💬")
        return confirmed

    async def delete(
        self,
        thread: CommentThread,
        comment_id: str,
        *,
        on_count_changed: CommentCountCallback | None = None,
    ) -> bool:
        try:
            await self._backend.delete_comment(comment_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "comment delete failed: %s", exc, extra={"entity_id": comment_id}
            )
            self._notifier.error("Error deleting comment", "Please try again")
            return False

        if thread.remove(comment_id) and on_count_changed is not None:
            on_count_changed(thread.post_id, -1)
        self._notifier.info("Comment deleted! 🗑️")
        return True
