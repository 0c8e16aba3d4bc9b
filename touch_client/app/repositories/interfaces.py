from __future__ import annotations

from typing import Any, Protocol

from common.models.challenge import Challenge
from common.models.comment import Comment
from common.models.content import ContentItem
from common.models.post import Post

from ..models.feed import FeedSort, FeedType
from .documents.bookmark_document import BookmarkDocument


class BookmarkRepositoryInterface(Protocol):
    """로컬 북마크 저장소가 따라야 할 최소한의 계약.

    - 순서가 있는 북마크 레코드 목록을 통째로 읽고 쓴다.
    - 읽기/쓰기 실패는 PersistenceError 로 올린다. 재시도는 하지 않는다.
    """

    def load(self) -> list[dict[str, Any]]:  # pragma: no cover - Protocol
        """저장된 레코드를 가공하지 않은 dict 목록으로 반환한다."""
        ...

    def save(
        self, documents: list[BookmarkDocument]
    ) -> None:  # pragma: no cover - Protocol
        ...

    def reset(self) -> None:  # pragma: no cover - Protocol
        """손상된 저장 데이터를 폐기한다."""
        ...


class BackendRepositoryInterface(Protocol):
    """호스팅 백엔드(REST) 접근 계약.

    Service 레이어는 이 인터페이스에만 의존하고, HTTP 세부 구현은 몰라도 된다.
    조회 결과가 없으면 None 을, 전송/서버 오류는 RemoteCallError 를 올린다.
    """

    async def fetch_challenge(
        self, challenge_id: str
    ) -> Challenge | None:  # pragma: no cover - Protocol
        ...

    async def fetch_post(self, post_id: str) -> Post | None:  # pragma: no cover - Protocol
        ...

    async def fetch_content(
        self, content_id: str
    ) -> ContentItem | None:  # pragma: no cover - Protocol
        ...

    async def toggle_like(self, post_id: str) -> bool:  # pragma: no cover - Protocol
        """좋아요를 토글하고 토글 후의 상태(True=좋아요)를 반환한다."""
        ...

    async def fetch_posts(
        self, sort: FeedSort, type: FeedType, limit: int | None = None
    ) -> list[Post]:  # pragma: no cover - Protocol
        ...

    async def fetch_following_ids(
        self, user_id: str
    ) -> list[str]:  # pragma: no cover - Protocol
        ...

    async def fetch_comments(
        self, post_id: str
    ) -> list[Comment]:  # pragma: no cover - Protocol
        ...

    async def create_comment(
        self, post_id: str, content: str, parent_comment_id: str | None = None
    ) -> Comment:  # pragma: no cover - Protocol
        ...

    async def delete_comment(self, comment_id: str) -> None:  # pragma: no cover - Protocol
        ...

    async def like_comment(self, comment_id: str) -> None:  # pragma: no cover - Protocol
        ...

    async def unlike_comment(self, comment_id: str) -> None:  # pragma: no cover - Protocol
        ...
