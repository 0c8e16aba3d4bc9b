"""북마크 검증 패스.

북마크는 원격 엔티티에 대한 가벼운 참조라서 원본이 삭제되거나 제목 캐시가 망가질 수 있다.
검증 패스는 모든 북마크를 원격 상태와 대조하고, 결과를 한 번에(batch) 반영한다.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum

from ..exceptions import EntityNotFoundError
from ..models.bookmark import Bookmark, BookmarkType
from ..repositories.interfaces import BackendRepositoryInterface
from .bookmark_titles import derive_post_title, is_title_degraded, post_has_content
from .bookmarks_service import BookmarkStore
from .notifications import NotifierInterface


logger = logging.getLogger(__name__)


class CheckOutcome(StrEnum):
    VALID = "valid"
    RETITLE = "retitle"
    REMOVE = "remove"


@dataclass(frozen=True, slots=True)
class BookmarkCheck:
    bookmark_id: str
    outcome: CheckOutcome
    new_title: str | None = None


@dataclass(slots=True)
class ValidationReport:
    checked: int = 0
    removed_ids: list[str] = field(default_factory=list)
    title_updates: dict[str, str] = field(default_factory=dict)

    @property
    def removed_count(self) -> int:
        return len(self.removed_ids)


def removal_message(count: int) -> str:
    return f"Removed {count} corrupted or deleted item{'s' if count > 1 else ''}"


class BookmarkValidator:
    """북마크를 원격 상태와 대조해 삭제/제목 수정을 결정하고 반영한다.

    - 조회 실패(예외)는 "해결 불가"와 동일하게 취급한다(fail closed).
    - 한 건의 실패가 나머지 검증을 중단시키지 않는다.
    """

    def __init__(
        self,
        store: BookmarkStore,
        backend: BackendRepositoryInterface,
        notifier: NotifierInterface,
        *,
        max_concurrency: int = 8,
        title_max_length: int = 50,
    ) -> None:
        self._store = store
        self._backend = backend
        self._notifier = notifier
        self._max_concurrency = max(1, max_concurrency)
        self._title_max_length = title_max_length

    async def check(self, bookmark: Bookmark) -> BookmarkCheck:
        """북마크 한 건을 검증한다. 예외를 올리지 않는다."""

        try:
            resolved_title = await self._resolve_title(bookmark)
        except EntityNotFoundError:
            logger.info(
                "bookmark target no longer exists", extra={"bookmark_id": bookmark.id}
            )
            return BookmarkCheck(bookmark.id, CheckOutcome.REMOVE)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "error validating bookmark %s: %s",
                bookmark.id,
                exc,
                extra={"bookmark_id": bookmark.id},
            )
            return BookmarkCheck(bookmark.id, CheckOutcome.REMOVE)

        if is_title_degraded(bookmark.title) and resolved_title != bookmark.title:
            return BookmarkCheck(bookmark.id, CheckOutcome.RETITLE, resolved_title)
        return BookmarkCheck(bookmark.id, CheckOutcome.VALID)

    async def validate(self) -> ValidationReport:
        """현재 북마크 전체를 검증하고, 모든 조회가 끝난 뒤 한 번에 반영한다."""

        bookmarks = self._store.list()
        report = ValidationReport(checked=len(bookmarks))
        if not bookmarks:
            return report

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(bookmark: Bookmark) -> BookmarkCheck:
            async with semaphore:
                return await self.check(bookmark)

        checks = await asyncio.gather(*(_bounded(b) for b in bookmarks))

        for result in checks:
            if result.outcome == CheckOutcome.REMOVE:
                report.removed_ids.append(result.bookmark_id)
            elif result.outcome == CheckOutcome.RETITLE and result.new_title:
                report.title_updates[result.bookmark_id] = result.new_title

        removed, retitled = self._store.apply_batch(
            report.removed_ids, report.title_updates
        )
        logger.info(
            "bookmark validation finished. checked=%d removed=%d retitled=%d",
            report.checked,
            removed,
            retitled,
        )

        # 겹쳐 실행된 다른 검증이 먼저 지웠다면 알리지 않는다.
        if removed:
            self._notifier.info("Bookmarks cleaned up", removal_message(removed))
        return report

    async def open_bookmark(self, bookmark_id: str) -> str | None:
        """북마크를 열 때 대상이 아직 있는지 확인하고 이동할 경로를 반환한다.

        대상이 사라졌으면 조용히 삭제하고 알림을 남긴 뒤 None 을 반환한다.
        """

        bookmark = self._store.get(bookmark_id)
        if bookmark is None:
            return None

        try:
            if bookmark.type == BookmarkType.CHALLENGE:
                return f"/challenge/{bookmark.id}"

            if bookmark.type == BookmarkType.POST:
                post = await self._backend.fetch_post(bookmark.id)
                if post is None or not post_has_content(post):
                    self._drop_unavailable(
                        bookmark,
                        "This post was removed or is empty. Removing from bookmarks.",
                    )
                    return None
                return f"/community?highlightPost={bookmark.id}"

            content = await self._backend.fetch_content(bookmark.id)
            if content is None or not content.title:
                self._drop_unavailable(
                    bookmark, "This content was removed. Removing from bookmarks."
                )
                return None
            return f"/library?highlightResource={bookmark.id}"
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "failed to open bookmark %s: %s",
                bookmark.id,
                exc,
                extra={"bookmark_id": bookmark.id},
            )
            self._drop_unavailable(
                bookmark,
                "This item may have been removed or updated. Removing from bookmarks.",
            )
            return None

    # 내부 util -------------------------------------------------------------
    async def _resolve_title(self, bookmark: Bookmark) -> str:
        """참조 대상을 조회해 표시용 제목을 돌려준다. 해결 불가면 EntityNotFoundError."""

        if bookmark.type == BookmarkType.CHALLENGE:
            challenge = await self._backend.fetch_challenge(bookmark.id)
            if challenge is None or not challenge.title:
                raise EntityNotFoundError(f"challenge {bookmark.id}")
            return challenge.title

        if bookmark.type == BookmarkType.POST:
            post = await self._backend.fetch_post(bookmark.id)
            if post is None or not post_has_content(post):
                raise EntityNotFoundError(f"post {bookmark.id}")
            return derive_post_title(post, self._title_max_length)

        content = await self._backend.fetch_content(bookmark.id)
        if content is None or not content.title:
            raise EntityNotFoundError(f"content {bookmark.id}")
        return content.title

    def _drop_unavailable(self, bookmark: Bookmark, description: str) -> None:
        self._store.remove_silent(bookmark.id)
        self._notifier.error("Bookmark no longer available", description)


class ValidationTrigger:
    """세션 중 북마크 목록이 비어 있다가 채워질 때마다 검증 패스를 한 번 돌린다.

    목록 변경마다 원격 조회를 하지 않도록, 빈 목록 -> 비어 있지 않은 목록 전환만 본다.
    """

    def __init__(self, validator: BookmarkValidator, store: BookmarkStore) -> None:
        self._validator = validator
        self._pending = False
        self._was_empty = True
        store.add_listener(self.on_bookmarks_changed)
        self.on_bookmarks_changed(len(store))

    @property
    def pending(self) -> bool:
        return self._pending

    def on_bookmarks_changed(self, count: int) -> None:
        if count == 0:
            self._was_empty = True
            self._pending = False
            return
        if self._was_empty:
            self._was_empty = False
            self._pending = True

    async def maybe_validate(self) -> ValidationReport | None:
        if not self._pending:
            return None
        self._pending = False
        return await self._validator.validate()
