from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable, Mapping

from common.types.datetime import utc_now

from ..exceptions import PersistenceError
from ..models.bookmark import Bookmark, BookmarkDraft
from ..repositories.documents.bookmark_document import BookmarkDocument
from ..repositories.interfaces import BookmarkRepositoryInterface
from .notifications import NotifierInterface


logger = logging.getLogger(__name__)


BookmarkListener = Callable[[int], None]


class BookmarkStore:
    """기기 로컬 북마크 목록 관리 비즈니스 로직.

    - 메모리 상의 목록이 항상 기준이며, 변경될 때마다 저장소에 통째로 기록한다.
    - 저장 실패는 로그만 남기고 무시한다(재시도 없음).
    - 단일 사용자, 단일 이벤트 루프에서만 변경된다고 가정한다.
    """

    def __init__(
        self,
        repo: BookmarkRepositoryInterface,
        notifier: NotifierInterface,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repo
        self._notifier = notifier
        self._clock = clock
        self._items: list[Bookmark] = []
        self._listeners: list[BookmarkListener] = []

    # 조회 -----------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._items)

    def list(self) -> list[Bookmark]:
        """저장된 순서(추가 순) 그대로 반환한다. 최신순 정렬은 화면 쪽에서 한다."""
        return list(self._items)

    def get(self, bookmark_id: str) -> Bookmark | None:
        for item in self._items:
            if item.id == bookmark_id:
                return item
        return None

    def is_bookmarked(self, bookmark_id: str) -> bool:
        return self.get(bookmark_id) is not None

    # 로드 -----------------------------------------------------------------
    def load(self) -> int:
        """저장소에서 북마크를 읽어온다. 정리(drop)된 레코드 수를 반환한다.

        - 예전 목업 id, 필수 필드 누락, 알 수 없는 type 레코드는 버리고 즉시 다시 저장한다.
        - 저장 데이터가 손상되어 읽을 수 없으면 폐기하고 빈 목록으로 시작한다.
        """

        try:
            raw_records = self._repo.load()
        except PersistenceError as exc:
            logger.error("failed to load bookmarks, discarding stored data: %s", exc)
            try:
                self._repo.reset()
            except PersistenceError as reset_exc:
                logger.error("failed to reset bookmark store: %s", reset_exc)
            self._items = []
            self._notify_listeners()
            return 0

        items: list[Bookmark] = []
        seen: set[str] = set()
        for raw in raw_records:
            doc = BookmarkDocument.parse_raw_record(raw)
            if doc is None or not doc.is_well_formed() or doc.id in seen:
                continue
            seen.add(doc.id)
            items.append(doc.to_domain())

        self._items = items
        dropped = len(raw_records) - len(items)
        if dropped > 0:
            logger.info("cleaned up %d invalid bookmarks", dropped)
            self._persist()

        self._notify_listeners()
        return dropped

    # 변경 -----------------------------------------------------------------
    def add(self, draft: BookmarkDraft) -> Bookmark | None:
        bookmark = self.add_silent(draft)
        if bookmark is not None:
            self._notifier.info(
                "Saved to bookmarks! 📌", f"{bookmark.title} has been bookmarked"
            )
        return bookmark

    def add_silent(self, draft: BookmarkDraft) -> Bookmark | None:
        """같은 id 가 이미 있거나, 다시 로드할 때 정리 대상이 될 레코드면 None 을 반환한다."""

        if self.is_bookmarked(draft.id):
            return None

        bookmark = Bookmark(
            id=draft.id, type=draft.type, title=draft.title, saved_at=self._clock()
        )
        if not BookmarkDocument.from_domain(bookmark).is_well_formed():
            logger.warning(
                "rejecting malformed bookmark", extra={"bookmark_id": draft.id}
            )
            return None

        self._items.append(bookmark)
        self._commit()
        return bookmark

    def remove(self, bookmark_id: str) -> bool:
        bookmark = self.get(bookmark_id)
        removed = self.remove_silent(bookmark_id)
        if removed and bookmark is not None:
            self._notifier.info(
                "Removed from bookmarks", f"{bookmark.title} has been unbookmarked"
            )
        return removed

    def remove_silent(self, bookmark_id: str) -> bool:
        """자동 정리용 삭제. 없는 id 는 무시한다."""

        remaining = [b for b in self._items if b.id != bookmark_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        self._commit()
        return True

    def toggle(self, draft: BookmarkDraft) -> bool:
        """북마크되어 있으면 삭제, 아니면 추가한다. 토글 후 북마크 여부를 반환한다."""

        if self.is_bookmarked(draft.id):
            self.remove(draft.id)
            return False
        return self.add(draft) is not None

    def clear(self) -> int:
        count = len(self._items)
        if count == 0:
            return 0
        self._items = []
        self._commit()
        return count

    def apply_batch(
        self,
        remove_ids: Iterable[str],
        title_updates: Mapping[str, str] | None = None,
    ) -> tuple[int, int]:
        """여러 건의 삭제/제목 수정을 한 번에 적용하고 저장도 한 번만 한다.

        (삭제된 수, 제목이 바뀐 수) 를 반환한다.
        """

        to_remove = set(remove_ids)
        updates = dict(title_updates or {})

        removed = 0
        retitled = 0
        next_items: list[Bookmark] = []
        for item in self._items:
            if item.id in to_remove:
                removed += 1
                continue
            new_title = updates.get(item.id)
            if new_title and new_title != item.title:
                item = item.model_copy(update={"title": new_title})
                retitled += 1
            next_items.append(item)

        if removed or retitled:
            self._items = next_items
            self._commit()
        return removed, retitled

    # 리스너 ---------------------------------------------------------------
    def add_listener(self, listener: BookmarkListener) -> None:
        """목록이 바뀔 때마다 현재 개수로 호출될 콜백을 등록한다."""
        self._listeners.append(listener)

    # 내부 util -------------------------------------------------------------
    def _commit(self) -> None:
        self._persist()
        self._notify_listeners()

    def _persist(self) -> None:
        documents = [BookmarkDocument.from_domain(b) for b in self._items]
        try:
            self._repo.save(documents)
        except PersistenceError as exc:
            logger.error("failed to save bookmarks: %s", exc)

    def _notify_listeners(self) -> None:
        count = len(self._items)
        for listener in list(self._listeners):
            listener(count)
