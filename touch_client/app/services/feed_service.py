"""커뮤니티 피드 조회/정렬과 응답 순서 보정."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable

from common.models.post import Post
from common.types.datetime import utc_now

from ..models.feed import FeedPost, FeedQuery, FeedSort, FeedType
from ..models.interaction import LikeSnapshot
from ..repositories.interfaces import BackendRepositoryInterface
from .interactions_service import InFlightGuard
from .notifications import NotifierInterface


logger = logging.getLogger(__name__)


class EpochCounter:
    """피드 조회마다 증가하는 요청 번호. 가장 최근 번호의 응답만 반영한다."""

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def next(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, epoch: int) -> bool:
        return epoch == self._current


def arrange_feed(
    posts: Iterable[FeedPost],
    query: FeedQuery,
    *,
    now: datetime,
    top_window: timedelta,
    following_ids: Iterable[str] = (),
    viewer_id: str | None = None,
) -> list[FeedPost]:
    """필터와 정렬을 적용한다. 같은 순위끼리는 입력 순서를 유지한다(stable sort)."""

    items = [p for p in posts if p.matches_type(query.type)]

    if query.sort == FeedSort.FOLLOWING:
        authors = set(following_ids)
        if viewer_id:
            authors.add(viewer_id)
        items = [p for p in items if p.author_id in authors]

    if query.sort == FeedSort.TOP:
        since = now - top_window
        items = [p for p in items if p.created_at >= since]
        return sorted(items, key=lambda p: (p.engagement, p.created_at), reverse=True)

    return sorted(items, key=lambda p: p.created_at, reverse=True)


class FeedReconciler:
    """원격 조회, 로컬 작성 게시글, 낙관적 변경을 합쳐 화면에 보일 피드를 만든다.

    - load() 마다 새 epoch 를 받고, 응답이 왔을 때 epoch 가 최신이 아니면 버린다.
    - 아직 서버 확인 전인 로컬 게시글은 원격 결과 앞에 붙인 뒤 같은 정렬을 적용한다.
    - 좋아요 요청이 진행 중인 게시글은 새로 받아온 값 대신 현재 화면 값을 유지한다.
    """

    def __init__(
        self,
        backend: BackendRepositoryInterface,
        notifier: NotifierInterface,
        *,
        epochs: EpochCounter,
        like_guard: InFlightGuard,
        viewer_id: str | None,
        top_window_hours: int = 24,
        limit: int | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._epochs = epochs
        self._like_guard = like_guard
        self._viewer_id = viewer_id
        self._top_window = timedelta(hours=top_window_hours)
        self._limit = limit
        self._clock = clock

        self._query = FeedQuery()
        self._visible: list[FeedPost] = []
        self._pending: list[FeedPost] = []
        self._following: set[str] = set()

    # 조회 -----------------------------------------------------------------
    @property
    def query(self) -> FeedQuery:
        return self._query

    @property
    def visible(self) -> list[FeedPost]:
        return list(self._visible)

    @property
    def following_ids(self) -> frozenset[str]:
        return frozenset(self._following)

    def get_post(self, post_id: str) -> FeedPost | None:
        for post in self._visible:
            if post.id == post_id:
                return post
        return None

    # 설정 -----------------------------------------------------------------
    def set_query(
        self, sort: FeedSort | None = None, type: FeedType | None = None
    ) -> FeedQuery:
        self._query = FeedQuery(
            sort=sort or self._query.sort, type=type or self._query.type
        )
        return self._query

    def set_following(self, user_ids: Iterable[str]) -> None:
        self._following = set(user_ids)

    # 원격 조회 -------------------------------------------------------------
    async def load(self) -> bool:
        """피드를 다시 조회한다. 결과가 화면에 반영됐으면 True."""

        epoch = self._epochs.next()
        query = self._query

        if query.sort == FeedSort.FOLLOWING:
            await self._refresh_following()

        try:
            posts = await self._backend.fetch_posts(query.sort, query.type, self._limit)
        except Exception as exc:  # noqa: BLE001
            if not self._epochs.is_current(epoch):
                logger.info(
                    "stale feed request failed: %s", exc, extra={"epoch": epoch}
                )
                return False
            logger.error("error loading feed: %s", exc, extra={"epoch": epoch})
            self._notifier.error("Error loading feed", "Please try refreshing the page")
            return False

        if not self._epochs.is_current(epoch):
            logger.info(
                "discarding stale feed response (current=%d)",
                self._epochs.current,
                extra={"epoch": epoch},
            )
            return False

        self._visible = self.reconcile(posts, query)
        logger.debug(
            "feed applied. posts=%d", len(self._visible), extra={"epoch": epoch}
        )
        return True

    def reconcile(self, remote: list[Post], query: FeedQuery | None = None) -> list[FeedPost]:
        remote_posts = [FeedPost.from_post(p) for p in remote]
        remote_ids = {p.id for p in remote_posts}

        # 원격 결과에 나타난 로컬 게시글은 확인된 것으로 보고 버린다.
        self._pending = [p for p in self._pending if p.id not in remote_ids]

        combined = [self._keep_optimistic(p) for p in [*self._pending, *remote_posts]]
        return arrange_feed(
            combined,
            query or self._query,
            now=self._clock(),
            top_window=self._top_window,
            following_ids=self._following,
            viewer_id=self._viewer_id,
        )

    # 로컬 게시글 -----------------------------------------------------------
    def add_pending_post(self, post: FeedPost) -> None:
        pending = post.model_copy(update={"pending": True})
        self._pending = [p for p in self._pending if p.id != pending.id]
        self._pending.insert(0, pending)
        self._visible = self._rearrange([pending, *[p for p in self._visible if p.id != pending.id]])

    def confirm_pending(self, temp_id: str, post: Post) -> None:
        """로컬 게시글을 서버가 돌려준 게시글로 교체한다."""

        self._pending = [p for p in self._pending if p.id != temp_id]
        confirmed = FeedPost.from_post(post)
        rest = [p for p in self._visible if p.id not in (temp_id, confirmed.id)]
        self._visible = self._rearrange([confirmed, *rest])

    def discard_pending(self, temp_id: str) -> None:
        self._pending = [p for p in self._pending if p.id != temp_id]
        self._visible = [p for p in self._visible if p.id != temp_id]

    # 화면 스냅샷 갱신 ------------------------------------------------------
    def get_like_snapshot(self, entity_id: str) -> LikeSnapshot | None:
        post = self.get_post(entity_id)
        if post is None:
            return None
        return LikeSnapshot(viewer_has_liked=post.viewer_has_liked, likes=post.likes)

    def set_like_snapshot(self, entity_id: str, snapshot: LikeSnapshot) -> None:
        self._update_post(
            entity_id,
            {"viewer_has_liked": snapshot.viewer_has_liked, "likes": snapshot.likes},
        )

    def adjust_comment_count(self, post_id: str, delta: int) -> None:
        post = self.get_post(post_id)
        if post is None:
            return
        self._update_post(post_id, {"comments": max(0, post.comments + delta)})

    # 내부 util -------------------------------------------------------------
    async def _refresh_following(self) -> None:
        if not self._viewer_id:
            return
        try:
            ids = await self._backend.fetch_following_ids(self._viewer_id)
        except Exception as exc:  # noqa: BLE001
            # 마지막으로 알던 팔로잉 목록으로 계속 진행한다.
            logger.warning("failed to refresh following list: %s", exc)
            return
        self._following = set(ids)

    def _keep_optimistic(self, post: FeedPost) -> FeedPost:
        if post.id not in self._like_guard:
            return post
        current = self.get_post(post.id)
        if current is None:
            return post
        return post.model_copy(
            update={"viewer_has_liked": current.viewer_has_liked, "likes": current.likes}
        )

    def _rearrange(self, posts: list[FeedPost]) -> list[FeedPost]:
        return arrange_feed(
            posts,
            self._query,
            now=self._clock(),
            top_window=self._top_window,
            following_ids=self._following,
            viewer_id=self._viewer_id,
        )

    def _update_post(self, post_id: str, changes: dict) -> None:
        self._visible = [
            p.model_copy(update=changes) if p.id == post_id else p for p in self._visible
        ]
        self._pending = [
            p.model_copy(update=changes) if p.id == post_id else p for p in self._pending
        ]
