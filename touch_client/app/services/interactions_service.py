"""좋아요 낙관적 업데이트.

엔티티 id 별 상태 머신: IDLE -> PENDING -> IDLE(커밋 또는 롤백).
PENDING 인 id 에 대한 새 트리거는 무시하고, 가드는 항상 finally 에서 해제한다.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Protocol

from ..models.interaction import InteractionOutcome, InteractionState, LikeSnapshot
from ..repositories.interfaces import BackendRepositoryInterface
from .notifications import NotifierInterface


logger = logging.getLogger(__name__)


class InFlightGuard:
    """원격 변경이 진행 중인 엔티티 id 집합.

    이벤트 루프 하나에서만 쓰이므로, 첫 await 이전에 try_acquire() 로 점유하면 충분하다.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._ids: set[str] = set()

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def state(self, entity_id: str) -> InteractionState:
        return InteractionState.PENDING if entity_id in self._ids else InteractionState.IDLE

    def try_acquire(self, entity_id: str) -> bool:
        if entity_id in self._ids:
            return False
        self._ids.add(entity_id)
        return True

    def release(self, entity_id: str) -> None:
        self._ids.discard(entity_id)

    def snapshot(self) -> frozenset[str]:
        return frozenset(self._ids)


class LikeTargetInterface(Protocol):
    """좋아요 상태를 보여주는 화면 스냅샷(피드, 댓글 목록 등)."""

    def get_like_snapshot(
        self, entity_id: str
    ) -> LikeSnapshot | None:  # pragma: no cover - Protocol
        ...

    def set_like_snapshot(
        self, entity_id: str, snapshot: LikeSnapshot
    ) -> None:  # pragma: no cover - Protocol
        ...


# 낙관적 상태를 받아 원격 변경을 수행하고, 서버가 알려준 최종 좋아요 여부(모르면 None)를 돌려준다.
RemoteLikeCall = Callable[[LikeSnapshot], Awaitable[bool | None]]


class OptimisticToggle:
    """가드 집합 하나를 공유하는 낙관적 토글 실행기."""

    def __init__(
        self,
        guard: InFlightGuard,
        notifier: NotifierInterface,
        *,
        error_title: str,
        error_description: str,
    ) -> None:
        self._guard = guard
        self._notifier = notifier
        self._error_title = error_title
        self._error_description = error_description

    @property
    def guard(self) -> InFlightGuard:
        return self._guard

    async def run(
        self, target: LikeTargetInterface, entity_id: str, remote: RemoteLikeCall
    ) -> InteractionOutcome:
        if not self._guard.try_acquire(entity_id):
            logger.debug(
                "ignoring duplicate like trigger", extra={"entity_id": entity_id}
            )
            return InteractionOutcome.IGNORED

        try:
            previous = target.get_like_snapshot(entity_id)
            if previous is None:
                return InteractionOutcome.MISSING

            optimistic = previous.toggled()
            target.set_like_snapshot(entity_id, optimistic)

            try:
                confirmed = await remote(optimistic)
            except Exception as exc:  # noqa: BLE001
                target.set_like_snapshot(entity_id, previous)
                logger.warning(
                    "like toggle failed, rolled back: %s",
                    exc,
                    extra={"entity_id": entity_id},
                )
                self._notifier.error(self._error_title, self._error_description)
                return InteractionOutcome.ROLLED_BACK

            if confirmed is not None and confirmed != optimistic.viewer_has_liked:
                # 서버 토글 결과가 예상과 다르면 서버 상태를 따른다.
                logger.info(
                    "remote like state differs from optimistic state",
                    extra={"entity_id": entity_id},
                )
                target.set_like_snapshot(entity_id, previous)
            return InteractionOutcome.COMMITTED
        finally:
            self._guard.release(entity_id)


class LikeService:
    """게시글/댓글 좋아요 토글."""

    def __init__(
        self,
        backend: BackendRepositoryInterface,
        notifier: NotifierInterface,
        *,
        post_guard: InFlightGuard,
        comment_guard: InFlightGuard,
    ) -> None:
        self._backend = backend
        self._posts = OptimisticToggle(
            post_guard,
            notifier,
            error_title="Error updating like",
            error_description="Please try again",
        )
        self._comments = OptimisticToggle(
            comment_guard,
            notifier,
            error_title="Error",
            error_description="Could not update like",
        )

    async def toggle_post_like(
        self, feed: LikeTargetInterface, post_id: str
    ) -> InteractionOutcome:
        async def _remote(_: LikeSnapshot) -> bool:
            return await self._backend.toggle_like(post_id)

        return await self._posts.run(feed, post_id, _remote)

    async def toggle_comment_like(
        self, thread: LikeTargetInterface, comment_id: str
    ) -> InteractionOutcome:
        async def _remote(optimistic: LikeSnapshot) -> None:
            if optimistic.viewer_has_liked:
                await self._backend.like_comment(comment_id)
            else:
                await self._backend.unlike_comment(comment_id)

        return await self._comments.run(thread, comment_id, _remote)
