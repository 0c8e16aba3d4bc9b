"""실시간 변경 이벤트 -> 피드 재조회 매핑.

posts / post_likes / comments 테이블의 변경은 모두 재조회 트리거로 취급한다.
단, 좋아요 요청이 진행 중인 게시글에 대한 이벤트는 방금 보낸 변경의 서버 에코일 수 있으므로
재조회하지 않는다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Container

from common.realtime.channel import RealtimeChannel
from common.realtime.core import ChangeEvent
from common.realtime.tables import ALL_TABLES, TABLE_COMMENTS

from ..services.feed_service import FeedReconciler


logger = logging.getLogger(__name__)


def should_trigger_refetch(event: ChangeEvent, in_flight: Container[str]) -> bool:
    """(table, operation, entity_id) 와 진행 중인 가드 집합만으로 재조회 여부를 정한다."""

    entity_id = event.entity_id
    if entity_id is None:
        return True
    return entity_id not in in_flight


class FeedRealtimeHandler:
    def __init__(
        self,
        feed: FeedReconciler,
        in_flight: Container[str],
        *,
        comment_refetch_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._feed = feed
        self._in_flight = in_flight
        self._comment_refetch_delay = comment_refetch_delay
        self._sleep = sleep or asyncio.sleep

    async def handle(self, event: ChangeEvent) -> bool:
        """재조회를 수행했으면 True, 억제했으면 False."""

        extra = {
            "table": event.table.name,
            "operation": event.operation,
            "entity_id": event.entity_id,
        }
        if not should_trigger_refetch(event, self._in_flight):
            logger.debug("suppressing refetch for in-flight entity", extra=extra)
            return False

        logger.debug("change detected, refetching feed", extra=extra)
        if event.table == TABLE_COMMENTS and self._comment_refetch_delay > 0:
            # 댓글 수 집계가 반영될 시간을 잠깐 준다.
            await self._sleep(self._comment_refetch_delay)

        await self._feed.load()
        return True

    def attach(self, channel: RealtimeChannel) -> Callable[[], None]:
        """채널의 모든 피드 관련 테이블을 구독하고, 전체 구독 해제 함수를 반환한다."""

        unsubscribers = [channel.subscribe(table, self.handle) for table in ALL_TABLES]

        def _detach() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return _detach


def run_feed_realtime(
    channel: RealtimeChannel,
    feed: FeedReconciler,
    in_flight: Container[str],
    *,
    comment_refetch_delay: float = 0.5,
) -> Callable[[], None]:
    """피드 화면용 실시간 구독을 시작한다. 반환된 함수로 구독을 해제한다."""

    handler = FeedRealtimeHandler(
        feed, in_flight, comment_refetch_delay=comment_refetch_delay
    )
    logger.info("feed realtime subscription started. channel=%s", channel.name)
    return handler.attach(channel)
