from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Iterable

from .core import ChangeEvent, ChangeTable, UnknownTableError

logger = logging.getLogger(__name__)


ChangeHandler = Callable[[ChangeEvent], Awaitable[Any]]


class RealtimeChannel:
    """테이블 단위로 변경 이벤트를 구독/해제할 수 있는 인프로세스 채널.

    실제 전송(웹소켓 등)은 이 채널 바깥에서 처리하고, 수신한 payload 를 dispatch() 로 넘긴다.
    핸들러 하나가 실패해도 같은 이벤트를 구독한 다른 핸들러는 계속 실행된다.
    """

    def __init__(self, name: str, tables: Iterable[ChangeTable]) -> None:
        self.name = name
        self._tables: dict[str, ChangeTable] = {t.name: t for t in tables}
        self._handlers: dict[str, list[ChangeHandler]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    # 구독 -----------------------------------------------------------------
    def subscribe(
        self, table: ChangeTable, handler: ChangeHandler
    ) -> Callable[[], None]:
        """핸들러를 등록하고, 등록 해제 함수를 반환한다."""

        if table.name not in self._tables:
            raise UnknownTableError(table.name)
        if self._closed:
            raise RuntimeError(f"realtime channel {self.name} is closed")

        handlers = self._handlers.setdefault(table.name, [])
        handlers.append(handler)
        logger.info(
            "realtime handler subscribed. channel=%s table=%s", self.name, table.name
        )

        def _unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def close(self) -> None:
        self._handlers.clear()
        self._closed = True
        logger.info("realtime channel %s closed", self.name)

    # 전달 -----------------------------------------------------------------
    async def dispatch(self, raw: dict[str, Any]) -> int:
        """수신한 변경 payload 를 디코딩해 구독 핸들러에 전달한다.

        처리한 핸들러 수를 반환한다. 디코딩할 수 없는 payload 는 로그만 남기고 버린다.
        """

        if self._closed:
            return 0

        try:
            event = ChangeEvent.from_dict(raw, tables=self._tables)
        except UnknownTableError as exc:
            logger.debug("ignoring change for unregistered table %s", exc)
            return 0
        except (KeyError, ValueError) as exc:
            logger.error("invalid change payload on channel %s: %s", self.name, exc)
            return 0

        handled = 0
        for handler in list(self._handlers.get(event.table.name, [])):
            try:
                await handler(event)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "realtime handler failed: %s",
                    exc,
                    extra={
                        "table": event.table.name,
                        "operation": event.operation,
                        "entity_id": event.entity_id,
                    },
                )
                continue
            handled += 1
        return handled
