from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol


logger = logging.getLogger(__name__)


class NotificationVariant:
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True, slots=True)
class Notification:
    """화면 토스트 한 건에 해당하는 사용자 알림."""

    title: str
    description: str = ""
    variant: str = NotificationVariant.DEFAULT


class NotifierInterface(Protocol):
    def info(self, title: str, description: str = "") -> None:  # pragma: no cover - Protocol
        ...

    def error(self, title: str, description: str = "") -> None:  # pragma: no cover - Protocol
        ...


class NotificationCenter(NotifierInterface):
    """비차단(non-blocking) 사용자 알림을 기록한다.

    렌더링은 UI 쪽 몫이므로 여기서는 순서대로 쌓아 두고 로그만 남긴다.
    """

    def __init__(self) -> None:
        self._history: list[Notification] = []

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def info(self, title: str, description: str = "") -> None:
        self._push(Notification(title, description, NotificationVariant.DEFAULT))

    def error(self, title: str, description: str = "") -> None:
        self._push(Notification(title, description, NotificationVariant.DESTRUCTIVE))

    def drain(self) -> list[Notification]:
        """쌓인 알림을 반환하고 비운다."""
        items, self._history = self._history, []
        return items

    def _push(self, notification: Notification) -> None:
        self._history.append(notification)
        logger.info(
            "notification: %s %s", notification.title, notification.description
        )
