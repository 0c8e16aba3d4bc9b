from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from common.types.datetime import UtcDateTime


class BookmarkType(StrEnum):
    CHALLENGE = "challenge"
    POST = "post"
    ARTICLE = "article"
    VIDEO = "video"


class Bookmark(BaseModel):
    """유저가 로컬에 저장한 북마크(원격 엔티티에 대한 가벼운 참조) 도메인 모델.

    title 은 원본 엔티티 표시 이름의 캐시라 원본과 어긋날 수 있다.
    saved_at 은 생성 시 한 번 정해지고 이후 바뀌지 않는다.
    """

    id: str
    type: BookmarkType
    title: str
    saved_at: UtcDateTime


class BookmarkDraft(BaseModel):
    """북마크 추가 요청. saved_at 은 스토어가 추가 시점에 채운다."""

    id: str
    type: BookmarkType
    title: str
