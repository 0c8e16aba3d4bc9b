from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from common.types.datetime import ensure_utc_datetime, serialize_datetime_to_utc_iso8601
from ...models.bookmark import Bookmark, BookmarkType


# 초기 목업 데이터에서 쓰던 r1, p2 같은 id 는 실제 엔티티를 가리키지 않는다.
_LEGACY_MOCK_ID = re.compile(r"^[rp]\d+$")
_MIN_ID_LENGTH = 6


class BookmarkDocument(BaseModel):
    """로컬 저장 파일의 북마크 레코드 모델.

    - 디스크 포맷은 id, type, title, savedAt 키를 가진 JSON 객체다.
    - 읽을 때는 느슨하게 받아들이고, is_well_formed() 로 걸러낸다.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    type: str = ""
    title: str = ""
    saved_at: str = Field(default="", alias="savedAt")

    @classmethod
    def parse_raw_record(cls, raw: Any) -> "BookmarkDocument | None":
        if not isinstance(raw, dict):
            return None
        try:
            return cls.model_validate(raw)
        except ValidationError:
            return None

    @classmethod
    def from_domain(cls, bookmark: Bookmark) -> "BookmarkDocument":
        return cls(
            id=bookmark.id,
            type=bookmark.type.value,
            title=bookmark.title,
            saved_at=serialize_datetime_to_utc_iso8601(bookmark.saved_at),
        )

    def is_well_formed(self) -> bool:
        if not self.id or _LEGACY_MOCK_ID.match(self.id) or len(self.id) < _MIN_ID_LENGTH:
            return False
        if not self.title or not self.saved_at:
            return False
        if self.type not in {t.value for t in BookmarkType}:
            return False
        return self._parse_saved_at() is not None

    def to_domain(self) -> Bookmark:
        saved_at = self._parse_saved_at()
        if saved_at is None:
            raise ValueError(f"invalid savedAt for bookmark {self.id}: {self.saved_at!r}")
        return Bookmark(
            id=self.id,
            type=BookmarkType(self.type),
            title=self.title,
            saved_at=saved_at,
        )

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def _parse_saved_at(self) -> datetime | None:
        # JS 의 toISOString() 결과("...Z")도 받아들인다.
        value = self.saved_at.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            return ensure_utc_datetime(datetime.fromisoformat(value))
        except ValueError:
            return None
