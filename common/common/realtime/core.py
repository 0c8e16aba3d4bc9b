from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Self


class ChangeOperation:
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    ALL = (INSERT, UPDATE, DELETE)


class UnknownTableError(Exception):
    """등록되지 않은 테이블의 변경 이벤트를 디코딩하려는 경우 사용되는 예외."""


@dataclass(frozen=True, slots=True)
class ChangeTable:
    """실시간 변경 피드를 구독할 수 있는 테이블.

    entity_key 는 변경 레코드에서 "어떤 엔티티에 대한 변경인지"를 가리키는 컬럼이다.
    posts 는 자기 자신의 id, post_likes/comments 는 부모 post_id 를 가리킨다.
    """

    name: str
    entity_key: str = "id"

    def entity_id_of(self, record: Mapping[str, Any] | None) -> str | None:
        if not record:
            return None
        value = record.get(self.entity_key)
        if value is None or value == "":
            return None
        return str(value)


@dataclass(slots=True)
class ChangeEvent:
    """백엔드 실시간 채널이 전달하는 행(row) 변경 이벤트."""

    table: ChangeTable
    operation: str
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)

    @property
    def entity_id(self) -> str | None:
        # DELETE 는 new 가 비어 있으므로 old 로 폴백한다.
        return self.table.entity_id_of(self.new) or self.table.entity_id_of(self.old)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, tables: Mapping[str, ChangeTable]
    ) -> Self:
        table_name = str(data["table"])
        table = tables.get(table_name)
        if table is None:
            raise UnknownTableError(table_name)

        operation = str(data.get("eventType") or data.get("type") or "").upper()
        if operation not in ChangeOperation.ALL:
            raise ValueError(f"unknown change operation: {operation!r}")

        return cls(
            table=table,
            operation=operation,
            new=dict(data.get("new") or {}),
            old=dict(data.get("old") or {}),
        )
