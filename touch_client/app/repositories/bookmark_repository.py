from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..exceptions import PersistenceError
from .documents.bookmark_document import BookmarkDocument
from .interfaces import BookmarkRepositoryInterface


logger = logging.getLogger(__name__)


class JsonFileBookmarkRepository(BookmarkRepositoryInterface):
    """북마크 목록을 JSON 파일 하나로 저장하는 로컬 키-값 저장소."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []

        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"failed to read {self._path}: {exc}") from exc

        if not text.strip():
            return []

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"corrupted bookmark store {self._path}: {exc}") from exc

        if not isinstance(data, list):
            raise PersistenceError(
                f"corrupted bookmark store {self._path}: expected a list, got {type(data).__name__}"
            )
        return data

    def save(self, documents: list[BookmarkDocument]) -> None:
        payload = json.dumps(
            [doc.to_record() for doc in documents], ensure_ascii=False, indent=2
        )
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            # 쓰기 도중 종료돼도 이전 파일이 남도록 교체 방식으로 저장한다.
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise PersistenceError(f"failed to write {self._path}: {exc}") from exc

    def reset(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"failed to remove {self._path}: {exc}") from exc
        logger.info("bookmark store reset (path=%s)", self._path)
