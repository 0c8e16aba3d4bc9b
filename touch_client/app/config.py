from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError


DEFAULT_CONFIG_FILE_NAME = "config.yaml"
TOUCH_CLIENT_CONFIG_ENV = "TOUCH_CLIENT_CONFIG"


@dataclass(slots=True)
class StorageConfig:
    bookmarks_path: Path = Path(".touch-grass/bookmarks.json")


@dataclass(slots=True)
class FeedConfig:
    top_window_hours: int = 24
    comment_refetch_delay_seconds: float = 0.5
    limit: int | None = None


@dataclass(slots=True)
class ValidatorConfig:
    max_concurrency: int = 8


@dataclass(slots=True)
class BookmarksConfig:
    title_max_length: int = 50


@dataclass(slots=True)
class AppConfig:
    """touch-client 전체 설정 루트.

    - 백엔드 접속 정보는 환경 변수(common.backend.config)에서 읽고,
      여기에는 로컬 저장소 경로와 피드/검증 동작 관련 값만 둔다.
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)
    bookmarks: BookmarksConfig = field(default_factory=BookmarksConfig)


def _find_config_path() -> Path | None:
    """설정 파일 경로를 찾는다.

    TOUCH_CLIENT_CONFIG 가 지정되어 있으면 그 경로를 그대로 사용하고(없으면 에러),
    아니면 현재 작업 디렉토리 기준으로 상위로 올라가며 config.yaml 을 찾는다.
    찾지 못하면 None 을 반환하고 기본값을 사용한다.
    """

    explicit = os.getenv(TOUCH_CLIENT_CONFIG_ENV, "").strip()
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise ConfigError(f"{TOUCH_CLIENT_CONFIG_ENV} points to a missing file: {path}")
        return path

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"config section {name!r} must be a mapping")
    return value


def _positive_int(raw: Any, key: str, *, allow_none: bool = False) -> int | None:
    if raw is None and allow_none:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise ConfigError(f"invalid {key}: {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got: {raw!r}")
    return value


def _non_negative_float(raw: Any, key: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise ConfigError(f"invalid {key}: {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got: {raw!r}")
    return value


def parse_config(data: dict[str, Any]) -> AppConfig:
    """YAML 에서 읽은 dict 를 AppConfig 로 변환한다. 누락된 키는 기본값을 사용한다."""

    defaults = AppConfig()

    storage = _section(data, "storage")
    bookmarks_path = storage.get("bookmarks_path")
    storage_config = StorageConfig(
        bookmarks_path=(
            Path(str(bookmarks_path)).expanduser()
            if bookmarks_path
            else defaults.storage.bookmarks_path
        )
    )

    feed = _section(data, "feed")
    feed_config = FeedConfig(
        top_window_hours=_positive_int(
            feed.get("top_window_hours", defaults.feed.top_window_hours),
            "feed.top_window_hours",
        ),
        comment_refetch_delay_seconds=_non_negative_float(
            feed.get(
                "comment_refetch_delay_seconds",
                defaults.feed.comment_refetch_delay_seconds,
            ),
            "feed.comment_refetch_delay_seconds",
        ),
        limit=_positive_int(feed.get("limit"), "feed.limit", allow_none=True),
    )

    validator = _section(data, "validator")
    validator_config = ValidatorConfig(
        max_concurrency=_positive_int(
            validator.get("max_concurrency", defaults.validator.max_concurrency),
            "validator.max_concurrency",
        ),
    )

    bookmarks = _section(data, "bookmarks")
    bookmarks_config = BookmarksConfig(
        title_max_length=_positive_int(
            bookmarks.get("title_max_length", defaults.bookmarks.title_max_length),
            "bookmarks.title_max_length",
        ),
    )

    return AppConfig(
        storage=storage_config,
        feed=feed_config,
        validator=validator_config,
        bookmarks=bookmarks_config,
    )


def load_config() -> AppConfig:
    """touch-client 설정을 로드하여 AppConfig 로 반환한다."""

    path = _find_config_path()
    if path is None:
        return AppConfig()

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to read {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return parse_config(data)
