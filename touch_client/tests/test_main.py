from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from touch_client.app.config import AppConfig, StorageConfig
from touch_client.app.main import build_parser, run
from touch_client.app.state import create_app_state


class NullBackend:
    def __init__(self) -> None:
        self.fetch_posts_calls = 0

    async def fetch_challenge(self, challenge_id: str) -> None:
        return None

    async def fetch_posts(self, sort, type, limit=None) -> list:
        self.fetch_posts_calls += 1
        return []


def _write_store(path: Path) -> None:
    path.write_text(
        json.dumps(
            [
                {"id": "post-abc123", "type": "post", "title": "Sunny walk", "savedAt": "2024-05-01T09:00:00Z"},
                {"id": "challenge-1", "type": "challenge", "title": "Walk Outside", "savedAt": "2024-05-02T09:00:00Z"},
                {"id": "r1", "type": "post", "title": "mock", "savedAt": "2024-05-02T09:00:00Z"},
            ]
        ),
        encoding="utf-8",
    )


def test_parser_rejects_unknown_sort() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["feed", "--sort", "random"])


def test_bookmarks_command_lists_filtered_bookmarks(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    store_path = tmp_path / "bookmarks.json"
    _write_store(store_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"storage:\n  bookmarks_path: {store_path}\n", encoding="utf-8")
    monkeypatch.setenv("TOUCH_CLIENT_CONFIG", str(config_path))

    code = run(["bookmarks", "--type", "challenges"])

    out = capsys.readouterr().out
    assert code == 0
    assert "challenge-1" in out
    assert "post-abc123" not in out


def test_create_app_state_loads_store_and_arms_validation(tmp_path: Path) -> None:
    store_path = tmp_path / "bookmarks.json"
    _write_store(store_path)
    config = AppConfig(storage=StorageConfig(bookmarks_path=store_path))

    state = create_app_state(config, backend=NullBackend(), viewer_id="viewer-1")

    assert [b.id for b in state.bookmarks.list()] == ["post-abc123", "challenge-1"]
    assert state.validation_trigger.pending is True
    assert state.realtime.name == "posts-changes"
    # 목업 id 정리 결과가 바로 저장된다.
    assert [r["id"] for r in json.loads(store_path.read_text(encoding="utf-8"))] == [
        "post-abc123",
        "challenge-1",
    ]


def test_realtime_change_triggers_feed_refetch(tmp_path: Path) -> None:
    backend = NullBackend()
    config = AppConfig(storage=StorageConfig(bookmarks_path=tmp_path / "bookmarks.json"))
    state = create_app_state(config, backend=backend, viewer_id="viewer-1")

    handled = asyncio.run(
        state.realtime.dispatch(
            {"table": "posts", "eventType": "INSERT", "new": {"id": "post-123456"}}
        )
    )

    assert handled == 1
    assert backend.fetch_posts_calls == 1

    state.detach_realtime()
    asyncio.run(
        state.realtime.dispatch(
            {"table": "posts", "eventType": "UPDATE", "new": {"id": "post-123456"}}
        )
    )
    assert backend.fetch_posts_calls == 1


def test_comment_refetch_delay_comes_from_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    delays: list[float] = []

    async def _fake_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", _fake_sleep)
    backend = NullBackend()
    config = AppConfig(storage=StorageConfig(bookmarks_path=tmp_path / "bookmarks.json"))
    config.feed.comment_refetch_delay_seconds = 1.25
    state = create_app_state(config, backend=backend, viewer_id="viewer-1")

    asyncio.run(
        state.realtime.dispatch(
            {"table": "comments", "eventType": "INSERT", "new": {"post_id": "post-123456"}}
        )
    )

    assert delays == [1.25]
    assert backend.fetch_posts_calls == 1
