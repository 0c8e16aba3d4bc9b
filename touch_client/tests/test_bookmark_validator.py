from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from common.models.challenge import Challenge
from common.models.content import ContentItem
from common.models.post import Post
from touch_client.app.exceptions import RemoteCallError
from touch_client.app.models.bookmark import BookmarkDraft, BookmarkType
from touch_client.app.repositories.documents.bookmark_document import BookmarkDocument
from touch_client.app.services.bookmark_validator import (
    BookmarkValidator,
    CheckOutcome,
    ValidationTrigger,
    removal_message,
)
from touch_client.app.services.bookmarks_service import BookmarkStore
from touch_client.app.services.notifications import NotificationCenter, NotificationVariant


CREATED_AT = datetime(2024, 5, 1, tzinfo=timezone.utc)


class FakeBookmarkRepository:
    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []
        self.save_calls = 0

    def load(self) -> list[dict[str, Any]]:
        return list(self.records)

    def save(self, documents: list[BookmarkDocument]) -> None:
        self.save_calls += 1
        self.records = [doc.to_record() for doc in documents]

    def reset(self) -> None:
        self.records = []


class FakeBackendRepository:
    """검증 패스가 사용하는 단건 조회만 구현한 가짜 백엔드."""

    def __init__(self) -> None:
        self.challenges: dict[str, Challenge] = {}
        self.posts: dict[str, Post] = {}
        self.contents: dict[str, ContentItem] = {}
        self.failing_ids: set[str] = set()
        self.lookups: list[str] = []

    async def fetch_challenge(self, challenge_id: str) -> Challenge | None:
        return self._lookup(self.challenges, challenge_id)

    async def fetch_post(self, post_id: str) -> Post | None:
        return self._lookup(self.posts, post_id)

    async def fetch_content(self, content_id: str) -> ContentItem | None:
        return self._lookup(self.contents, content_id)

    def _lookup(self, table: dict[str, Any], entity_id: str) -> Any:
        self.lookups.append(entity_id)
        if entity_id in self.failing_ids:
            raise RemoteCallError("connection reset")
        return table.get(entity_id)


@dataclass
class ValidatorFixture:
    validator: BookmarkValidator
    store: BookmarkStore
    repo: FakeBookmarkRepository
    backend: FakeBackendRepository
    notifications: NotificationCenter


def _build_fixture() -> ValidatorFixture:
    repo = FakeBookmarkRepository()
    notifications = NotificationCenter()
    store = BookmarkStore(repo, notifications)
    backend = FakeBackendRepository()
    validator = BookmarkValidator(store, backend, notifications, max_concurrency=2)
    return ValidatorFixture(
        validator=validator,
        store=store,
        repo=repo,
        backend=backend,
        notifications=notifications,
    )


def _seed(fixture: ValidatorFixture, *drafts: BookmarkDraft) -> None:
    for draft in drafts:
        fixture.store.add_silent(draft)
    fixture.repo.save_calls = 0


def test_deleted_challenge_is_removed_with_single_notification() -> None:
    fixture = _build_fixture()
    _seed(
        fixture,
        BookmarkDraft(id="c1-challenge", type=BookmarkType.CHALLENGE, title="Walk Outside"),
    )

    report = asyncio.run(fixture.validator.validate())

    assert report.removed_ids == ["c1-challenge"]
    assert fixture.store.list() == []
    assert fixture.repo.save_calls == 1
    assert len(fixture.notifications.history) == 1
    notification = fixture.notifications.history[0]
    assert notification.title == "Bookmarks cleaned up"
    assert notification.description == "Removed 1 corrupted or deleted item"


def test_overlapping_validations_notify_only_once() -> None:
    fixture = _build_fixture()
    _seed(
        fixture,
        BookmarkDraft(id="c1-challenge", type=BookmarkType.CHALLENGE, title="Walk Outside"),
    )

    async def _run_both():
        return await asyncio.gather(
            fixture.validator.validate(), fixture.validator.validate()
        )

    first, second = asyncio.run(_run_both())

    # 두 패스 모두 같은 스냅샷을 보고 삭제 대상을 잡는다.
    assert first.removed_ids == ["c1-challenge"]
    assert second.removed_ids == ["c1-challenge"]
    assert fixture.store.list() == []
    assert fixture.repo.save_calls == 1
    assert [n.description for n in fixture.notifications.history] == [
        "Removed 1 corrupted or deleted item"
    ]


def test_failed_lookups_are_removed_in_a_single_batch() -> None:
    fixture = _build_fixture()
    _seed(
        fixture,
        BookmarkDraft(id="challenge-ok", type=BookmarkType.CHALLENGE, title="Stretch"),
        BookmarkDraft(id="post-broken", type=BookmarkType.POST, title="Hike"),
        BookmarkDraft(id="content-gone", type=BookmarkType.ARTICLE, title="Trees"),
        BookmarkDraft(id="content-video", type=BookmarkType.VIDEO, title="Rain"),
    )
    fixture.backend.challenges["challenge-ok"] = Challenge(id="challenge-ok", title="Stretch")
    fixture.backend.contents["content-video"] = ContentItem(
        id="content-video", title="Rain", content_type="video"
    )
    fixture.backend.failing_ids.add("post-broken")

    counts: list[int] = []
    fixture.store.add_listener(counts.append)

    report = asyncio.run(fixture.validator.validate())

    assert sorted(report.removed_ids) == ["content-gone", "post-broken"]
    assert [b.id for b in fixture.store.list()] == ["challenge-ok", "content-video"]
    # 중간 상태(하나만 삭제된 목록)가 관찰되지 않는다.
    assert counts == [2]
    assert fixture.repo.save_calls == 1
    assert fixture.notifications.history[0].description == removal_message(2)
    assert removal_message(2) == "Removed 2 corrupted or deleted items"


def test_degraded_post_title_is_repaired_from_body() -> None:
    fixture = _build_fixture()
    _seed(fixture, BookmarkDraft(id="post-abc123", type=BookmarkType.POST, title="…"))
    fixture.backend.posts["post-abc123"] = Post(
        id="post-abc123", content="Great walk today!", created_at=CREATED_AT
    )

    report = asyncio.run(fixture.validator.validate())

    assert report.removed_ids == []
    assert report.title_updates == {"post-abc123": "Great walk today!"}
    assert fixture.store.get("post-abc123").title == "Great walk today!"
    assert fixture.repo.save_calls == 1
    # 삭제가 없으면 알림도 없다.
    assert fixture.notifications.history == []


def test_healthy_title_is_not_overwritten() -> None:
    fixture = _build_fixture()
    _seed(fixture, BookmarkDraft(id="post-abc123", type=BookmarkType.POST, title="My favourite"))
    fixture.backend.posts["post-abc123"] = Post(
        id="post-abc123", content="Something else entirely", created_at=CREATED_AT
    )

    check = asyncio.run(fixture.validator.check(fixture.store.get("post-abc123")))

    assert check.outcome == CheckOutcome.VALID
    assert fixture.repo.save_calls == 0


def test_empty_post_is_treated_as_deleted() -> None:
    fixture = _build_fixture()
    _seed(fixture, BookmarkDraft(id="post-empty1", type=BookmarkType.POST, title="Empty"))
    fixture.backend.posts["post-empty1"] = Post(
        id="post-empty1", content="   ", created_at=CREATED_AT
    )

    check = asyncio.run(fixture.validator.check(fixture.store.get("post-empty1")))

    assert check.outcome == CheckOutcome.REMOVE


def test_validate_on_empty_store_does_nothing() -> None:
    fixture = _build_fixture()

    report = asyncio.run(fixture.validator.validate())

    assert report.checked == 0
    assert fixture.backend.lookups == []
    assert fixture.repo.save_calls == 0


def test_trigger_runs_once_per_empty_to_non_empty_transition() -> None:
    fixture = _build_fixture()
    trigger = ValidationTrigger(fixture.validator, fixture.store)
    fixture.backend.challenges["challenge-1"] = Challenge(id="challenge-1", title="Walk")
    fixture.backend.challenges["challenge-2"] = Challenge(id="challenge-2", title="Run")

    assert trigger.pending is False
    assert asyncio.run(trigger.maybe_validate()) is None

    fixture.store.add_silent(BookmarkDraft(id="challenge-1", type=BookmarkType.CHALLENGE, title="Walk"))
    fixture.store.add_silent(BookmarkDraft(id="challenge-2", type=BookmarkType.CHALLENGE, title="Run"))
    assert trigger.pending is True

    report = asyncio.run(trigger.maybe_validate())
    assert report is not None and report.checked == 2
    assert asyncio.run(trigger.maybe_validate()) is None

    fixture.store.clear()
    fixture.store.add_silent(BookmarkDraft(id="challenge-1", type=BookmarkType.CHALLENGE, title="Walk"))
    assert trigger.pending is True


def test_trigger_sees_store_loaded_before_it_was_created() -> None:
    fixture = _build_fixture()
    fixture.store.add_silent(BookmarkDraft(id="challenge-1", type=BookmarkType.CHALLENGE, title="Walk"))

    trigger = ValidationTrigger(fixture.validator, fixture.store)

    assert trigger.pending is True


def test_open_bookmark_routes_by_type() -> None:
    fixture = _build_fixture()
    _seed(
        fixture,
        BookmarkDraft(id="challenge-1", type=BookmarkType.CHALLENGE, title="Walk"),
        BookmarkDraft(id="post-abc123", type=BookmarkType.POST, title="Hike"),
        BookmarkDraft(id="content-77", type=BookmarkType.ARTICLE, title="Trees"),
    )
    fixture.backend.posts["post-abc123"] = Post(id="post-abc123", content="Hike", created_at=CREATED_AT)
    fixture.backend.contents["content-77"] = ContentItem(id="content-77", title="Trees")

    assert asyncio.run(fixture.validator.open_bookmark("challenge-1")) == "/challenge/challenge-1"
    assert (
        asyncio.run(fixture.validator.open_bookmark("post-abc123"))
        == "/community?highlightPost=post-abc123"
    )
    assert (
        asyncio.run(fixture.validator.open_bookmark("content-77"))
        == "/library?highlightResource=content-77"
    )
    # 챌린지는 원격 확인 없이 바로 이동한다.
    assert "challenge-1" not in fixture.backend.lookups


def test_open_bookmark_removes_missing_target_silently() -> None:
    fixture = _build_fixture()
    _seed(fixture, BookmarkDraft(id="post-gone12", type=BookmarkType.POST, title="Hike"))

    route = asyncio.run(fixture.validator.open_bookmark("post-gone12"))

    assert route is None
    assert not fixture.store.is_bookmarked("post-gone12")
    assert len(fixture.notifications.history) == 1
    notification = fixture.notifications.history[0]
    assert notification.title == "Bookmark no longer available"
    assert notification.variant == NotificationVariant.DESTRUCTIVE


def test_open_bookmark_removes_on_lookup_failure() -> None:
    fixture = _build_fixture()
    _seed(fixture, BookmarkDraft(id="content-77", type=BookmarkType.VIDEO, title="Rain"))
    fixture.backend.failing_ids.add("content-77")

    assert asyncio.run(fixture.validator.open_bookmark("content-77")) is None
    assert fixture.store.list() == []
