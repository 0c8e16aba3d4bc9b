"""프로세스 전역 상태 객체를 한 곳에서 만든다.

북마크 스토어, 가드 집합, epoch 카운터는 앱 시작 시 한 번 생성되어 프로세스 수명 동안 유지된다.
모듈 전역으로 두지 않고 AppState 로 묶어 각 서비스에 명시적으로 넘긴다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from common.backend.client import get_client
from common.backend.config import get_user_id
from common.realtime.channel import RealtimeChannel
from common.realtime.tables import ALL_TABLES

from .config import AppConfig
from .event_handlers import run_feed_realtime
from .repositories.backend_repository import RestBackendRepository
from .repositories.bookmark_repository import JsonFileBookmarkRepository
from .repositories.interfaces import BackendRepositoryInterface, BookmarkRepositoryInterface
from .services.bookmark_validator import BookmarkValidator, ValidationTrigger
from .services.bookmarks_service import BookmarkStore
from .services.comments_service import CommentsService
from .services.feed_service import EpochCounter, FeedReconciler
from .services.interactions_service import InFlightGuard, LikeService
from .services.notifications import NotificationCenter


@dataclass(slots=True)
class AppState:
    config: AppConfig
    viewer_id: str | None
    notifications: NotificationCenter
    backend: BackendRepositoryInterface
    bookmarks: BookmarkStore
    validator: BookmarkValidator
    validation_trigger: ValidationTrigger
    post_like_guard: InFlightGuard
    comment_like_guard: InFlightGuard
    comment_submit_guard: InFlightGuard
    epochs: EpochCounter
    feed: FeedReconciler
    likes: LikeService
    comments: CommentsService
    realtime: RealtimeChannel
    detach_realtime: Callable[[], None]


def create_app_state(
    config: AppConfig,
    *,
    backend: BackendRepositoryInterface | None = None,
    bookmark_repo: BookmarkRepositoryInterface | None = None,
    viewer_id: str | None = None,
) -> AppState:
    """AppState 팩토리.

    backend / bookmark_repo 를 넘기지 않으면 환경 변수 기반 REST 백엔드와 JSON 파일 저장소를 사용한다.
    """

    if viewer_id is None:
        viewer_id = get_user_id()
    if backend is None:
        backend = RestBackendRepository(get_client(), viewer_id)
    if bookmark_repo is None:
        bookmark_repo = JsonFileBookmarkRepository(config.storage.bookmarks_path)

    notifications = NotificationCenter()

    bookmarks = BookmarkStore(bookmark_repo, notifications)
    validator = BookmarkValidator(
        bookmarks,
        backend,
        notifications,
        max_concurrency=config.validator.max_concurrency,
        title_max_length=config.bookmarks.title_max_length,
    )
    validation_trigger = ValidationTrigger(validator, bookmarks)
    bookmarks.load()

    post_like_guard = InFlightGuard("post-likes")
    comment_like_guard = InFlightGuard("comment-likes")
    comment_submit_guard = InFlightGuard("comment-submit")
    epochs = EpochCounter()

    feed = FeedReconciler(
        backend,
        notifications,
        epochs=epochs,
        like_guard=post_like_guard,
        viewer_id=viewer_id,
        top_window_hours=config.feed.top_window_hours,
        limit=config.feed.limit,
    )
    likes = LikeService(
        backend,
        notifications,
        post_guard=post_like_guard,
        comment_guard=comment_like_guard,
    )
    comments = CommentsService(
        backend,
        notifications,
        submit_guard=comment_submit_guard,
        viewer_id=viewer_id,
    )

    realtime = RealtimeChannel("posts-changes", ALL_TABLES)
    detach_realtime = run_feed_realtime(
        realtime,
        feed,
        post_like_guard,
        comment_refetch_delay=config.feed.comment_refetch_delay_seconds,
    )

    return AppState(
        config=config,
        viewer_id=viewer_id,
        notifications=notifications,
        backend=backend,
        bookmarks=bookmarks,
        validator=validator,
        validation_trigger=validation_trigger,
        post_like_guard=post_like_guard,
        comment_like_guard=comment_like_guard,
        comment_submit_guard=comment_submit_guard,
        epochs=epochs,
        feed=feed,
        likes=likes,
        comments=comments,
        realtime=realtime,
        detach_realtime=detach_realtime,
    )
