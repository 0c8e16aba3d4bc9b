from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from common.backend.client import close_client
from common.logger import setup_logger

from .config import AppConfig, load_config
from .exceptions import TouchClientError
from .models.feed import FeedSort, FeedType
from .repositories.bookmark_repository import JsonFileBookmarkRepository
from .services.bookmark_view import BookmarkFilter, visible_bookmarks
from .services.bookmarks_service import BookmarkStore
from .services.notifications import NotificationCenter
from .state import create_app_state


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="touch-client", description="Touch Grass client core"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    bookmarks = sub.add_parser("bookmarks", help="list saved bookmarks")
    bookmarks.add_argument(
        "--type",
        choices=[f.value for f in BookmarkFilter],
        default=BookmarkFilter.ALL.value,
    )
    bookmarks.add_argument("--query", default="")

    sub.add_parser("validate", help="check bookmarks against the backend")

    feed = sub.add_parser("feed", help="load the community feed")
    feed.add_argument(
        "--sort", choices=[s.value for s in FeedSort], default=FeedSort.NEWEST.value
    )
    feed.add_argument(
        "--type", choices=[t.value for t in FeedType], default=FeedType.ALL.value
    )
    return parser


def _print_notifications(notifications: NotificationCenter) -> None:
    for item in notifications.drain():
        line = f"[{item.variant}] {item.title}"
        if item.description:
            line += f": {item.description}"
        print(line)


def _cmd_bookmarks(config: AppConfig, args: argparse.Namespace) -> int:
    # 목록 조회는 백엔드 접속 정보 없이도 동작해야 하므로 스토어만 만든다.
    notifications = NotificationCenter()
    store = BookmarkStore(
        JsonFileBookmarkRepository(config.storage.bookmarks_path), notifications
    )
    store.load()

    for bookmark in visible_bookmarks(
        store.list(), BookmarkFilter(args.type), args.query
    ):
        print(f"{bookmark.saved_at.isoformat()}  {bookmark.type:<9}  {bookmark.id}  {bookmark.title}")
    return 0


async def _cmd_validate(config: AppConfig) -> int:
    state = create_app_state(config)
    try:
        report = await state.validator.validate()
    finally:
        await close_client()

    print(
        f"checked={report.checked} removed={report.removed_count} "
        f"retitled={len(report.title_updates)}"
    )
    _print_notifications(state.notifications)
    return 0


async def _cmd_feed(config: AppConfig, args: argparse.Namespace) -> int:
    state = create_app_state(config)
    state.feed.set_query(FeedSort(args.sort), FeedType(args.type))
    try:
        loaded = await state.feed.load()
    finally:
        await close_client()

    for post in state.feed.visible:
        author = post.author_id or "anonymous"
        print(
            f"{post.created_at.isoformat()}  {post.id}  {author}  "
            f"likes={post.likes} comments={post.comments}  {post.body[:60]}"
        )
    _print_notifications(state.notifications)
    return 0 if loaded else 1


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger()

    try:
        config = load_config()
        if args.command == "bookmarks":
            return _cmd_bookmarks(config, args)
        if args.command == "validate":
            return asyncio.run(_cmd_validate(config))
        return asyncio.run(_cmd_feed(config, args))
    except (TouchClientError, RuntimeError) as exc:
        logger.error("touch-client failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
