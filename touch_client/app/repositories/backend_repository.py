from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from common.models.challenge import Challenge
from common.models.comment import Comment
from common.models.content import ContentItem
from common.models.post import MediaType, Post

from ..exceptions import RemoteCallError
from ..models.feed import FeedSort, FeedType
from .interfaces import BackendRepositoryInterface


logger = logging.getLogger(__name__)


REST_PREFIX = "/rest/v1"


class RestBackendRepository(BackendRepositoryInterface):
    """호스팅 백엔드의 REST(PostgREST 스타일) 테이블 API 접근 레이어.

    - 필터는 `컬럼=eq.값` 형태의 쿼리 파라미터로 전달한다.
    - 조회 결과가 비어 있으면 None 을 반환하고, 그 외 실패는 RemoteCallError 로 올린다.
    """

    def __init__(self, client: httpx.AsyncClient, user_id: str | None) -> None:
        self._client = client
        self._user_id = user_id

    # 단건 조회 -------------------------------------------------------------
    async def fetch_challenge(self, challenge_id: str) -> Challenge | None:
        row = await self._select_one("challenges", {"id": f"eq.{challenge_id}"})
        return Challenge.model_validate(row) if row is not None else None

    async def fetch_post(self, post_id: str) -> Post | None:
        row = await self._select_one("posts", {"id": f"eq.{post_id}"})
        if row is None:
            return None
        return self._to_post(row)

    async def fetch_content(self, content_id: str) -> ContentItem | None:
        row = await self._select_one("content", {"id": f"eq.{content_id}"})
        return ContentItem.model_validate(row) if row is not None else None

    # 좋아요 ---------------------------------------------------------------
    async def toggle_like(self, post_id: str) -> bool:
        user_id = self._require_user()
        filters = {"post_id": f"eq.{post_id}", "user_id": f"eq.{user_id}"}

        existing = await self._select_one("post_likes", filters, columns="post_id")
        if existing is not None:
            await self._request("DELETE", "post_likes", params=filters)
            return False

        await self._request(
            "POST",
            "post_likes",
            json={"post_id": post_id, "user_id": user_id},
        )
        return True

    # 피드 -----------------------------------------------------------------
    async def fetch_posts(
        self, sort: FeedSort, type: FeedType, limit: int | None = None
    ) -> list[Post]:
        params: dict[str, str] = {"select": "*,post_likes(user_id)"}

        if type == FeedType.TEXT:
            params["media_type"] = "is.null"
        elif type == FeedType.IMAGES:
            params["media_type"] = f"eq.{MediaType.IMAGE}"
        elif type == FeedType.VIDEOS:
            params["media_type"] = f"eq.{MediaType.VIDEO}"

        if sort == FeedSort.TOP:
            params["order"] = "likes_count.desc,created_at.desc"
        else:
            params["order"] = "created_at.desc"

        if limit:
            params["limit"] = str(limit)

        rows = await self._request("GET", "posts", params=params)
        return [self._to_post(row) for row in rows or []]

    async def fetch_following_ids(self, user_id: str) -> list[str]:
        rows = await self._request(
            "GET",
            "user_followers",
            params={"select": "following_id", "follower_id": f"eq.{user_id}"},
        )
        ids: list[str] = []
        for row in rows or []:
            value = row.get("following_id")
            if value is not None:
                ids.append(str(value))
        return ids

    # 댓글 -----------------------------------------------------------------
    async def fetch_comments(self, post_id: str) -> list[Comment]:
        rows = await self._request(
            "GET",
            "comments",
            params={
                "select": "*",
                "post_id": f"eq.{post_id}",
                "order": "created_at.asc",
            },
        )
        return [Comment.model_validate(row) for row in rows or []]

    async def create_comment(
        self, post_id: str, content: str, parent_comment_id: str | None = None
    ) -> Comment:
        user_id = self._require_user()
        rows = await self._request(
            "POST",
            "comments",
            json={
                "post_id": post_id,
                "user_id": user_id,
                "content": content,
                "parent_comment_id": parent_comment_id,
            },
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RemoteCallError("comment insert returned no row")
        return Comment.model_validate(rows[0])

    async def delete_comment(self, comment_id: str) -> None:
        await self._request("DELETE", "comments", params={"id": f"eq.{comment_id}"})

    async def like_comment(self, comment_id: str) -> None:
        user_id = self._require_user()
        await self._request(
            "POST",
            "comment_likes",
            json={"comment_id": comment_id, "user_id": user_id},
        )

    async def unlike_comment(self, comment_id: str) -> None:
        user_id = self._require_user()
        await self._request(
            "DELETE",
            "comment_likes",
            params={"comment_id": f"eq.{comment_id}", "user_id": f"eq.{user_id}"},
        )

    # 내부 util -------------------------------------------------------------
    def _require_user(self) -> str:
        if not self._user_id:
            raise RemoteCallError("user not authenticated", status_code=401)
        return self._user_id

    def _to_post(self, row: dict[str, Any]) -> Post:
        data = dict(row)
        likes = data.pop("post_likes", None)
        if isinstance(likes, list) and self._user_id:
            data["viewer_has_liked"] = any(
                str(like.get("user_id")) == self._user_id
                for like in likes
                if isinstance(like, dict)
            )

        # 익명 게시글은 본인 글이 아니면 작성자를 숨긴다.
        if data.get("is_anonymous") and data.get("user_id") != self._user_id:
            data["user_id"] = None
        return Post.model_validate(data)

    async def _select_one(
        self, table: str, filters: dict[str, str], *, columns: str = "*"
    ) -> dict[str, Any] | None:
        params = {"select": columns, **filters, "limit": "1"}
        rows = await self._request("GET", table, params=params)
        if not rows:
            return None
        return rows[0]

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> list[dict[str, Any]] | None:
        url = f"{REST_PREFIX}/{table}"
        started = time.perf_counter()
        try:
            resp = await self._client.request(
                method, url, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"{method} {url} failed: {exc}") from exc

        logger.debug(
            "%s %s",
            method,
            url,
            extra={
                "table": table,
                "status": resp.status_code,
                "duration": round(time.perf_counter() - started, 4),
            },
        )

        if resp.status_code >= 400:
            body_sample = resp.text[:500]
            raise RemoteCallError(
                f"{method} {url} failed: status code {resp.status_code}, body: {body_sample}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return None

        try:
            data = resp.json()
        except ValueError as exc:
            raise RemoteCallError(f"{method} {url} returned invalid JSON") from exc

        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            raise RemoteCallError(f"{method} {url} returned unexpected payload")
        return data
