from __future__ import annotations

from .core import ChangeTable


TABLE_POSTS = ChangeTable("posts", entity_key="id")
TABLE_POST_LIKES = ChangeTable("post_likes", entity_key="post_id")
TABLE_COMMENTS = ChangeTable("comments", entity_key="post_id")

ALL_TABLES: list[ChangeTable] = [
    TABLE_POSTS,
    TABLE_POST_LIKES,
    TABLE_COMMENTS,
]
