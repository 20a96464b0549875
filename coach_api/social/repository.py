"""
Social feed persistence helpers (`posts`, `curtidas`, `comentarios`).
"""

from __future__ import annotations

from coach_api.core.store import Row, Store, StoreError, StoreErrorKind, desc, select_one, select_optional

POSTS = "posts"
LIKES = "curtidas"
COMMENTS = "comentarios"

PREVIEW_SIZE = 3


async def create_post(store: Store, row: Row) -> Row | None:
    rows = await store.insert(POSTS, row)
    return rows[0] if rows else None


async def page_of_posts(store: Store, *, limit: int, offset: int) -> list[Row]:
    return await store.select(POSTS, order=[desc("criado_em")], limit=limit, offset=offset)


async def _count_optional(store: Store, table: str, post_id: int) -> int:
    try:
        return await store.count(table, filters={"post_id": post_id})
    except StoreError as exc:
        if exc.kind is not StoreErrorKind.TABLE_NOT_FOUND:
            raise
        return 0


async def like_count(store: Store, post_id: int) -> int:
    return await _count_optional(store, LIKES, post_id)


async def comment_count(store: Store, post_id: int) -> int:
    return await _count_optional(store, COMMENTS, post_id)


async def latest_comments(store: Store, post_id: int, *, limit: int = PREVIEW_SIZE) -> list[Row]:
    return await select_optional(
        store,
        COMMENTS,
        filters={"post_id": post_id},
        order=[desc("criado_em")],
        limit=limit,
    )


async def get_like(store: Store, post_id: int, usuario_email: str) -> Row | None:
    return await select_one(store, LIKES, filters={"post_id": post_id, "usuario_email": usuario_email})


async def add_like(store: Store, row: Row) -> list[Row]:
    return await store.insert(LIKES, row)


async def remove_like(store: Store, post_id: int, usuario_email: str) -> list[Row]:
    return await store.delete(LIKES, filters={"post_id": post_id, "usuario_email": usuario_email})


async def add_comment(store: Store, row: Row) -> Row | None:
    rows = await store.insert(COMMENTS, row)
    return rows[0] if rows else None
