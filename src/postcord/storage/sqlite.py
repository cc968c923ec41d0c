from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from postcord.errors import PostNotFound
from postcord.storage.repositories import PostRepository, ProfileRepository, RegionRepository
from postcord.storage.types import MAX_HANDLE_LENGTH, Post, Profile, Region

logger = logging.getLogger(__name__)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS profiles (
    id                    TEXT PRIMARY KEY,
    guild_id              TEXT NOT NULL,
    user_id               TEXT NOT NULL,
    handle                TEXT NOT NULL COLLATE NOCASE,
    display_name          TEXT NOT NULL,
    profile_picture       TEXT,
    notifications_enabled INTEGER NOT NULL DEFAULT 1,
    bio                   TEXT,
    created_at            TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (guild_id, handle)
);

CREATE INDEX IF NOT EXISTS idx_profiles_owner
    ON profiles(guild_id, user_id);

CREATE TABLE IF NOT EXISTS posts (
    id          TEXT PRIMARY KEY,
    profile_id  TEXT NOT NULL REFERENCES profiles(id),
    content     TEXT NOT NULL,
    timestamp   TEXT NOT NULL,
    reply_to    TEXT REFERENCES posts(id),
    message_id  TEXT
);

CREATE INDEX IF NOT EXISTS idx_posts_reply_to
    ON posts(reply_to);

CREATE TABLE IF NOT EXISTS post_likes (
    post_id     TEXT NOT NULL REFERENCES posts(id),
    profile_id  TEXT NOT NULL REFERENCES profiles(id),
    created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (post_id, profile_id)
);

CREATE TABLE IF NOT EXISTS regions (
    guild_id        TEXT PRIMARY KEY,
    feed_channel_id TEXT
);
"""


class SQLiteFeedStore(ProfileRepository, PostRepository, RegionRepository):
    """SQLite-backed store for profiles, posts, likes and regions.

    Every write goes through ``_write_lock`` so read-modify-write commands
    such as :meth:`toggle_liker` are atomic with respect to each other.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(str(self._db_path))
            self._db.row_factory = aiosqlite.Row
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.execute("PRAGMA foreign_keys=ON")
        return self._db

    # -- lifecycle ---------------------------------------------------------

    async def init(self) -> None:
        db = await self._conn()
        await db.executescript(_SCHEMA)
        await db.commit()
        logger.info("Feed store initialised at %s", self._db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # -- profiles ----------------------------------------------------------

    async def get_profile(self, profile_id: str) -> Profile | None:
        db = await self._conn()
        cursor = await db.execute("SELECT * FROM profiles WHERE id=?", (profile_id,))
        row = await cursor.fetchone()
        return Profile.from_row(dict(row)) if row else None

    async def find_profile_by_handle(
        self,
        guild_id: str,
        handle: str,
        *,
        user_id: str | None = None,
    ) -> Profile | None:
        db = await self._conn()
        sql = "SELECT * FROM profiles WHERE guild_id=? AND handle=?"
        params: tuple = (guild_id, handle)
        if user_id is not None:
            sql += " AND user_id=?"
            params += (user_id,)
        cursor = await db.execute(sql, params)
        row = await cursor.fetchone()
        return Profile.from_row(dict(row)) if row else None

    async def list_profiles_for_user(self, guild_id: str, user_id: str) -> list[Profile]:
        db = await self._conn()
        cursor = await db.execute(
            "SELECT * FROM profiles WHERE guild_id=? AND user_id=? ORDER BY handle",
            (guild_id, user_id),
        )
        return [Profile.from_row(dict(r)) for r in await cursor.fetchall()]

    async def create_profile(
        self,
        *,
        guild_id: str,
        user_id: str,
        handle: str,
        display_name: str,
        profile_picture: str | None = None,
        notifications_enabled: bool = True,
        bio: str | None = None,
    ) -> Profile:
        if not handle or len(handle) > MAX_HANDLE_LENGTH:
            raise ValueError(f"handle must be 1..{MAX_HANDLE_LENGTH} characters: {handle!r}")
        profile_id = uuid.uuid4().hex
        async with self._write_lock:
            db = await self._conn()
            await db.execute(
                "INSERT INTO profiles (id, guild_id, user_id, handle, display_name, "
                "profile_picture, notifications_enabled, bio) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    profile_id,
                    guild_id,
                    user_id,
                    handle,
                    display_name,
                    profile_picture,
                    int(notifications_enabled),
                    bio,
                ),
            )
            await db.commit()
        return Profile(
            id=profile_id,
            handle=handle,
            guild_id=guild_id,
            user_id=user_id,
            display_name=display_name,
            profile_picture=profile_picture,
            notifications_enabled=notifications_enabled,
            bio=bio,
        )

    async def count_posts(self, profile_id: str) -> int:
        db = await self._conn()
        cursor = await db.execute("SELECT COUNT(*) FROM posts WHERE profile_id=?", (profile_id,))
        row = await cursor.fetchone()
        return row[0]  # type: ignore[index]

    # -- posts -------------------------------------------------------------

    async def _likes(self, db: aiosqlite.Connection, post_id: str) -> frozenset[str]:
        cursor = await db.execute(
            "SELECT profile_id FROM post_likes WHERE post_id=?",
            (post_id,),
        )
        return frozenset(r["profile_id"] for r in await cursor.fetchall())

    async def get_post(self, post_id: str) -> Post | None:
        db = await self._conn()
        cursor = await db.execute("SELECT * FROM posts WHERE id=?", (post_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return Post.from_row(dict(row), likes=await self._likes(db, post_id))

    async def create_post(
        self,
        *,
        profile_id: str,
        content: str,
        reply_to: str | None = None,
    ) -> Post:
        post = Post(
            id=uuid.uuid4().hex,
            profile_id=profile_id,
            content=content,
            timestamp=datetime.now(timezone.utc),
            reply_to=reply_to,
        )
        async with self._write_lock:
            db = await self._conn()
            await db.execute(
                "INSERT INTO posts (id, profile_id, content, timestamp, reply_to) "
                "VALUES (?, ?, ?, ?, ?)",
                (post.id, profile_id, content, post.timestamp.isoformat(), reply_to),
            )
            await db.commit()
        logger.info(
            "Created post %s by profile %s%s",
            post.id,
            profile_id,
            f" replying to {reply_to}" if reply_to else "",
        )
        return post

    async def attach_message_id(self, post_id: str, message_id: str) -> Post:
        async with self._write_lock:
            db = await self._conn()
            cursor = await db.execute(
                "UPDATE posts SET message_id=? WHERE id=?",
                (message_id, post_id),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise PostNotFound(post_id)
        post = await self.get_post(post_id)
        if post is None:
            raise PostNotFound(post_id)
        return post

    async def toggle_liker(self, post_id: str, profile_id: str) -> Post:
        async with self._write_lock:
            db = await self._conn()
            cursor = await db.execute("SELECT * FROM posts WHERE id=?", (post_id,))
            row = await cursor.fetchone()
            if row is None:
                raise PostNotFound(post_id)

            cursor = await db.execute(
                "DELETE FROM post_likes WHERE post_id=? AND profile_id=?",
                (post_id, profile_id),
            )
            if cursor.rowcount == 0:
                await db.execute(
                    "INSERT INTO post_likes (post_id, profile_id) VALUES (?, ?)",
                    (post_id, profile_id),
                )
            await db.commit()
            likes = await self._likes(db, post_id)
        logger.debug("Post %s now has %d like(s)", post_id, len(likes))
        return Post.from_row(dict(row), likes=likes)

    async def list_replies(self, post_id: str) -> list[Post]:
        db = await self._conn()
        cursor = await db.execute(
            "SELECT * FROM posts WHERE reply_to=? ORDER BY timestamp ASC",
            (post_id,),
        )
        rows = await cursor.fetchall()
        return [Post.from_row(dict(r), likes=await self._likes(db, r["id"])) for r in rows]

    # -- regions -----------------------------------------------------------

    async def get_region(self, guild_id: str) -> Region | None:
        db = await self._conn()
        cursor = await db.execute("SELECT * FROM regions WHERE guild_id=?", (guild_id,))
        row = await cursor.fetchone()
        return Region.from_row(dict(row)) if row else None

    async def set_feed_channel(self, guild_id: str, channel_id: str | None) -> Region:
        async with self._write_lock:
            db = await self._conn()
            await db.execute(
                "INSERT INTO regions (guild_id, feed_channel_id) VALUES (?, ?) "
                "ON CONFLICT(guild_id) DO UPDATE SET feed_channel_id=excluded.feed_channel_id",
                (guild_id, channel_id),
            )
            await db.commit()
        return Region(guild_id=guild_id, feed_channel_id=channel_id)
