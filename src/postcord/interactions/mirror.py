from __future__ import annotations

import asyncio
import logging
import weakref

from postcord.interactions.context import FeedContext
from postcord.interactions.feed import fetch_post_message, require_author, require_post
from postcord.interactions.render import build_control_row
from postcord.storage.types import Post

logger = logging.getLogger(__name__)


class MessageMirror:
    """Re-derive a post's control row from the store and edit its message.

    Passes for the same post run one at a time and each re-reads the post,
    so the last edit always reflects the latest like set.
    """

    def __init__(self, ctx: FeedContext) -> None:
        self._ctx = ctx
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, post_id: str) -> asyncio.Lock:
        lock = self._locks.get(post_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[post_id] = lock
        return lock

    async def refresh(self, post_id: str, channel_id: str | int) -> Post:
        async with self._lock_for(post_id):
            post = await require_post(self._ctx, post_id)
            author = await require_author(self._ctx, post)
            message = await fetch_post_message(self._ctx, post, channel_id)
            await message.edit(view=build_control_row(post, author.handle))
        logger.debug("Mirrored post %s: %d like(s)", post.id, post.like_count)
        return post
