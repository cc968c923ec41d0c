from __future__ import annotations

import asyncio
import logging

import discord

from postcord.errors import NotificationDeliveryFailure
from postcord.gateway.base import ChatClient
from postcord.storage.repositories import ProfileRepository
from postcord.storage.types import Post, Profile

logger = logging.getLogger(__name__)


class ReplyNotifier:
    """Fire-and-forget DMs telling a post's owner about a new reply.

    Deliveries run as background tasks after the reply flow has finished,
    so their latency and failures never reach the replier.
    """

    def __init__(self, client: ChatClient, profiles: ProfileRepository) -> None:
        self._client = client
        self._profiles = profiles
        self._tasks: set[asyncio.Task] = set()
        self.delivered = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        *,
        parent: Post,
        replier: Profile,
        embeds: list[discord.Embed],
    ) -> asyncio.Task:
        task = asyncio.create_task(
            self._run(parent, replier, embeds),
            name=f"reply-notify:{parent.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every queued notification to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, parent: Post, replier: Profile, embeds: list[discord.Embed]) -> None:
        try:
            sent = await self._deliver(parent, replier, embeds)
        except asyncio.CancelledError:
            raise
        except NotificationDeliveryFailure as exc:
            self.failed += 1
            logger.warning("Reply notification for post %s not delivered: %s", parent.id, exc.detail)
        except Exception:
            self.failed += 1
            logger.exception("Reply notification for post %s crashed", parent.id)
        else:
            if sent:
                self.delivered += 1

    async def _deliver(self, parent: Post, replier: Profile, embeds: list[discord.Embed]) -> bool:
        # Re-read: the owner may have changed their preference since the reply began.
        owner = await self._profiles.get_profile(parent.profile_id)
        if owner is None or not owner.notifications_enabled:
            return False

        try:
            uid = int(owner.user_id)
            user = self._client.get_user(uid)
            if user is None:
                user = await self._client.fetch_user(uid)
            await user.send(
                content=f"@{replier.handle} ({replier.display_name}) replied to your post",
                embeds=embeds,
            )
        except (discord.HTTPException, ValueError) as exc:
            raise NotificationDeliveryFailure(
                f"DM to user {owner.user_id} failed: {exc}"
            ) from exc
        logger.info("Notified user %s of reply to post %s", owner.user_id, parent.id)
        return True
