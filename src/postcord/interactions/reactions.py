from __future__ import annotations

import logging

from postcord.interactions.actions import LikeProfilePicked
from postcord.interactions.context import FeedContext
from postcord.interactions.feed import require_owned_profile, require_owned_profiles, require_post
from postcord.interactions.mirror import MessageMirror
from postcord.interactions.render import build_profile_picker
from postcord.storage.types import Post

logger = logging.getLogger(__name__)


class ReactionToggler:
    """Like button -> profile picker -> toggle membership in the like set."""

    def __init__(self, ctx: FeedContext, mirror: MessageMirror) -> None:
        self._ctx = ctx
        self._mirror = mirror

    async def start(self, interaction, post_id: str) -> None:
        post = await require_post(self._ctx, post_id)
        profiles = await require_owned_profiles(self._ctx, interaction)
        await interaction.response.send_message(
            "Pick a profile to like this post with.",
            view=build_profile_picker(post.id, profiles, for_like=True),
            ephemeral=True,
        )

    async def pick(self, interaction, action: LikeProfilePicked, handle: str) -> Post:
        profile = await require_owned_profile(self._ctx, interaction, handle)
        post = await self._ctx.posts.toggle_liker(action.post_id, profile.id)
        liked = profile.id in post.likes
        logger.info(
            "Profile %s %s post %s (%d like(s))",
            profile.handle,
            "liked" if liked else "unliked",
            post.id,
            post.like_count,
        )
        await interaction.response.defer()
        return await self._mirror.refresh(post.id, interaction.channel_id)
