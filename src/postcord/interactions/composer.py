from __future__ import annotations

import logging

import discord

from postcord.errors import OwnedProfileNotFound, PostcordError, ProfileNotFound, SessionExpired
from postcord.interactions.actions import ComposeSubmit
from postcord.interactions.context import FeedContext
from postcord.interactions.feed import (
    guild_of,
    require_usable_handle,
    resolve_feed_channel,
    user_of,
    validate_content,
)
from postcord.interactions.render import build_control_row, build_post_modal, build_post_embed
from postcord.interactions.sessions import STEP_COMPOSE
from postcord.storage.types import Post

logger = logging.getLogger(__name__)


class PostComposer:
    """``/post`` -> form -> persisted root post -> rendered feed message."""

    def __init__(self, ctx: FeedContext) -> None:
        self._ctx = ctx

    async def start(self, interaction, handle: str) -> None:
        profile = await self._ctx.profiles.find_profile_by_handle(
            guild_of(interaction),
            handle,
            user_id=user_of(interaction),
        )
        if profile is None:
            raise OwnedProfileNotFound(handle)
        require_usable_handle(profile)

        token = ComposeSubmit(profile.handle).to_token()
        self._ctx.sessions.open(STEP_COMPOSE, token, user_of(interaction))
        await interaction.response.send_modal(
            build_post_modal(profile.handle, max_length=self._ctx.max_post_length)
        )

    async def submit(self, interaction, action: ComposeSubmit, content: str | None) -> Post:
        ctx = self._ctx
        if ctx.sessions.claim(STEP_COMPOSE, action.to_token(), user_of(interaction)) is None:
            raise SessionExpired(action.handle)
        text = validate_content(content, ctx.max_post_length)

        guild_id = guild_of(interaction)
        profile = await ctx.profiles.find_profile_by_handle(
            guild_id, action.handle, user_id=user_of(interaction)
        )
        if profile is None:
            raise ProfileNotFound(action.handle)
        require_usable_handle(profile)

        post = await ctx.posts.create_post(profile_id=profile.id, content=text)

        try:
            channel = await resolve_feed_channel(ctx, guild_id)
            message = await channel.send(
                embed=build_post_embed(profile, post),
                view=build_control_row(post, profile.handle),
            )
        except (PostcordError, discord.HTTPException) as exc:
            # The post row stays behind without a message.
            logger.warning(
                "Post %s created but not rendered in guild %s: %s",
                post.id,
                guild_id,
                getattr(exc, "detail", None) or exc,
            )
            raise

        post = await ctx.posts.attach_message_id(post.id, str(message.id))

        await interaction.response.send_message(
            f"Posted! Find it here {message.jump_url}",
            ephemeral=True,
        )
        return post
