from __future__ import annotations

import logging

from postcord.errors import SessionExpired
from postcord.interactions.actions import ReplyProfilePicked, ReplySubmit
from postcord.interactions.context import FeedContext
from postcord.interactions.feed import (
    fetch_post_message,
    guild_of,
    require_author,
    require_owned_profile,
    require_owned_profiles,
    require_post,
    require_usable_handle,
    resolve_feed_channel,
    user_of,
    validate_content,
)
from postcord.interactions.render import (
    build_control_row,
    build_profile_picker,
    build_reply_embed,
    build_reply_modal,
)
from postcord.interactions.sessions import STEP_REPLY
from postcord.storage.types import Post

logger = logging.getLogger(__name__)


class ThreadReplier:
    """Reply button -> profile picker -> form -> reply post in the thread.

    The new message is sent as a structural reply to the parent's message,
    and the parent's owner is notified in the background afterwards.
    """

    def __init__(self, ctx: FeedContext) -> None:
        self._ctx = ctx

    async def start(self, interaction, post_id: str) -> None:
        post = await require_post(self._ctx, post_id)
        profiles = await require_owned_profiles(self._ctx, interaction)
        await interaction.response.send_message(
            "Pick a profile",
            view=build_profile_picker(post.id, profiles),
            ephemeral=True,
        )

    async def pick(self, interaction, action: ReplyProfilePicked, handle: str) -> None:
        ctx = self._ctx
        post = await require_post(ctx, action.post_id)
        parent_author = await require_author(ctx, post)
        profile = await require_owned_profile(ctx, interaction, handle)
        require_usable_handle(profile)
        parent_message = await fetch_post_message(ctx, post, interaction.channel_id)

        submit = ReplySubmit(profile.handle, post.id)
        ctx.sessions.open(
            STEP_REPLY,
            submit.to_token(),
            user_of(interaction),
            parent_message=parent_message,
        )
        await interaction.response.send_modal(
            build_reply_modal(
                profile.handle,
                post.id,
                parent_author.handle,
                max_length=ctx.max_post_length,
            )
        )

    async def submit(self, interaction, action: ReplySubmit, content: str | None) -> Post:
        ctx = self._ctx
        session = ctx.sessions.claim(STEP_REPLY, action.to_token(), user_of(interaction))
        if session is None:
            raise SessionExpired(action.to_token())
        text = validate_content(content, ctx.max_post_length)

        parent = await require_post(ctx, action.post_id)
        parent_author = await require_author(ctx, parent)
        profile = await require_owned_profile(ctx, interaction, action.handle)
        require_usable_handle(profile)
        parent_message = session.data["parent_message"]

        await resolve_feed_channel(ctx, guild_of(interaction))

        reply = await ctx.posts.create_post(
            profile_id=profile.id,
            content=text,
            reply_to=parent.id,
        )
        embed = build_reply_embed(
            profile,
            reply,
            parent_handle=parent_author.handle,
            parent_url=parent_message.jump_url,
        )
        reply_message = await parent_message.reply(
            embed=embed,
            view=build_control_row(reply, profile.handle),
        )
        reply = await ctx.posts.attach_message_id(reply.id, str(reply_message.id))
        await interaction.response.defer()

        embeds = [*parent_message.embeds[:1], embed]
        ctx.notifier.schedule(parent=parent, replier=profile, embeds=embeds)
        return reply
