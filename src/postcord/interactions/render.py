from __future__ import annotations

from collections.abc import Sequence

import discord

from postcord.interactions.actions import (
    ComposeSubmit,
    LikePressed,
    LikeProfilePicked,
    ReplyPressed,
    ReplyProfilePicked,
    ReplySubmit,
    ViewProfilePressed,
)
from postcord.storage.types import Post, Profile

POST_CONTENT_FIELD = "tweetContent"
REPLY_CONTENT_FIELD = "replyContent"
LIKE_EMOJI = "❤️"
MAX_SELECT_OPTIONS = 25
MODAL_TITLE_MAX = 45


def _author(embed: discord.Embed, profile: Profile) -> discord.Embed:
    return embed.set_author(name=f"@{profile.handle}", icon_url=profile.profile_picture or None)


def build_post_embed(profile: Profile, post: Post) -> discord.Embed:
    embed = discord.Embed(
        description=post.content,
        timestamp=post.timestamp,
        colour=discord.Colour.blue(),
    )
    return _author(embed, profile)


def build_reply_embed(
    profile: Profile,
    post: Post,
    *,
    parent_handle: str,
    parent_url: str,
) -> discord.Embed:
    embed = discord.Embed(
        description=f"**[Replying to @{parent_handle}]({parent_url})**\n{post.content}",
        timestamp=post.timestamp,
        colour=discord.Colour.blue(),
    )
    return _author(embed, profile)


def _detached(view: discord.ui.View) -> discord.ui.View:
    # Components are routed through on_interaction. A finished view is still
    # serialized on send/edit but never kept in the client's view store.
    view.stop()
    return view


def build_control_row(post: Post, author_handle: str) -> discord.ui.View:
    """Like / Reply / View Profile buttons for a rendered post.

    The like label is always the current size of the post's like set.
    """
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(
            label=str(post.like_count),
            emoji=LIKE_EMOJI,
            style=discord.ButtonStyle.primary,
            custom_id=LikePressed(post.id).to_token(),
        )
    )
    view.add_item(
        discord.ui.Button(
            label="Reply",
            style=discord.ButtonStyle.primary,
            custom_id=ReplyPressed(post.id).to_token(),
        )
    )
    view.add_item(
        discord.ui.Button(
            label="View Profile",
            style=discord.ButtonStyle.secondary,
            custom_id=ViewProfilePressed(post.id, author_handle).to_token(),
        )
    )
    return _detached(view)


def profile_option_label(profile: Profile) -> str:
    return f"@{profile.handle} ({profile.display_name})"[:100]


def build_profile_picker(
    post_id: str,
    profiles: Sequence[Profile],
    *,
    for_like: bool = False,
) -> discord.ui.View:
    if for_like:
        custom_id = LikeProfilePicked(post_id).to_token()
        placeholder = "Select a profile to Like with"
    else:
        custom_id = ReplyProfilePicked(post_id).to_token()
        placeholder = "Select a profile"

    select = discord.ui.Select(
        custom_id=custom_id,
        placeholder=placeholder,
        options=[
            discord.SelectOption(label=profile_option_label(p), value=p.handle)
            for p in profiles[:MAX_SELECT_OPTIONS]
        ],
    )
    view = discord.ui.View(timeout=None)
    view.add_item(select)
    return _detached(view)


def _content_modal(custom_id: str, title: str, field_id: str, max_length: int) -> discord.ui.Modal:
    modal = discord.ui.Modal(title=title[:MODAL_TITLE_MAX], custom_id=custom_id)
    modal.add_item(
        discord.ui.TextInput(
            label="What's on your mind?",
            custom_id=field_id,
            style=discord.TextStyle.paragraph,
            min_length=1,
            max_length=max_length,
            required=True,
        )
    )
    return modal


def build_post_modal(handle: str, *, max_length: int) -> discord.ui.Modal:
    return _content_modal(
        ComposeSubmit(handle).to_token(),
        "Create Post",
        POST_CONTENT_FIELD,
        max_length,
    )


def build_reply_modal(handle: str, post_id: str, parent_handle: str, *, max_length: int) -> discord.ui.Modal:
    return _content_modal(
        ReplySubmit(handle, post_id).to_token(),
        f"Reply to @{parent_handle}'s post",
        REPLY_CONTENT_FIELD,
        max_length,
    )


def build_profile_embed(profile: Profile, post_count: int) -> discord.Embed:
    embed = discord.Embed(
        title=profile.display_name,
        description=profile.bio or None,
        colour=discord.Colour.blue(),
    )
    _author(embed, profile)
    if profile.profile_picture:
        embed.set_thumbnail(url=profile.profile_picture)
    embed.add_field(name="Posts", value=str(post_count))
    return embed
