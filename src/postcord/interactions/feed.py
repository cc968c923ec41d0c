"""Lookups shared by every flow: guild scope, feed channel, live messages."""

from __future__ import annotations

import logging
from typing import Any

import discord

from postcord.errors import (
    ChannelNotFound,
    FeedChannelNotConfigured,
    InvalidChannelType,
    InvalidContent,
    MessageNotFound,
    NoOwnedProfiles,
    PostNotFound,
    ProfileNotFound,
    RegionNotFound,
    UnusableHandle,
)
from postcord.interactions.actions import handle_fits
from postcord.interactions.context import FeedContext
from postcord.storage.types import Post, Profile

logger = logging.getLogger(__name__)


def guild_of(interaction) -> str:
    if interaction.guild_id is None:
        raise RegionNotFound("interaction outside a guild")
    return str(interaction.guild_id)


def user_of(interaction) -> str:
    return str(interaction.user.id)


def validate_content(content: str | None, max_length: int) -> str:
    text = content or ""
    if not text.strip() or len(text) > max_length:
        raise InvalidContent(len(text), max_length)
    return text


async def resolve_channel(ctx: FeedContext, channel_id: str | int) -> Any | None:
    try:
        cid = int(channel_id)
    except (TypeError, ValueError):
        return None
    channel = ctx.client.get_channel(cid)
    if channel is None:
        try:
            channel = await ctx.client.fetch_channel(cid)
        except (discord.NotFound, discord.Forbidden):
            logger.debug("Channel %s could not be fetched", channel_id, exc_info=True)
            return None
    return channel


async def resolve_feed_channel(ctx: FeedContext, guild_id: str):
    """Return the guild's text feed channel or raise the matching error."""
    region = await ctx.regions.get_region(guild_id)
    if region is None:
        raise RegionNotFound(guild_id)
    if not region.feed_channel_id:
        raise FeedChannelNotConfigured(guild_id)
    channel = await resolve_channel(ctx, region.feed_channel_id)
    if channel is None:
        raise ChannelNotFound(region.feed_channel_id)
    if getattr(channel, "type", None) != discord.ChannelType.text:
        raise InvalidChannelType(f"{region.feed_channel_id} is {getattr(channel, 'type', None)}")
    return channel


async def fetch_post_message(ctx: FeedContext, post: Post, channel_id: str | int):
    """Fetch the live message mirroring *post* from *channel_id*."""
    if not post.message_id:
        raise MessageNotFound(f"post {post.id} has no message")
    channel = await resolve_channel(ctx, channel_id)
    if channel is None:
        raise ChannelNotFound(str(channel_id))
    try:
        return await channel.fetch_message(int(post.message_id))
    except (discord.NotFound, discord.Forbidden) as exc:
        raise MessageNotFound(f"message {post.message_id} for post {post.id}") from exc


async def require_post(ctx: FeedContext, post_id: str) -> Post:
    post = await ctx.posts.get_post(post_id)
    if post is None:
        raise PostNotFound(post_id)
    return post


async def require_author(ctx: FeedContext, post: Post) -> Profile:
    author = await ctx.profiles.get_profile(post.profile_id)
    if author is None:
        raise ProfileNotFound(post.profile_id)
    return author


async def require_owned_profiles(ctx: FeedContext, interaction) -> list[Profile]:
    profiles = await ctx.profiles.list_profiles_for_user(guild_of(interaction), user_of(interaction))
    if not profiles:
        raise NoOwnedProfiles(user_of(interaction))
    return profiles


async def require_owned_profile(ctx: FeedContext, interaction, handle: str) -> Profile:
    profile = await ctx.profiles.find_profile_by_handle(
        guild_of(interaction),
        handle,
        user_id=user_of(interaction),
    )
    if profile is None:
        raise ProfileNotFound(handle)
    return profile


def require_usable_handle(profile: Profile) -> Profile:
    """Reject handles whose tokens would overflow before anything is stored."""
    if not handle_fits(profile.handle):
        raise UnusableHandle(f"handle {profile.handle!r} too long for component tokens")
    return profile
