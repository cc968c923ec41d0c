from __future__ import annotations

import logging
from typing import Any

from discord import app_commands

from postcord.errors import MalformedToken, PostcordError, ProfileNotFound
from postcord.interactions.actions import (
    DELIMITER,
    DOMAIN,
    Action,
    ComposeSubmit,
    LikePressed,
    LikeProfilePicked,
    ReplyPressed,
    ReplyProfilePicked,
    ReplySubmit,
    ViewProfilePressed,
    parse_action,
)
from postcord.interactions.composer import PostComposer
from postcord.interactions.context import FeedContext
from postcord.interactions.feed import guild_of, user_of
from postcord.interactions.mirror import MessageMirror
from postcord.interactions.reactions import ReactionToggler
from postcord.interactions.render import (
    MAX_SELECT_OPTIONS,
    POST_CONTENT_FIELD,
    REPLY_CONTENT_FIELD,
    build_profile_embed,
    profile_option_label,
)
from postcord.interactions.replier import ThreadReplier

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong while handling that. Please try again."


def modal_values(data: dict[str, Any] | None) -> dict[str, str]:
    """Flatten submitted modal text inputs into ``{custom_id: value}``."""
    values: dict[str, str] = {}

    def _walk(components: list[dict[str, Any]]) -> None:
        for comp in components:
            if "custom_id" in comp and "value" in comp:
                values[comp["custom_id"]] = comp["value"]
            if comp.get("components"):
                _walk(comp["components"])
            if isinstance(comp.get("component"), dict):
                _walk([comp["component"]])

    _walk((data or {}).get("components") or [])
    return values


def selected_value(data: dict[str, Any] | None) -> str:
    chosen = (data or {}).get("values") or []
    if not chosen:
        raise MalformedToken("select submitted without a value")
    return str(chosen[0])


class ActionRouter:
    """Decode the token on an incoming interaction and run the next flow step.

    Owns no state; every ``PostcordError`` ends the flow with a private reply.
    """

    def __init__(self, ctx: FeedContext) -> None:
        self._ctx = ctx
        self.mirror = MessageMirror(ctx)
        self.composer = PostComposer(ctx)
        self.replier = ThreadReplier(ctx)
        self.reactions = ReactionToggler(ctx, self.mirror)

    @staticmethod
    def owns(custom_id: str | None) -> bool:
        return bool(custom_id) and custom_id.split(DELIMITER, 1)[0] == DOMAIN

    # -- entry points ------------------------------------------------------

    async def post_command(self, interaction, handle: str) -> None:
        try:
            await self.composer.start(interaction, handle)
        except PostcordError as exc:
            await self._fail(interaction, exc)
        except Exception:
            logger.exception("/post failed for handle %r", handle)
            await self._reply_private(interaction, GENERIC_FAILURE)

    async def dispatch(self, interaction) -> None:
        data = interaction.data or {}
        custom_id = data.get("custom_id")
        try:
            action = parse_action(custom_id)
            await self._route(interaction, action, data)
        except MalformedToken as exc:
            logger.warning(
                "Rejected interaction from user %s: %s",
                getattr(interaction.user, "id", "?"),
                exc.detail,
            )
            await self._fail(interaction, exc)
        except PostcordError as exc:
            logger.info("Flow ended for %r: %s (%s)", custom_id, type(exc).__name__, exc.detail)
            await self._fail(interaction, exc)
        except Exception:
            logger.exception("Interaction %r failed", custom_id)
            await self._reply_private(interaction, GENERIC_FAILURE)

    async def autocomplete_handles(self, interaction, current: str) -> list[app_commands.Choice[str]]:
        if interaction.guild_id is None:
            return []
        profiles = await self._ctx.profiles.list_profiles_for_user(
            guild_of(interaction), user_of(interaction)
        )
        prefix = (current or "").lstrip("@").lower()
        return [
            app_commands.Choice(name=profile_option_label(p), value=p.handle)
            for p in profiles
            if p.handle.lower().startswith(prefix)
        ][:MAX_SELECT_OPTIONS]

    # -- routing -----------------------------------------------------------

    async def _route(self, interaction, action: Action, data: dict[str, Any]) -> None:
        if isinstance(action, ComposeSubmit):
            await self.composer.submit(interaction, action, modal_values(data).get(POST_CONTENT_FIELD))
        elif isinstance(action, ReplySubmit):
            await self.replier.submit(interaction, action, modal_values(data).get(REPLY_CONTENT_FIELD))
        elif isinstance(action, ReplyPressed):
            await self.replier.start(interaction, action.post_id)
        elif isinstance(action, LikePressed):
            await self.reactions.start(interaction, action.post_id)
        elif isinstance(action, ViewProfilePressed):
            await self._view_profile(interaction, action)
        elif isinstance(action, ReplyProfilePicked):
            await self.replier.pick(interaction, action, selected_value(data))
        elif isinstance(action, LikeProfilePicked):
            await self.reactions.pick(interaction, action, selected_value(data))
        else:
            raise MalformedToken(f"no route for {action!r}")

    async def _view_profile(self, interaction, action: ViewProfilePressed) -> None:
        profile = await self._ctx.profiles.find_profile_by_handle(guild_of(interaction), action.handle)
        if profile is None:
            raise ProfileNotFound(action.handle)
        post_count = await self._ctx.profiles.count_posts(profile.id)
        await interaction.response.send_message(
            embed=build_profile_embed(profile, post_count),
            ephemeral=True,
        )

    # -- replies -----------------------------------------------------------

    async def _fail(self, interaction, exc: PostcordError) -> None:
        await self._reply_private(interaction, str(exc))

    @staticmethod
    async def _reply_private(interaction, text: str) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(text, ephemeral=True)
            else:
                await interaction.response.send_message(text, ephemeral=True)
        except Exception:
            logger.debug("Failed to send error reply %r", text, exc_info=True)
