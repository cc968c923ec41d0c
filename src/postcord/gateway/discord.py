from __future__ import annotations

import logging
from collections.abc import Sequence

import discord
from discord import app_commands

from postcord.interactions import ActionRouter, FeedContext

logger = logging.getLogger(__name__)

_ROUTED_INTERACTION_TYPES = (
    discord.InteractionType.component,
    discord.InteractionType.modal_submit,
)


class DiscordFeedChannel:
    """Discord adapter: registers ``/post`` and forwards component events.

    Buttons, select menus and modals carry correlation tokens in their
    ``custom_id``; every such interaction goes through :class:`ActionRouter`.
    """

    def __init__(
        self,
        token: str,
        store,
        *,
        guild_ids: Sequence[str] = (),
        session_ttl_seconds: float = 900,
        max_post_length: int = 280,
    ) -> None:
        self._token = token
        self._store = store
        self._guild_ids = [int(g) for g in guild_ids]
        self._session_ttl_seconds = session_ttl_seconds
        self._max_post_length = max_post_length
        self._client: discord.Client | None = None
        self._ctx: FeedContext | None = None
        self._router: ActionRouter | None = None

    @property
    def platform(self) -> str:
        return "discord"

    def build_router(self, client: discord.Client) -> ActionRouter:
        self._ctx = FeedContext.build(
            client,
            self._store,
            session_ttl_seconds=self._session_ttl_seconds,
            max_post_length=self._max_post_length,
        )
        self._router = ActionRouter(self._ctx)
        return self._router

    async def start(self) -> None:
        intents = discord.Intents.default()
        client = discord.Client(intents=intents)
        tree = app_commands.CommandTree(client)
        self._client = client
        router = self.build_router(client)

        # ---- Slash commands ------------------------------------------------

        @tree.command(name="post", description="Create a new post")
        @app_commands.describe(handle="The handle to post from")
        @app_commands.guild_only()
        async def slash_post(interaction: discord.Interaction, handle: str):
            await router.post_command(interaction, handle)

        @slash_post.autocomplete("handle")
        async def slash_post_handle(interaction: discord.Interaction, current: str):
            return await router.autocomplete_handles(interaction, current)

        # ---- Events --------------------------------------------------------

        @client.event
        async def on_ready() -> None:
            scope = await self._sync_command_tree(tree)
            logger.info("[discord] Online as %s, slash commands synced (%s)", client.user, scope)

        @client.event
        async def on_interaction(interaction: discord.Interaction) -> None:
            await self.handle_interaction(interaction)

        try:
            await client.start(self._token)
        finally:
            if self._ctx:
                await self._ctx.close()

    async def handle_interaction(self, interaction) -> None:
        if self._router is None or interaction.type not in _ROUTED_INTERACTION_TYPES:
            return
        custom_id = (interaction.data or {}).get("custom_id")
        if not self._router.owns(custom_id):
            return
        await self._router.dispatch(interaction)

    async def _sync_command_tree(self, tree: app_commands.CommandTree) -> str:
        if self._guild_ids:
            for guild_id in self._guild_ids:
                guild = discord.Object(id=guild_id)
                tree.copy_global_to(guild=guild)
                await tree.sync(guild=guild)
            tree.clear_commands(guild=None)
            await tree.sync()
            return "guilds:" + ",".join(str(g) for g in self._guild_ids)

        await tree.sync()
        return "global"
