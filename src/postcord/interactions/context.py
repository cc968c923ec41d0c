from __future__ import annotations

from dataclasses import dataclass

from postcord.config import DEFAULT_MAX_POST_LENGTH
from postcord.gateway.base import ChatClient
from postcord.interactions.notifier import ReplyNotifier
from postcord.interactions.sessions import PendingFlows
from postcord.storage.repositories import PostRepository, ProfileRepository, RegionRepository


@dataclass
class FeedContext:
    """Everything a flow needs, passed explicitly into each entry point."""

    client: ChatClient
    profiles: ProfileRepository
    posts: PostRepository
    regions: RegionRepository
    sessions: PendingFlows
    notifier: ReplyNotifier
    max_post_length: int = DEFAULT_MAX_POST_LENGTH

    @classmethod
    def build(
        cls,
        client: ChatClient,
        store,
        *,
        session_ttl_seconds: float = 900,
        max_post_length: int = DEFAULT_MAX_POST_LENGTH,
    ) -> "FeedContext":
        """Wire a context around a store implementing all three repositories."""
        return cls(
            client=client,
            profiles=store,
            posts=store,
            regions=store,
            sessions=PendingFlows(session_ttl_seconds),
            notifier=ReplyNotifier(client, store),
            max_post_length=max_post_length,
        )

    async def close(self) -> None:
        await self.notifier.close()
