from __future__ import annotations

from abc import ABC, abstractmethod

from postcord.storage.types import Post, Profile, Region


class ProfileRepository(ABC):
    """Read access to the profiles members post as."""

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Profile | None:
        ...

    @abstractmethod
    async def find_profile_by_handle(
        self,
        guild_id: str,
        handle: str,
        *,
        user_id: str | None = None,
    ) -> Profile | None:
        """Return the profile with *handle* in *guild_id*.

        When *user_id* is given the profile must also be owned by that user.
        """
        ...

    @abstractmethod
    async def list_profiles_for_user(self, guild_id: str, user_id: str) -> list[Profile]:
        ...

    @abstractmethod
    async def create_profile(
        self,
        *,
        guild_id: str,
        user_id: str,
        handle: str,
        display_name: str,
        profile_picture: str | None = None,
        notifications_enabled: bool = True,
        bio: str | None = None,
    ) -> Profile:
        """Raise ValueError for a handle outside 1..MAX_HANDLE_LENGTH characters."""
        ...

    @abstractmethod
    async def count_posts(self, profile_id: str) -> int:
        ...


class PostRepository(ABC):
    """Posts, their reply tree and like sets.

    Mutations are commands that return the updated snapshot; callers never
    write back a record they read earlier.
    """

    @abstractmethod
    async def get_post(self, post_id: str) -> Post | None:
        ...

    @abstractmethod
    async def create_post(
        self,
        *,
        profile_id: str,
        content: str,
        reply_to: str | None = None,
    ) -> Post:
        ...

    @abstractmethod
    async def attach_message_id(self, post_id: str, message_id: str) -> Post:
        ...

    @abstractmethod
    async def toggle_liker(self, post_id: str, profile_id: str) -> Post:
        """Add *profile_id* to the post's likes, or remove it if present."""
        ...

    @abstractmethod
    async def list_replies(self, post_id: str) -> list[Post]:
        ...


class RegionRepository(ABC):
    @abstractmethod
    async def get_region(self, guild_id: str) -> Region | None:
        ...

    @abstractmethod
    async def set_feed_channel(self, guild_id: str, channel_id: str | None) -> Region:
        ...
