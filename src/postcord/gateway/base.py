from __future__ import annotations

from typing import Any, Protocol


class ChatClient(Protocol):
    """The slice of ``discord.Client`` the feed flows depend on.

    Channel, message and user objects are discord.py objects (or fakes with
    the same coroutine methods: ``send``, ``fetch_message``, ``reply``,
    ``edit``).
    """

    def get_channel(self, id: int, /) -> Any | None: ...

    async def fetch_channel(self, channel_id: int, /) -> Any: ...

    def get_user(self, id: int, /) -> Any | None: ...

    async def fetch_user(self, user_id: int, /) -> Any: ...
