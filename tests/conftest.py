from __future__ import annotations

import itertools
import uuid
from types import SimpleNamespace

import discord
import pytest

from postcord.interactions import ActionRouter, FeedContext
from postcord.storage.sqlite import SQLiteFeedStore

GUILD_ID = "1"
FEED_CHANNEL_ID = 500
ALICE_USER = 10
BOB_USER = 20

_message_ids = itertools.count(9000)


def http_error(cls, status: int, text: str):
    return cls(SimpleNamespace(status=status, reason=text), text)


class FakeResponse:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.modals: list = []
        self.deferred = False
        self._done = False

    def is_done(self) -> bool:
        return self._done

    def _use(self) -> None:
        assert not self._done, "interaction already responded to"
        self._done = True

    async def send_message(self, content=None, **kwargs) -> None:
        self._use()
        self.sent.append({"content": content, **kwargs})

    async def send_modal(self, modal) -> None:
        self._use()
        self.modals.append(modal)

    async def defer(self, **kwargs) -> None:
        self._use()
        self.deferred = True


class FakeFollowup:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send(self, content=None, **kwargs) -> None:
        self.sent.append({"content": content, **kwargs})


class FakeMessage:
    def __init__(self, channel, *, embed=None, view=None, reference=None) -> None:
        self.id = next(_message_ids)
        self.channel = channel
        self.embeds = [embed] if embed is not None else []
        self.view = view
        self.reference = reference
        self.edits = 0
        self.jump_url = f"https://discord.com/channels/{GUILD_ID}/{channel.id}/{self.id}"

    @property
    def like_label(self) -> str:
        return self.view.children[0].label

    async def reply(self, *, embed=None, view=None) -> "FakeMessage":
        return await self.channel.send(embed=embed, view=view, reference=self)

    async def edit(self, *, view=None) -> None:
        self.view = view
        self.edits += 1


class FakeTextChannel:
    def __init__(self, channel_id: int, channel_type=discord.ChannelType.text) -> None:
        self.id = channel_id
        self.type = channel_type
        self.messages: dict[int, FakeMessage] = {}

    async def send(self, *, embed=None, view=None, reference=None) -> FakeMessage:
        msg = FakeMessage(self, embed=embed, view=view, reference=reference)
        self.messages[msg.id] = msg
        return msg

    async def fetch_message(self, message_id: int) -> FakeMessage:
        try:
            return self.messages[message_id]
        except KeyError:
            raise http_error(discord.NotFound, 404, "Unknown Message") from None


class FakeUser:
    def __init__(self, user_id: int, *, fail: bool = False) -> None:
        self.id = user_id
        self.fail = fail
        self.dms: list[dict] = []

    async def send(self, content=None, **kwargs) -> None:
        if self.fail:
            raise http_error(discord.Forbidden, 403, "Cannot send messages to this user")
        self.dms.append({"content": content, **kwargs})


class FakeClient:
    def __init__(self) -> None:
        self.channels: dict[int, FakeTextChannel] = {}
        self.users: dict[int, FakeUser] = {}

    def get_channel(self, channel_id: int):
        return self.channels.get(channel_id)

    async def fetch_channel(self, channel_id: int):
        raise http_error(discord.NotFound, 404, "Unknown Channel")

    def get_user(self, user_id: int):
        return None

    async def fetch_user(self, user_id: int) -> FakeUser:
        if user_id not in self.users:
            raise http_error(discord.NotFound, 404, "Unknown User")
        return self.users[user_id]


def make_interaction(
    user_id: int,
    *,
    data: dict | None = None,
    guild_id: str | None = GUILD_ID,
    channel_id: int = FEED_CHANNEL_ID,
    kind=discord.InteractionType.component,
):
    return SimpleNamespace(
        type=kind,
        user=SimpleNamespace(id=user_id),
        guild_id=int(guild_id) if guild_id is not None else None,
        channel_id=channel_id,
        data=data or {},
        response=FakeResponse(),
        followup=FakeFollowup(),
    )


def modal_data(custom_id: str, field: str, value: str) -> dict:
    return {
        "custom_id": custom_id,
        "components": [
            {"type": 1, "components": [{"type": 4, "custom_id": field, "value": value}]},
        ],
    }


async def insert_profile_row(store, handle: str, user_id: int, display_name: str = "Imported"):
    """Insert a profile without going through create_profile's validation."""
    db = await store._conn()  # noqa: SLF001
    await db.execute(
        "INSERT INTO profiles (id, guild_id, user_id, handle, display_name) VALUES (?, ?, ?, ?, ?)",
        (uuid.uuid4().hex, GUILD_ID, str(user_id), handle, display_name),
    )
    await db.commit()
    return await store.find_profile_by_handle(GUILD_ID, handle)


@pytest.fixture
async def store(tmp_path):
    s = SQLiteFeedStore(tmp_path / "feed.db")
    await s.init()
    yield s
    await s.close()


@pytest.fixture
def client():
    c = FakeClient()
    c.channels[FEED_CHANNEL_ID] = FakeTextChannel(FEED_CHANNEL_ID)
    c.users[ALICE_USER] = FakeUser(ALICE_USER)
    c.users[BOB_USER] = FakeUser(BOB_USER)
    return c


@pytest.fixture
def feed_channel(client) -> FakeTextChannel:
    return client.channels[FEED_CHANNEL_ID]


@pytest.fixture
async def ctx(client, store):
    context = FeedContext.build(client, store)
    yield context
    await context.close()


@pytest.fixture
def router(ctx) -> ActionRouter:
    return ActionRouter(ctx)


@pytest.fixture
async def region(store):
    return await store.set_feed_channel(GUILD_ID, str(FEED_CHANNEL_ID))


@pytest.fixture
async def alice(store):
    return await store.create_profile(
        guild_id=GUILD_ID,
        user_id=str(ALICE_USER),
        handle="alice",
        display_name="Alice",
        profile_picture="https://cdn.example.com/alice.png",
    )


@pytest.fixture
async def bob(store):
    return await store.create_profile(
        guild_id=GUILD_ID,
        user_id=str(BOB_USER),
        handle="bob",
        display_name="Bob",
    )
