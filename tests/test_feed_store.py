import asyncio

import aiosqlite
import pytest

from conftest import GUILD_ID
from postcord.errors import PostNotFound


@pytest.mark.asyncio
async def test_profile_lookup_is_scoped_to_guild_and_owner(store, alice):
    found = await store.find_profile_by_handle(GUILD_ID, "alice")
    assert found == alice
    assert await store.find_profile_by_handle(GUILD_ID, "ALICE") == alice
    assert await store.find_profile_by_handle("other-guild", "alice") is None
    assert await store.find_profile_by_handle(GUILD_ID, "alice", user_id="999") is None
    assert await store.find_profile_by_handle(GUILD_ID, "alice", user_id=alice.user_id) == alice


@pytest.mark.asyncio
async def test_handles_are_unique_per_guild(store, alice):
    with pytest.raises(aiosqlite.IntegrityError):
        await store.create_profile(guild_id=GUILD_ID, user_id="77", handle="alice", display_name="Imposter")
    other = await store.create_profile(guild_id="2", user_id="77", handle="alice", display_name="Alice Two")
    assert other.guild_id == "2"


@pytest.mark.asyncio
async def test_list_profiles_for_user(store, alice, bob):
    second = await store.create_profile(
        guild_id=GUILD_ID, user_id=alice.user_id, handle="alice_alt", display_name="Alt"
    )
    profiles = await store.list_profiles_for_user(GUILD_ID, alice.user_id)
    assert [p.handle for p in profiles] == ["alice", "alice_alt"]
    assert second in profiles
    assert await store.list_profiles_for_user(GUILD_ID, "nobody") == []


@pytest.mark.asyncio
async def test_create_post_starts_without_message_or_likes(store, alice):
    post = await store.create_post(profile_id=alice.id, content="hello")
    loaded = await store.get_post(post.id)
    assert loaded == post
    assert loaded.reply_to is None
    assert loaded.message_id is None
    assert loaded.likes == frozenset()
    assert loaded.timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_attach_message_id(store, alice):
    post = await store.create_post(profile_id=alice.id, content="hello")
    updated = await store.attach_message_id(post.id, "12345")
    assert updated.message_id == "12345"
    assert (await store.get_post(post.id)).message_id == "12345"


@pytest.mark.asyncio
async def test_attach_message_id_unknown_post(store):
    with pytest.raises(PostNotFound):
        await store.attach_message_id("missing", "1")


@pytest.mark.asyncio
async def test_reply_must_reference_existing_post(store, alice):
    with pytest.raises(aiosqlite.IntegrityError):
        await store.create_post(profile_id=alice.id, content="orphan", reply_to="missing")


@pytest.mark.asyncio
async def test_reply_chain_walks_back_to_root(store, alice, bob):
    root = await store.create_post(profile_id=alice.id, content="root")
    r1 = await store.create_post(profile_id=bob.id, content="r1", reply_to=root.id)
    r2 = await store.create_post(profile_id=alice.id, content="r2", reply_to=r1.id)

    chain = []
    current = await store.get_post(r2.id)
    while current is not None:
        chain.append(current.id)
        current = await store.get_post(current.reply_to) if current.reply_to else None
    assert chain == [r2.id, r1.id, root.id]
    assert (await store.get_post(root.id)).is_root

    replies = await store.list_replies(root.id)
    assert [p.id for p in replies] == [r1.id]


@pytest.mark.asyncio
async def test_toggle_like_then_unlike_restores_set(store, alice, bob):
    post = await store.create_post(profile_id=alice.id, content="hello")
    liked = await store.toggle_liker(post.id, bob.id)
    assert liked.likes == {bob.id}
    assert liked.like_count == 1

    unliked = await store.toggle_liker(post.id, bob.id)
    assert unliked.likes == frozenset()
    assert unliked.like_count == 0


@pytest.mark.asyncio
async def test_concurrent_toggles_from_distinct_likers_both_land(store, alice, bob):
    post = await store.create_post(profile_id=alice.id, content="hello")
    await asyncio.gather(
        store.toggle_liker(post.id, alice.id),
        store.toggle_liker(post.id, bob.id),
    )
    assert (await store.get_post(post.id)).likes == {alice.id, bob.id}


@pytest.mark.asyncio
async def test_concurrent_double_toggle_by_same_liker_cancels_out(store, alice, bob):
    post = await store.create_post(profile_id=alice.id, content="hello")
    await asyncio.gather(*(store.toggle_liker(post.id, bob.id) for _ in range(4)))
    assert (await store.get_post(post.id)).likes == frozenset()

    await asyncio.gather(*(store.toggle_liker(post.id, bob.id) for _ in range(3)))
    assert (await store.get_post(post.id)).likes == {bob.id}


@pytest.mark.asyncio
async def test_toggle_unknown_post(store, bob):
    with pytest.raises(PostNotFound):
        await store.toggle_liker("missing", bob.id)


@pytest.mark.asyncio
async def test_count_posts(store, alice, bob):
    await store.create_post(profile_id=alice.id, content="one")
    await store.create_post(profile_id=alice.id, content="two")
    assert await store.count_posts(alice.id) == 2
    assert await store.count_posts(bob.id) == 0


@pytest.mark.asyncio
async def test_region_upsert(store):
    assert await store.get_region(GUILD_ID) is None
    await store.set_feed_channel(GUILD_ID, None)
    assert (await store.get_region(GUILD_ID)).feed_channel_id is None
    await store.set_feed_channel(GUILD_ID, "500")
    assert (await store.get_region(GUILD_ID)).feed_channel_id == "500"


@pytest.mark.asyncio
async def test_handle_length_is_bounded(store):
    with pytest.raises(ValueError, match="handle"):
        await store.create_profile(guild_id=GUILD_ID, user_id="77", handle="h" * 17, display_name="Long")
    with pytest.raises(ValueError, match="handle"):
        await store.create_profile(guild_id=GUILD_ID, user_id="77", handle="", display_name="Empty")
    edge = await store.create_profile(guild_id=GUILD_ID, user_id="77", handle=":" * 16, display_name="Edge")
    assert await store.find_profile_by_handle(GUILD_ID, ":" * 16) == edge
