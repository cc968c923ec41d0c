import pytest

from postcord.errors import MalformedToken
from postcord.interactions.actions import (
    MAX_ESCAPED_HANDLE_LENGTH,
    ActionToken,
    ComposeSubmit,
    LikePressed,
    LikeProfilePicked,
    ReplyPressed,
    ReplyProfilePicked,
    ReplySubmit,
    ViewProfilePressed,
    decode,
    encode,
    handle_fits,
    parse_action,
)
from postcord.storage.types import MAX_HANDLE_LENGTH

POST_ID = "3f2a9c0b1d4e4f5a8b7c6d5e4f3a2b1c"


def test_known_tokens_use_plain_wire_format():
    assert LikePressed(POST_ID).to_token() == f"post:{POST_ID}:like"
    assert ReplyPressed(POST_ID).to_token() == f"post:{POST_ID}:reply"
    assert ComposeSubmit("alice").to_token() == "post:alice:modal"
    assert ReplySubmit("bob", POST_ID).to_token() == f"post:bob:reply:{POST_ID}"
    assert ViewProfilePressed(POST_ID, "alice").to_token() == f"post:{POST_ID}:viewProfile:alice"
    assert ReplyProfilePicked(POST_ID).to_token() == f"post:{POST_ID}:pickProfile"
    assert LikeProfilePicked(POST_ID).to_token() == f"post:{POST_ID}:pickLikeProfile"


@pytest.mark.parametrize(
    "token",
    [
        ActionToken("post", POST_ID, "like"),
        ActionToken("post", "alice", "modal"),
        ActionToken("post", POST_ID, "viewProfile", ("alice",)),
        ActionToken("post", "bob", "reply", (POST_ID,)),
        ActionToken("other", "x", "y", ("a", "", "c")),
    ],
)
def test_round_trip(token):
    assert decode(token.encode()) == token


@pytest.mark.parametrize("handle", ["a:b", "::", "100%", "%3A", "we:ird%25"])
def test_round_trip_with_delimiter_bearing_handles(handle):
    raw = ViewProfilePressed(POST_ID, handle).to_token()
    assert raw.count(":") == 3
    assert parse_action(raw) == ViewProfilePressed(POST_ID, handle)

    raw = ReplySubmit(handle, POST_ID).to_token()
    assert parse_action(raw) == ReplySubmit(handle, POST_ID)


def test_encode_rejects_tokens_over_custom_id_limit():
    with pytest.raises(ValueError):
        encode("post", POST_ID, "viewProfile", "h" * 80)


def test_encode_rejects_empty_fields():
    with pytest.raises(ValueError):
        encode("post", "", "like")


def test_parse_action_variants():
    assert parse_action(f"post:{POST_ID}:like") == LikePressed(POST_ID)
    assert parse_action(f"post:{POST_ID}:reply") == ReplyPressed(POST_ID)
    assert parse_action(f"post:bob:reply:{POST_ID}") == ReplySubmit("bob", POST_ID)
    assert parse_action("post:alice:modal") == ComposeSubmit("alice")
    assert parse_action(f"post:{POST_ID}:pickLikeProfile") == LikeProfilePicked(POST_ID)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        None,
        "post",
        "post:abc",
        "tdec:abc:like",
        "post:abc:explode",
        "post::like",
        "post:abc:like:extra",
        "post:abc:viewProfile",
        "post:abc:viewProfile:",
        "post:abc:reply:x:y",
        "post:ab%zz:like",
    ],
)
def test_parse_action_rejects_malformed(raw):
    with pytest.raises(MalformedToken):
        parse_action(raw)


def test_handle_room_in_longest_token():
    assert MAX_ESCAPED_HANDLE_LENGTH == 50
    assert handle_fits("h" * 50)
    assert not handle_fits("h" * 51)
    assert not handle_fits("")
    # 17 delimiters escape to 51 characters.
    assert not handle_fits(":" * 17)


@pytest.mark.parametrize("handle", ["h" * MAX_HANDLE_LENGTH, ":" * MAX_HANDLE_LENGTH, "%" * MAX_HANDLE_LENGTH])
def test_every_storable_handle_encodes_in_all_tokens(handle):
    assert handle_fits(handle)
    tokens = [
        ComposeSubmit(handle).to_token(),
        ReplySubmit(handle, POST_ID).to_token(),
        ViewProfilePressed(POST_ID, handle).to_token(),
    ]
    assert all(len(t) <= 100 for t in tokens)
    assert parse_action(tokens[2]) == ViewProfilePressed(POST_ID, handle)
