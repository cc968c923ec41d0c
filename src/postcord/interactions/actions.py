"""Correlation tokens carried in every component ``custom_id``.

Wire format: ``<domain>:<objectId>:<action>[:<extraArg>]*``.  Each field is
percent-escaped (``%`` and ``:`` only) so a handle containing ``:`` cannot
shift the positional fields.  Tokens are decoded once, at the router,
into one of the typed action variants below.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Union

from postcord.errors import MalformedToken

DOMAIN = "post"
DELIMITER = ":"
MAX_TOKEN_LENGTH = 100  # Discord custom_id limit

ActionName = Literal["modal", "reply", "like", "viewProfile", "pickProfile", "pickLikeProfile"]

# action → number of extra args it carries
_ARITY: dict[str, int] = {
    "modal": 0,
    "reply": 0,
    "like": 0,
    "viewProfile": 1,
    "pickProfile": 0,
    "pickLikeProfile": 0,
}
# "reply" is overloaded: a button on a post (no extras) or a reply form
# (object id = handle, one extra = post id).
_REPLY_FORM_ARITY = 1

_ESCAPE_RE = re.compile(r"%(25|3A)", re.IGNORECASE)


def escape_field(value: str) -> str:
    return value.replace("%", "%25").replace(DELIMITER, "%3A")


def unescape_field(value: str) -> str:
    if "%" in _ESCAPE_RE.sub("", value):
        raise MalformedToken(f"bad escape in {value!r}")
    return _ESCAPE_RE.sub(lambda m: "%" if m.group(1) == "25" else DELIMITER, value)


POST_ID_LENGTH = 32  # uuid4 hex
# Room left for the escaped handle in ``post:<postId>:viewProfile:<handle>``,
# the longest token that carries one.
MAX_ESCAPED_HANDLE_LENGTH = MAX_TOKEN_LENGTH - len(
    DELIMITER.join((DOMAIN, "0" * POST_ID_LENGTH, "viewProfile", ""))
)


def handle_fits(handle: str) -> bool:
    """True if every token carrying *handle* stays within the custom_id limit."""
    return bool(handle) and len(escape_field(handle)) <= MAX_ESCAPED_HANDLE_LENGTH


@dataclass(frozen=True)
class ActionToken:
    domain: str
    object_id: str
    action: str
    extra_args: tuple[str, ...] = ()

    def encode(self) -> str:
        fields = (self.domain, self.object_id, self.action, *self.extra_args)
        if any(not f for f in fields[:3]):
            raise ValueError(f"empty token field in {self!r}")
        raw = DELIMITER.join(escape_field(f) for f in fields)
        if len(raw) > MAX_TOKEN_LENGTH:
            raise ValueError(f"token exceeds {MAX_TOKEN_LENGTH} chars: {raw!r}")
        return raw

    @classmethod
    def decode(cls, raw: str) -> "ActionToken":
        if not isinstance(raw, str) or not raw:
            raise MalformedToken(f"empty token {raw!r}")
        parts = [unescape_field(p) for p in raw.split(DELIMITER)]
        if len(parts) < 3:
            raise MalformedToken(f"too few fields in {raw!r}")
        domain, object_id, action, *extra = parts
        if not domain or not object_id or not action:
            raise MalformedToken(f"empty field in {raw!r}")
        return cls(domain=domain, object_id=object_id, action=action, extra_args=tuple(extra))


def encode(domain: str, object_id: str, action: str, *extra_args: str) -> str:
    return ActionToken(domain, object_id, action, tuple(extra_args)).encode()


def decode(raw: str) -> ActionToken:
    return ActionToken.decode(raw)


# --------------------------------------------------------------------------- #
#  Typed variants                                                              #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class ComposeSubmit:
    """Post form submitted for ``handle``."""

    handle: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.handle, "modal")


@dataclass(frozen=True)
class ReplySubmit:
    """Reply form submitted by ``handle`` for ``post_id``."""

    handle: str
    post_id: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.handle, "reply", self.post_id)


@dataclass(frozen=True)
class LikePressed:
    post_id: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.post_id, "like")


@dataclass(frozen=True)
class ReplyPressed:
    post_id: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.post_id, "reply")


@dataclass(frozen=True)
class ViewProfilePressed:
    post_id: str
    handle: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.post_id, "viewProfile", self.handle)


@dataclass(frozen=True)
class ReplyProfilePicked:
    post_id: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.post_id, "pickProfile")


@dataclass(frozen=True)
class LikeProfilePicked:
    post_id: str

    def to_token(self) -> str:
        return encode(DOMAIN, self.post_id, "pickLikeProfile")


Action = Union[
    ComposeSubmit,
    ReplySubmit,
    LikePressed,
    ReplyPressed,
    ViewProfilePressed,
    ReplyProfilePicked,
    LikeProfilePicked,
]


def parse_action(raw: str) -> Action:
    """Decode *raw* into a typed action or raise :class:`MalformedToken`."""
    token = ActionToken.decode(raw)
    if token.domain != DOMAIN:
        raise MalformedToken(f"unknown domain {token.domain!r}")
    if token.action not in _ARITY:
        raise MalformedToken(f"unknown action {token.action!r}")

    extra = token.extra_args
    if token.action == "reply" and len(extra) == _REPLY_FORM_ARITY:
        if not extra[0]:
            raise MalformedToken(f"empty post id in {raw!r}")
        return ReplySubmit(handle=token.object_id, post_id=extra[0])
    if len(extra) != _ARITY[token.action]:
        raise MalformedToken(
            f"action {token.action!r} expects {_ARITY[token.action]} extra arg(s), got {len(extra)}"
        )

    if token.action == "modal":
        return ComposeSubmit(handle=token.object_id)
    if token.action == "reply":
        return ReplyPressed(post_id=token.object_id)
    if token.action == "like":
        return LikePressed(post_id=token.object_id)
    if token.action == "viewProfile":
        if not extra[0]:
            raise MalformedToken(f"empty handle in {raw!r}")
        return ViewProfilePressed(post_id=token.object_id, handle=extra[0])
    if token.action == "pickProfile":
        return ReplyProfilePicked(post_id=token.object_id)
    return LikeProfilePicked(post_id=token.object_id)
