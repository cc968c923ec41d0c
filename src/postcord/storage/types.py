from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

# Every escaped handle (worst case 3 chars per char) fits the longest
# handle-bearing component token.
MAX_HANDLE_LENGTH = 16


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        ts = datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class Profile:
    id: str
    handle: str
    guild_id: str
    user_id: str
    display_name: str
    profile_picture: str | None = None
    notifications_enabled: bool = True
    bio: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Profile":
        return cls(
            id=str(row["id"]),
            handle=str(row["handle"]),
            guild_id=str(row["guild_id"]),
            user_id=str(row["user_id"]),
            display_name=str(row["display_name"]),
            profile_picture=row.get("profile_picture"),
            notifications_enabled=bool(row.get("notifications_enabled", 1)),
            bio=row.get("bio"),
        )


@dataclass(frozen=True)
class Post:
    id: str
    profile_id: str
    content: str
    timestamp: datetime
    reply_to: str | None = None
    message_id: str | None = None
    likes: frozenset[str] = frozenset()

    @property
    def like_count(self) -> int:
        return len(self.likes)

    @property
    def is_root(self) -> bool:
        return self.reply_to is None

    @classmethod
    def from_row(cls, row: dict[str, Any], likes: frozenset[str] = frozenset()) -> "Post":
        return cls(
            id=str(row["id"]),
            profile_id=str(row["profile_id"]),
            content=str(row["content"]),
            timestamp=parse_timestamp(row["timestamp"]),
            reply_to=row.get("reply_to"),
            message_id=row.get("message_id"),
            likes=likes,
        )


@dataclass(frozen=True)
class Region:
    guild_id: str
    feed_channel_id: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Region":
        return cls(
            guild_id=str(row["guild_id"]),
            feed_channel_id=row.get("feed_channel_id"),
        )
