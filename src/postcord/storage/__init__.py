from __future__ import annotations

from .repositories import PostRepository, ProfileRepository, RegionRepository
from .sqlite import SQLiteFeedStore
from .types import Post, Profile, Region

__all__ = [
    "Post",
    "PostRepository",
    "Profile",
    "ProfileRepository",
    "Region",
    "RegionRepository",
    "SQLiteFeedStore",
]
