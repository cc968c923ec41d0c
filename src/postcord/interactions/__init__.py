from __future__ import annotations

from .context import FeedContext
from .router import ActionRouter

__all__ = ["ActionRouter", "FeedContext"]
