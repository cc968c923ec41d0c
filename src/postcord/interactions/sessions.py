from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

STEP_COMPOSE = "compose"
STEP_REPLY = "reply"


@dataclass
class PendingFlow:
    """A flow suspended while the user fills a form."""

    step: str
    key: str
    user_id: str
    expires_at: float
    data: dict[str, Any] = field(default_factory=dict)


class PendingFlows:
    """Short-lived in-memory sessions keyed by step, token and user.

    A session that is never claimed simply expires; nothing else cleans up
    after an abandoned form.
    """

    def __init__(
        self,
        ttl_seconds: float = 900,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[tuple[str, str, str], PendingFlow] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def open(self, step: str, key: str, user_id: str, **data: Any) -> PendingFlow:
        self.purge_expired()
        flow = PendingFlow(
            step=step,
            key=key,
            user_id=user_id,
            expires_at=self._clock() + self._ttl,
            data=data,
        )
        # Re-opening the same form replaces the earlier session.
        self._entries[(step, key, user_id)] = flow
        return flow

    def claim(self, step: str, key: str, user_id: str) -> PendingFlow | None:
        """Remove and return the session, or None if missing or expired."""
        flow = self._entries.pop((step, key, user_id), None)
        if flow is None:
            return None
        if flow.expires_at <= self._clock():
            logger.debug("Pending %s session for %s expired", step, key)
            return None
        return flow

    def purge_expired(self) -> int:
        now = self._clock()
        stale = [k for k, flow in self._entries.items() if flow.expires_at <= now]
        for k in stale:
            del self._entries[k]
        return len(stale)
