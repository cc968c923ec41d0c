from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# Regex for ${VAR_NAME} substitution
_ENV_RE = re.compile(r"\$\{([^}]+)\}")

DEFAULT_DB_PATH = "data/postcord.db"
DEFAULT_SESSION_TTL_SECONDS = 900
DEFAULT_MAX_POST_LENGTH = 280


def _substitute(value: Any) -> Any:
    """Recursively replace ${VAR} with environment variable values in strings."""
    if isinstance(value, str):
        return _ENV_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    if isinstance(value, dict):
        return {k: _substitute(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute(item) for item in value]
    return value


def load_config(path: str | Path = "config.yaml") -> dict:
    """Load config.yaml with ${ENV_VAR} substitution from the environment."""
    load_dotenv()
    raw = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    return _substitute(data)


@dataclass(frozen=True)
class RegionSeed:
    guild_id: str
    feed_channel_id: str | None


@dataclass(frozen=True)
class Settings:
    """Typed view over the parsed config dict."""

    token: str
    guild_ids: tuple[str, ...] = ()
    db_path: str = DEFAULT_DB_PATH
    session_ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS
    max_post_length: int = DEFAULT_MAX_POST_LENGTH
    log_level: str = "INFO"
    log_dir: str = "logs"
    regions: tuple[RegionSeed, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        discord_cfg = data.get("discord") or {}
        token = str(discord_cfg.get("token") or "").strip()
        if not token or _ENV_RE.fullmatch(token):
            raise ValueError("discord.token is not set (check DISCORD_TOKEN)")

        storage_cfg = data.get("storage") or {}
        flows_cfg = data.get("flows") or {}
        logging_cfg = data.get("logging") or {}

        max_len = int(flows_cfg.get("max_post_length", DEFAULT_MAX_POST_LENGTH))
        if not 1 <= max_len <= 4000:
            raise ValueError(f"flows.max_post_length out of range: {max_len}")

        regions = []
        for item in data.get("regions") or []:
            if "guild_id" not in item:
                raise ValueError(f"region entry without guild_id: {item!r}")
            channel = item.get("feed_channel_id")
            regions.append(
                RegionSeed(
                    guild_id=str(item["guild_id"]),
                    feed_channel_id=str(channel) if channel else None,
                )
            )

        return cls(
            token=token,
            guild_ids=tuple(str(g) for g in discord_cfg.get("guild_ids") or []),
            db_path=str(storage_cfg.get("path", DEFAULT_DB_PATH)),
            session_ttl_seconds=float(
                flows_cfg.get("session_ttl_seconds", DEFAULT_SESSION_TTL_SECONDS)
            ),
            max_post_length=max_len,
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
            log_dir=str(logging_cfg.get("dir", "logs")),
            regions=tuple(regions),
        )
