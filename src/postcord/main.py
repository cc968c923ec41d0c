from __future__ import annotations

import asyncio
import logging
import logging.handlers
import sys
from pathlib import Path

from postcord.config import Settings


def _setup_logging(level: str = "INFO", log_dir: str = "logs") -> None:
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Console handler, always on
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(log_format))
    root.addHandler(console)

    # Rotating file handler: one file per day, keep 7 days
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.TimedRotatingFileHandler(
        path / "postcord.log",
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(log_format))
    root.addHandler(file_handler)

    # discord.py is chatty at INFO about gateway reconnects
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)


async def seed_regions(store, settings: Settings, logger: logging.Logger) -> int:
    for seed in settings.regions:
        await store.set_feed_channel(seed.guild_id, seed.feed_channel_id)
        logger.info("Region %s -> feed channel %s", seed.guild_id, seed.feed_channel_id or "(unset)")
    return len(settings.regions)


async def _async_main(settings: Settings, logger: logging.Logger) -> None:
    """Async entry point: opens the store and runs the Discord client."""
    from postcord.gateway.discord import DiscordFeedChannel
    from postcord.storage.sqlite import SQLiteFeedStore

    store = SQLiteFeedStore(settings.db_path)
    await store.init()
    logger.info("Feed store ready: %s", settings.db_path)
    await seed_regions(store, settings, logger)

    channel = DiscordFeedChannel(
        settings.token,
        store,
        guild_ids=settings.guild_ids,
        session_ttl_seconds=settings.session_ttl_seconds,
        max_post_length=settings.max_post_length,
    )
    logger.info("Starting Discord client...")
    try:
        await channel.start()
    finally:
        await store.close()


def main() -> None:
    # Locate config.yaml (next to cwd or project root)
    config_path = Path("config.yaml")
    if not config_path.exists():
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).error(
            "config.yaml not found. Copy config.yaml.example and fill in your values."
        )
        sys.exit(1)

    try:
        from postcord.config import load_config
        settings = Settings.from_dict(load_config(config_path))
    except Exception as exc:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).error("Failed to load config.yaml: %s", exc)
        sys.exit(1)

    _setup_logging(settings.log_level, settings.log_dir)
    logger = logging.getLogger(__name__)

    try:
        asyncio.run(_async_main(settings, logger))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
