"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from typing import FrozenSet

# Base directory
BASE_DIR = Path(__file__).parent

logger = logging.getLogger(__name__)


def parse_admin_ids(raw: str) -> FrozenSet[int]:
    """Parse comma-separated admin user IDs.

    Args:
        raw: Value like "123, 456"

    Returns:
        Immutable set of integer user IDs (invalid entries are skipped)
    """
    ids = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.add(int(part))
        except ValueError:
            logger.warning(f"Ignoring invalid admin id: {part!r}")
    return frozenset(ids)


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram Bot
    BOT_TOKEN: str = os.getenv("BOT_TOKEN", "")

    # Privileged users (uploads, stats, broadcast, delete)
    ADMIN_IDS: FrozenSet[int] = parse_admin_ids(os.getenv("ADMIN_IDS", ""))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite+aiosqlite:///{BASE_DIR / 'bot.db'}"
    )

    # Catalog and search
    DAILY_LIMIT: int = int(os.getenv("DAILY_LIMIT", 100))
    RESULTS_PER_PAGE: int = int(os.getenv("RESULTS_PER_PAGE", 10))
    SEARCH_SESSION_TTL: int = int(os.getenv("SEARCH_SESSION_TTL", 300))  # seconds
    PENDING_TTL: int = int(os.getenv("PENDING_TTL", 600))  # seconds
    PENDING_SWEEP_INTERVAL: int = int(os.getenv("PENDING_SWEEP_INTERVAL", 60))  # seconds
    MAX_FAVORITES: int = int(os.getenv("MAX_FAVORITES", 50))

    # Force join (channel username like "@mychannel" or numeric id)
    FORCE_CHANNEL_ID: str = os.getenv("FORCE_CHANNEL_ID", "")
    MEMBER_CACHE_TTL: int = int(os.getenv("MEMBER_CACHE_TTL", 300))
    NON_MEMBER_CACHE_TTL: int = int(os.getenv("NON_MEMBER_CACHE_TTL", 60))

    # Broadcast
    BROADCAST_DELAY: float = float(os.getenv("BROADCAST_DELAY", 0.05))  # seconds between sends

    # Rate limiting
    RATE_LIMIT: int = int(os.getenv("RATE_LIMIT", 5))  # requests per second per user

    # Webhook mode (polling when WEBHOOK_URL is empty)
    WEBHOOK_URL: str = os.getenv("WEBHOOK_URL", os.getenv("RENDER_EXTERNAL_URL", ""))
    WEBHOOK_PORT: int = int(os.getenv("WEBHOOK_PORT", os.getenv("PORT", "3000")))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required settings are missing or out of range
        """
        if not cls.BOT_TOKEN:
            raise ValueError("BOT_TOKEN environment variable is required")

        if cls.DAILY_LIMIT < 1:
            raise ValueError("DAILY_LIMIT must be a positive number")

        if cls.RESULTS_PER_PAGE < 1:
            raise ValueError("RESULTS_PER_PAGE must be a positive number")

        if not cls.ADMIN_IDS:
            logger.warning("ADMIN_IDS is empty: nobody will be able to upload files")

    @classmethod
    def print_config(cls) -> None:
        """Log current configuration (without sensitive data)."""
        logger.info("=" * 50)
        logger.info("Configuration:")
        logger.info(f"Database URL: {cls.DATABASE_URL}")
        logger.info(f"Admins: {len(cls.ADMIN_IDS)}")
        logger.info(f"Daily limit: {cls.DAILY_LIMIT}")
        logger.info(f"Results per page: {cls.RESULTS_PER_PAGE}")
        logger.info(f"Force channel: {cls.FORCE_CHANNEL_ID or 'DISABLED'}")
        logger.info(f"Rate limit: {cls.RATE_LIMIT} req/sec")
        logger.info(f"Mode: {'WEBHOOK' if cls.WEBHOOK_URL else 'POLLING'}")
        if cls.WEBHOOK_URL:
            logger.info(f"Webhook URL: {cls.WEBHOOK_URL} (port {cls.WEBHOOK_PORT})")
        logger.info(f"Log level: {cls.LOG_LEVEL}")
        logger.info(f"Bot token: {'*' * 10}{cls.BOT_TOKEN[-4:]}")
        logger.info("=" * 50)
