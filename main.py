"""Main entry point for the file catalog Telegram bot.

Admins upload videos and documents, confirm them into the catalog, and
users find them by keyword within a daily download limit.
"""

import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_file = Path(__file__).parent / '.env'
if env_file.exists():
    load_dotenv(env_file)

# Import after loading .env
from config import Config
from core.bot import BotCore
from core.cache import MemoryCache
from core.database import init_database, create_tables, close_database, get_session
from core.tasks import cancel_pending_tasks
from modules.catalog.moderation import ModerationWorkflow
from modules.catalog.search import SearchEngine
from modules.common.keyboards import get_bot_commands
from modules.membership.service import MembershipGate

# Configure logging
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format=Config.LOG_FORMAT,
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Catch-all text handler lives in modules.catalog, so it is loaded last
MODULES = [
    'modules.common',
    'modules.membership',
    'modules.accounts',
    'modules.admin',
    'modules.catalog',
]


async def periodic_pending_sweep(cache: MemoryCache) -> None:
    """Background task removing expired pending uploads and cache entries."""
    logger.info(f"Starting pending upload sweep (interval: {Config.PENDING_SWEEP_INTERVAL}s)")

    while True:
        try:
            await asyncio.sleep(Config.PENDING_SWEEP_INTERVAL)
            async with get_session() as session:
                await ModerationWorkflow(session, Config.ADMIN_IDS, Config.PENDING_TTL).sweep()
            cache.purge_expired()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in pending upload sweep: {e}")


async def on_startup() -> None:
    """Execute on bot startup."""
    logger.info("=" * 60)
    logger.info("🚀 Starting file catalog bot")
    logger.info("=" * 60)

    Config.validate()
    Config.print_config()

    logger.info("Initializing database...")
    init_database(Config.DATABASE_URL)

    # Import all models so Base.metadata knows about them before create_tables()
    import modules.catalog.models  # noqa: F401
    import modules.accounts.models  # noqa: F401

    await create_tables()
    logger.info("Database initialized successfully")
    logger.info("=" * 60)


async def on_shutdown() -> None:
    """Execute on bot shutdown."""
    logger.info("=" * 60)
    logger.info("🛑 Shutting down file catalog bot")
    logger.info("=" * 60)

    await cancel_pending_tasks()

    logger.info("Closing database connections...")
    await close_database()
    logger.info("Database connections closed")

    logger.info("Shutdown complete")
    logger.info("=" * 60)


def build_bot_core(cache: MemoryCache) -> BotCore:
    """Create bot, services and routers."""
    bot_core = BotCore(token=Config.BOT_TOKEN, rate_limit=Config.RATE_LIMIT)

    gate = MembershipGate(
        bot=bot_core.bot,
        cache=cache,
        admins=Config.ADMIN_IDS,
        channel_id=Config.FORCE_CHANNEL_ID,
        member_ttl=Config.MEMBER_CACHE_TTL,
        nonmember_ttl=Config.NON_MEMBER_CACHE_TTL,
    )
    search_engine = SearchEngine(
        cache,
        page_size=Config.RESULTS_PER_PAGE,
        session_ttl=Config.SEARCH_SESSION_TTL,
    )
    bot_core.provide(
        settings=Config,
        admins=Config.ADMIN_IDS,
        cache=cache,
        gate=gate,
        search_engine=search_engine,
    )

    logger.info("Loading modules...")
    bot_core.load_modules(MODULES)
    logger.info(f"Loaded modules: {', '.join(bot_core.get_loaded_modules())}")
    return bot_core


async def main() -> None:
    """Main application entry point."""
    try:
        await on_startup()

        cache = MemoryCache()
        bot_core = build_bot_core(cache)

        sweep_task = asyncio.create_task(periodic_pending_sweep(cache))

        logger.info("=" * 60)
        logger.info("✅ Bot is running! Press Ctrl+C to stop")
        logger.info("=" * 60)

        try:
            if Config.WEBHOOK_URL:
                await bot_core.start_webhook(Config.WEBHOOK_URL, Config.WEBHOOK_PORT, get_bot_commands())
            else:
                await bot_core.start_polling(get_bot_commands())
        finally:
            sweep_task.cancel()
            try:
                await sweep_task
            except asyncio.CancelledError:
                pass

    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        await on_shutdown()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
