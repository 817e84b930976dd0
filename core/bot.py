"""Bot initialization and module loading.

Provides BotCore class for:
- Creating Bot and Dispatcher
- Registering middleware
- Sharing services with handlers through dispatcher data
- Loading modules
- Running polling or webhook server
"""

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application
from aiohttp import web
from typing import Any, List, Optional
import asyncio
import logging
import importlib

from core.middleware import (
    LoggingMiddleware,
    RateLimitMiddleware,
    UserTrackingMiddleware,
    MembershipMiddleware,
)

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhook"


async def health(request: web.Request) -> web.Response:
    return web.Response(text="Bot is running. 🚀")


class BotCore:
    """Core bot class handling initialization and module management."""

    def __init__(
        self,
        token: str,
        rate_limit: int = 5,
        bot: Optional[Bot] = None,
    ):
        """Initialize bot core.

        Args:
            token: Telegram bot token
            rate_limit: Rate limit per user (requests per second)
            bot: Ready Bot instance (created from token if omitted)
        """
        logger.info("Initializing BotCore...")

        self.bot = bot or Bot(
            token=token,
            default=DefaultBotProperties(
                parse_mode=ParseMode.HTML,
            )
        )

        self.dp = Dispatcher(storage=MemoryStorage())

        self._register_middleware(rate_limit)

        self._loaded_modules: List[str] = []

        logger.info("BotCore initialized successfully")

    def _register_middleware(self, rate_limit: int) -> None:
        """Register middleware in correct order.

        Args:
            rate_limit: Rate limit for RateLimitMiddleware
        """
        logger.info("Registering middleware...")

        # Order matters: Logging -> RateLimit -> UserTracking -> Membership
        self.dp.update.middleware(LoggingMiddleware())
        self.dp.update.middleware(RateLimitMiddleware(rate_limit=rate_limit))
        self.dp.update.middleware(UserTrackingMiddleware())
        self.dp.update.middleware(MembershipMiddleware())

        logger.info("Middleware registered: Logging, RateLimit, UserTracking, Membership")

    def provide(self, **services: Any) -> None:
        """Make objects available to handlers as keyword arguments.

        Example:
            core.provide(admins=frozenset({1}), gate=gate)
            async def handler(message: Message, admins: frozenset): ...
        """
        for name, service in services.items():
            self.dp[name] = service
        logger.debug(f"Provided to handlers: {', '.join(services)}")

    def load_module(self, module_path: str) -> None:
        """Load a module and register its handlers.

        Args:
            module_path: Python import path (e.g., 'modules.catalog')

        Raises:
            ImportError: If module cannot be imported
            AttributeError: If module doesn't have setup() function
        """
        logger.info(f"Loading module: {module_path}")

        try:
            module = importlib.import_module(module_path)

            if not hasattr(module, 'setup'):
                raise AttributeError(f"Module {module_path} must have a setup() function")

            setup_func = getattr(module, 'setup')
            setup_func(self.dp)

            self._loaded_modules.append(module_path)
            logger.info(f"Module loaded successfully: {module_path}")

        except ImportError as e:
            logger.error(f"Failed to import module {module_path}: {e}")
            raise
        except AttributeError as e:
            logger.error(f"Module {module_path} missing setup() function: {e}")
            raise

    def load_modules(self, module_paths: List[str]) -> None:
        """Load multiple modules in the given order.

        Routers are matched in load order, so catch-all handlers must come
        from the last module.
        """
        logger.info(f"Loading {len(module_paths)} modules...")

        for module_path in module_paths:
            self.load_module(module_path)

        logger.info(f"Loaded {len(self._loaded_modules)}/{len(module_paths)} modules successfully")

    async def on_startup(self, commands: Optional[list] = None) -> None:
        """Execute startup tasks."""
        logger.info("Bot starting up...")
        logger.info(f"Loaded modules: {', '.join(self._loaded_modules)}")

        me = await self.bot.get_me()
        logger.info(f"Bot started: @{me.username} (ID: {me.id})")

        if commands:
            try:
                await self.bot.set_my_commands(commands)
            except Exception as e:
                logger.warning(f"Could not set bot commands: {e}")

    async def on_shutdown(self) -> None:
        """Execute shutdown tasks."""
        logger.info("Bot shutting down...")

        await self.bot.session.close()

        logger.info("Bot shutdown complete")

    async def start_polling(self, commands: Optional[list] = None) -> None:
        """Start bot polling.

        Blocks until stopped (Ctrl+C).
        """
        logger.info("Starting polling...")

        try:
            await self.on_startup(commands)
            # Webhook left from a previous deployment would block getUpdates
            await self.bot.delete_webhook(drop_pending_updates=False)

            await self.dp.start_polling(
                self.bot,
                allowed_updates=self.dp.resolve_used_update_types(),
            )

        except Exception as e:
            logger.error(f"Error during polling: {e}", exc_info=True)
            raise
        finally:
            await self.on_shutdown()

    def create_web_app(self) -> web.Application:
        """aiohttp application receiving Telegram updates at WEBHOOK_PATH."""
        app = web.Application()
        app.router.add_get("/", health)
        SimpleRequestHandler(dispatcher=self.dp, bot=self.bot).register(app, path=WEBHOOK_PATH)
        setup_application(app, self.dp, bot=self.bot)
        return app

    async def start_webhook(self, base_url: str, port: int, commands: Optional[list] = None) -> None:
        """Serve webhook updates until cancelled.

        Args:
            base_url: Public HTTPS URL of this service (e.g. https://bot.example.com)
            port: Local port for the aiohttp server
        """
        url = f"{base_url.rstrip('/')}{WEBHOOK_PATH}"
        logger.info(f"Starting webhook server on 0.0.0.0:{port}, webhook URL: {url}")

        await self.on_startup(commands)
        await self.bot.set_webhook(url, allowed_updates=self.dp.resolve_used_update_types())

        runner = web.AppRunner(self.create_web_app())
        await runner.setup()
        site = web.TCPSite(runner, "0.0.0.0", port)
        await site.start()

        try:
            # Keep running until cancelled
            while True:
                await asyncio.sleep(3600)
        except asyncio.CancelledError:
            pass
        finally:
            await runner.cleanup()
            await self.on_shutdown()
            logger.info("Webhook server stopped")

    def get_loaded_modules(self) -> List[str]:
        return self._loaded_modules.copy()
