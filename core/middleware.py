"""Middleware for aiogram bot.

Provides:
- LoggingMiddleware: Log all events
- RateLimitMiddleware: Rate limiting per user
- UserTrackingMiddleware: Remember every user (broadcast audience)
- MembershipMiddleware: Require channel membership before handlers run
"""

from aiogram import BaseMiddleware
from aiogram.types import Update, User
from typing import Callable, Dict, Any, Awaitable, Optional
import logging
import time
from collections import defaultdict

from core.database import get_session
from modules.accounts.service import UserRegistry

logger = logging.getLogger(__name__)


def event_user(event: Update) -> Optional[User]:
    """Sender of a message or callback update."""
    if event.message:
        return event.message.from_user
    if event.callback_query:
        return event.callback_query.from_user
    return None


class LoggingMiddleware(BaseMiddleware):
    """Log all incoming updates."""

    async def __call__(
        self,
        handler: Callable[[Update, Dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: Dict[str, Any],
    ) -> Any:
        user_id = None
        event_type = "unknown"

        if event.message and event.message.from_user:
            user_id = event.message.from_user.id
            event_type = "message"
            logger.info(
                f"Message from user {user_id}: {event.message.text[:50] if event.message.text else 'media'}"
            )
        elif event.callback_query:
            user_id = event.callback_query.from_user.id
            event_type = "callback"
            logger.info(
                f"Callback from user {user_id}: {event.callback_query.data}"
            )

        try:
            result = await handler(event, data)
            logger.debug(f"Successfully processed {event_type} from user {user_id}")
            return result
        except Exception as e:
            logger.error(f"Error processing {event_type} from user {user_id}: {e}", exc_info=True)
            if event.callback_query:
                try:
                    await event.callback_query.answer("Error occurred")
                except Exception:
                    pass
            raise


class RateLimitMiddleware(BaseMiddleware):
    """Rate limit users to prevent spam.

    Limits users to N requests per second.
    """

    def __init__(self, rate_limit: int = 5):
        """Initialize rate limiter.

        Args:
            rate_limit: Maximum requests per second per user
        """
        super().__init__()
        self.rate_limit = rate_limit
        self.user_requests: Dict[int, list] = defaultdict(list)
        logger.info(f"Rate limit middleware initialized: {rate_limit} req/sec")

    async def __call__(
        self,
        handler: Callable[[Update, Dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: Dict[str, Any],
    ) -> Any:
        user = event_user(event)
        if user is None:
            return await handler(event, data)

        current_time = time.monotonic()
        user_times = self.user_requests[user.id]

        # Remove old timestamps (older than 1 second)
        user_times[:] = [t for t in user_times if current_time - t < 1.0]

        if len(user_times) >= self.rate_limit:
            logger.warning(f"Rate limit exceeded for user {user.id}")

            if event.message:
                await event.message.answer("⚠️ Too many requests. Please wait a moment.")
            elif event.callback_query:
                await event.callback_query.answer(
                    "⚠️ Too many requests. Please wait a moment.",
                    show_alert=True
                )
            return None

        user_times.append(current_time)

        return await handler(event, data)


class UserTrackingMiddleware(BaseMiddleware):
    """Upsert the sender into the users table on every interaction."""

    async def __call__(
        self,
        handler: Callable[[Update, Dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: Dict[str, Any],
    ) -> Any:
        user = event_user(event)
        if user is not None and not user.is_bot:
            try:
                async with get_session() as session:
                    await UserRegistry(session).touch(user.id, user.first_name, user.username)
            except Exception as e:
                logger.error(f"Save user error for {user.id}: {e}")

        return await handler(event, data)


class MembershipMiddleware(BaseMiddleware):
    """Stop non-members of the required channel before any handler runs.

    The gate itself (MembershipGate) is taken from dispatcher data under
    the 'gate' key; admins and disabled gates always pass.
    """

    # Commands available without joining; admin commands check access themselves
    ALLOWED_COMMANDS = {'/help', '/myaccount', '/stats', '/broadcast', '/delete'}
    ALLOWED_CALLBACKS = {'CHECK_JOIN'}

    async def __call__(
        self,
        handler: Callable[[Update, Dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: Dict[str, Any],
    ) -> Any:
        gate = data.get("gate")
        user = event_user(event)
        if gate is None or user is None:
            return await handler(event, data)

        if event.message:
            text = event.message.text or ""
            command = text.split()[0].split('@')[0] if text.startswith('/') else None
            if command in self.ALLOWED_COMMANDS:
                return await handler(event, data)

            if not await gate.verify(user.id, event.message.chat.id):
                return None
            return await handler(event, data)

        if event.callback_query:
            callback = event.callback_query
            if callback.data in self.ALLOWED_CALLBACKS:
                return await handler(event, data)

            chat_id = callback.message.chat.id if callback.message else user.id
            if not await gate.verify(user.id, chat_id):
                await callback.answer("⚠️ You must join the channel first!", show_alert=True)
                return None

        return await handler(event, data)
