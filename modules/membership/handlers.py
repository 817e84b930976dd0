"""Telegram handlers for membership module."""

import logging
from aiogram import Router, F, Bot
from aiogram.types import CallbackQuery

from .service import MembershipGate

logger = logging.getLogger(__name__)

router = Router(name="membership")


@router.callback_query(F.data == "CHECK_JOIN")
async def callback_check_join(callback: CallbackQuery, bot: Bot, gate: MembershipGate) -> None:
    """Handle 'I Have Joined' button: drop cached verdict and check again."""
    user_id = callback.from_user.id
    chat_id = callback.message.chat.id if callback.message else user_id
    if not await gate.recheck(user_id, chat_id):
        await callback.answer("❌ You still haven't joined the channel!", show_alert=True)
        return

    await bot.send_message(chat_id, "✅ <b>Thanks for joining!</b> You can now use the bot.")
    if callback.message:
        try:
            await bot.delete_message(chat_id, callback.message.message_id)
        except Exception as e:
            logger.debug(f"Could not delete join prompt: {e}")
    await callback.answer()


def setup(dp):
    """Register membership module handlers."""
    dp.include_router(router)
