"""Bot command menu shown by Telegram clients."""

from aiogram.types import BotCommand


def get_bot_commands() -> list[BotCommand]:
    """Commands published with set_my_commands() at startup."""
    return [
        BotCommand(command="start", description="Start bot"),
        BotCommand(command="recent", description="New files"),
        BotCommand(command="trending", description="Popular files"),
        BotCommand(command="favorites", description="My saved files"),
        BotCommand(command="myaccount", description="Check limits"),
        BotCommand(command="help", description="How to use the bot"),
    ]
