"""Required-channel membership check.

If the lookup itself fails (bot is not an admin of the channel, wrong
channel id, network), the user is let through: a misconfigured channel
must not lock everybody out of the bot.
"""

import logging
from typing import FrozenSet, Optional

from aiogram import Bot
from aiogram.enums import ChatMemberStatus

from core.errors import MembershipUnverifiable
from .keyboards import get_join_keyboard

logger = logging.getLogger(__name__)

MEMBER_STATUSES = (
    ChatMemberStatus.CREATOR,
    ChatMemberStatus.ADMINISTRATOR,
    ChatMemberStatus.MEMBER,
)

JOIN_PROMPT = "⚠️ <b>You must join our channel to use this bot.</b>"


class MembershipGate:
    """Verifies that users joined the configured channel.

    Verdicts are cached: members for `member_ttl` seconds, non-members for
    the shorter `nonmember_ttl` so that users who just joined are not kept
    waiting.
    """

    KEY_PREFIX = "member:"

    def __init__(
        self,
        bot: Bot,
        cache,
        admins: FrozenSet[int],
        channel_id: Optional[str] = None,
        member_ttl: int = 300,
        nonmember_ttl: int = 60,
    ):
        self.bot = bot
        self.cache = cache
        self.admins = admins
        self.channel_id = (channel_id or "").strip()
        self.member_ttl = member_ttl
        self.nonmember_ttl = nonmember_ttl

    @property
    def enabled(self) -> bool:
        return bool(self.channel_id)

    def _key(self, user_id: int) -> str:
        return f"{self.KEY_PREFIX}{user_id}"

    def _chat(self):
        """Channel id as Telegram expects it (username or integer id)."""
        if self.channel_id.startswith("@"):
            return self.channel_id
        try:
            return int(self.channel_id)
        except ValueError:
            return self.channel_id

    async def is_member(self, user_id: int) -> bool:
        """Ask Telegram about the user's status in the channel.

        Raises:
            MembershipUnverifiable: If the lookup fails
        """
        try:
            member = await self.bot.get_chat_member(self._chat(), user_id)
        except Exception as e:
            raise MembershipUnverifiable(str(e)) from e
        return member.status in MEMBER_STATUSES

    async def invite_link(self) -> str:
        if self.channel_id.startswith("@"):
            return f"https://t.me/{self.channel_id[1:]}"
        try:
            return await self.bot.export_chat_invite_link(self._chat())
        except Exception as e:
            logger.warning(f"Could not export invite link for {self.channel_id}: {e}")
            return "https://t.me/"

    async def send_prompt(self, chat_id: int) -> None:
        """Send join link and 'I have joined' button."""
        try:
            link = await self.invite_link()
            await self.bot.send_message(chat_id, JOIN_PROMPT, reply_markup=get_join_keyboard(link))
        except Exception as e:
            logger.warning(f"Could not send join prompt to {chat_id}: {e}")

    async def verify(self, user_id: int, chat_id: int) -> bool:
        """Check access for a user, prompting non-members to join.

        Returns:
            True if the user may use the bot
        """
        if user_id in self.admins or not self.enabled:
            return True

        cached = await self.cache.get(self._key(user_id))
        if cached is not None:
            return bool(cached)

        try:
            allowed = await self.is_member(user_id)
        except MembershipUnverifiable as e:
            logger.error(f"Force join check failed for {user_id}, letting through: {e.message}")
            return True

        await self.cache.set(
            self._key(user_id),
            allowed,
            self.member_ttl if allowed else self.nonmember_ttl,
        )

        if not allowed:
            logger.info(f"User {user_id} is not a member of {self.channel_id}")
            await self.send_prompt(chat_id)
        return allowed

    async def recheck(self, user_id: int, chat_id: int) -> bool:
        """Forget the cached verdict and verify again ('I have joined' button)."""
        await self.cache.delete(self._key(user_id))
        return await self.verify(user_id, chat_id)
