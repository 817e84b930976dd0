"""Tests for update middlewares."""

import pytest
from sqlalchemy import select

from core.database import get_session
from core.middleware import (
    LoggingMiddleware,
    MembershipMiddleware,
    RateLimitMiddleware,
    UserTrackingMiddleware,
)
from modules.accounts.models import UserRecord
from modules.membership.service import MembershipGate
from tests.conftest import ADMIN_ID, FakeBot, FakeCallback, FakeMessage, callback_update, message_update


class Recorder:
    """Innermost handler counting how often it was reached."""

    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    async def __call__(self, event, data):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return "handled"


@pytest.fixture
def non_member_bot():
    return FakeBot(member_status="left")


@pytest.fixture
def gate(non_member_bot, cache, admins):
    return MembershipGate(non_member_bot, cache, admins, "@catalog_news")


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/stats", "/broadcast hi", "/delete F0001", "/help", "/myaccount"])
async def test_membership_passes_commands_without_prompt(text, gate, non_member_bot):
    handler = Recorder()

    await MembershipMiddleware()(handler, message_update(FakeMessage(text)), {"gate": gate})

    assert handler.calls == 1
    assert non_member_bot.calls == []


@pytest.mark.asyncio
async def test_membership_blocks_and_prompts_non_member(gate, non_member_bot):
    handler = Recorder()

    result = await MembershipMiddleware()(handler, message_update(FakeMessage("iron man")), {"gate": gate})

    assert result is None
    assert handler.calls == 0
    assert len(non_member_bot.sent("send_message")) == 1


@pytest.mark.asyncio
async def test_membership_blocks_callback_with_alert(gate):
    handler = Recorder()
    callback = FakeCallback("GET:F0001")

    await MembershipMiddleware()(handler, callback_update(callback), {"gate": gate})

    assert handler.calls == 0
    assert callback.answers == [("⚠️ You must join the channel first!", True)]


@pytest.mark.asyncio
async def test_membership_lets_admin_through(gate, non_member_bot):
    handler = Recorder()

    await MembershipMiddleware()(handler, message_update(FakeMessage("iron", user_id=ADMIN_ID)), {"gate": gate})

    assert handler.calls == 1
    assert non_member_bot.calls == []


@pytest.mark.asyncio
async def test_membership_without_gate_passes():
    handler = Recorder()

    await MembershipMiddleware()(handler, message_update(FakeMessage("iron")), {})

    assert handler.calls == 1


@pytest.mark.asyncio
async def test_user_tracking_upserts_every_update(db):
    handler = Recorder()
    middleware = UserTrackingMiddleware()

    await middleware(handler, message_update(FakeMessage("hi", first_name="Ann")), {})
    await middleware(handler, message_update(FakeMessage("hi", first_name="Anna", username=None)), {})

    assert handler.calls == 2
    async with get_session() as session:
        result = await session.execute(select(UserRecord.first_name, UserRecord.handle))
        rows = result.all()
    assert [tuple(row) for row in rows] == [("Anna", None)]


@pytest.mark.asyncio
async def test_rate_limit_rejects_burst():
    handler = Recorder()
    middleware = RateLimitMiddleware(rate_limit=2)
    messages = [FakeMessage("hi") for _ in range(3)]

    for message in messages:
        await middleware(handler, message_update(message), {})

    assert handler.calls == 2
    assert messages[2].answers == ["⚠️ Too many requests. Please wait a moment."]


@pytest.mark.asyncio
async def test_logging_answers_failed_callback_and_reraises():
    callback = FakeCallback("GET:F0001")

    with pytest.raises(RuntimeError):
        await LoggingMiddleware()(Recorder(error=RuntimeError("boom")), callback_update(callback), {})

    assert callback.answers == [("Error occurred", False)]
