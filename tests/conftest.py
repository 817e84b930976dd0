"""Shared pytest fixtures: in-memory database, cache and a recording bot."""

from types import SimpleNamespace

import pytest
import pytest_asyncio

from core.cache import MemoryCache
from core.database import init_database, create_tables, close_database, get_session
from core.tasks import cancel_pending_tasks

# Register tables on Base.metadata
import modules.catalog.models  # noqa: F401
import modules.accounts.models  # noqa: F401

ADMIN_ID = 1000
USER_ID = 2000


class FakeClock:
    """Manually advanced monotonic clock for cache TTL tests."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBot:
    """Records Bot API calls instead of talking to Telegram.

    `failures` maps a chat id to the exception raised when sending to it.
    """

    def __init__(self, member_status="member", member_error=None, failures=None):
        self.member_status = member_status
        self.member_error = member_error
        self.failures = failures or {}
        self.calls = []
        self._message_id = 0

    def _sent(self, method: str, chat_id, **kwargs):
        self.calls.append((method, chat_id, kwargs))
        if chat_id in self.failures:
            raise self.failures[chat_id]
        self._message_id += 1
        return SimpleNamespace(message_id=self._message_id, chat=SimpleNamespace(id=chat_id))

    def sent(self, method: str):
        return [call for call in self.calls if call[0] == method]

    async def send_message(self, chat_id, text, **kwargs):
        return self._sent("send_message", chat_id, text=text, **kwargs)

    async def copy_message(self, chat_id, from_chat_id, message_id, **kwargs):
        return self._sent("copy_message", chat_id, from_chat_id=from_chat_id, message_id=message_id)

    async def send_video(self, chat_id, video, **kwargs):
        return self._sent("send_video", chat_id, file=video, **kwargs)

    async def send_document(self, chat_id, document, **kwargs):
        return self._sent("send_document", chat_id, file=document, **kwargs)

    async def delete_message(self, chat_id, message_id):
        self.calls.append(("delete_message", chat_id, {"message_id": message_id}))
        return True

    async def get_chat_member(self, chat_id, user_id):
        self.calls.append(("get_chat_member", chat_id, {"user_id": user_id}))
        if self.member_error is not None:
            raise self.member_error
        return SimpleNamespace(status=self.member_status)

    async def export_chat_invite_link(self, chat_id):
        self.calls.append(("export_chat_invite_link", chat_id, {}))
        return "https://t.me/+invite"


class FakeMessage:
    """Incoming message stand-in recording answers and edits."""

    def __init__(self, text=None, user_id=USER_ID, chat_id=None, message_id=1, reply_to_message=None,
                 first_name="Ann", username="ann"):
        self.text = text
        self.message_id = message_id
        self.from_user = SimpleNamespace(id=user_id, first_name=first_name, username=username, is_bot=False)
        self.chat = SimpleNamespace(id=chat_id if chat_id is not None else user_id)
        self.reply_to_message = reply_to_message
        self.answers = []
        self.edits = []
        self._next_id = 100

    async def answer(self, text, **kwargs):
        self.answers.append(text)
        self._next_id += 1
        return SimpleNamespace(message_id=self._next_id, chat=self.chat, edit_text=self.edit_text)

    async def edit_text(self, text, **kwargs):
        self.edits.append(text)


class FakeCallback:
    """Callback query stand-in; `message` is None for inaccessible messages."""

    def __init__(self, data, user_id=USER_ID, message=...):
        self.data = data
        self.from_user = SimpleNamespace(id=user_id, first_name="Ann", username="ann", is_bot=False)
        self.message = FakeMessage(user_id=user_id) if message is ... else message
        self.answers = []

    async def answer(self, text=None, show_alert=False, **kwargs):
        self.answers.append((text, show_alert))


def message_update(message):
    return SimpleNamespace(message=message, callback_query=None)


def callback_update(callback):
    return SimpleNamespace(message=None, callback_query=callback)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database for each test."""
    init_database("sqlite+aiosqlite://")
    await create_tables()
    yield
    await cancel_pending_tasks()
    await close_database()


@pytest_asyncio.fixture
async def session(db):
    async with get_session() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock(start=1000.0)


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


@pytest.fixture
def fake_bot():
    return FakeBot()


@pytest.fixture
def admins():
    return frozenset({ADMIN_ID})


@pytest.fixture
def settings():
    return SimpleNamespace(
        DAILY_LIMIT=100,
        PENDING_TTL=600,
        MAX_FAVORITES=50,
        BROADCAST_DELAY=0,
    )
