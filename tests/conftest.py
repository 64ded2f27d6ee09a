"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock

# Settings are instantiated on import, so the environment must be ready first
os.environ["BOT_TOKEN"] = "123456789:TEST-token"
os.environ["ADMIN_GROUP_ID"] = "-1001000000000"
os.environ["ADMIN_IDS"] = "1000"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from aiogram.exceptions import TelegramBadRequest  # noqa: E402
from aiogram.methods import SendMessage  # noqa: E402
from aiogram.types import (  # noqa: E402
    CallbackQuery,
    Chat,
    ForumTopic,
    Message,
    MessageId,
    User as TgUser,
)

from config.settings import Settings  # noqa: E402
from relaybot.database.manager import DatabaseManager  # noqa: E402
from relaybot.services.access_service import AccessService  # noqa: E402
from relaybot.services.admin_console_service import AdminConsoleService  # noqa: E402
from relaybot.services.backup_service import BackupService  # noqa: E402
from relaybot.services.config_service import ConfigService  # noqa: E402
from relaybot.services.filter_service import ContentFilterService  # noqa: E402
from relaybot.services.moderation_service import ModerationService  # noqa: E402
from relaybot.services.relay_service import RelayService  # noqa: E402
from relaybot.services.verification_service import VerificationService  # noqa: E402

ADMIN_GROUP_ID = -1001000000000
PRIMARY_ADMIN_ID = 1000
DELEGATED_ADMIN_ID = 2000
USER_ID = 555
TOPIC_ID = 77
BASE_DATE = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_user(user_id: int = USER_ID, is_bot: bool = False, **fields) -> TgUser:
    fields.setdefault("first_name", "Иван")
    fields.setdefault("last_name", "Петров")
    fields.setdefault("username", "ivan")
    return TgUser(id=user_id, is_bot=is_bot, **fields)


def make_message(
    text=None,
    *,
    user_id: int = USER_ID,
    chat_id=None,
    chat_type: str = "private",
    message_id: int = 1,
    date: datetime = BASE_DATE,
    from_user: TgUser = None,
    **fields,
) -> Message:
    """Real aiogram Message for a private chat (or any chat via chat_id/chat_type)."""
    return Message(
        message_id=message_id,
        date=date,
        chat=Chat(id=chat_id if chat_id is not None else user_id, type=chat_type),
        from_user=from_user or make_user(user_id),
        text=text,
        **fields,
    )


def make_topic_message(text=None, *, admin_id: int = PRIMARY_ADMIN_ID, thread_id: int = TOPIC_ID, **fields) -> Message:
    """Message posted by an admin inside a topic of the admin group."""
    return make_message(
        text,
        chat_id=ADMIN_GROUP_ID,
        chat_type="supergroup",
        from_user=make_user(admin_id, first_name="Админ", last_name=None, username=None),
        message_thread_id=thread_id,
        is_topic_message=True,
        **fields,
    )


def make_callback(data: str, *, user_id: int = PRIMARY_ADMIN_ID, message: Message = None) -> CallbackQuery:
    return CallbackQuery(
        id="cb-1",
        from_user=make_user(user_id),
        chat_instance="instance",
        data=data,
        message=message or make_message("menu", user_id=user_id, message_id=42),
    )


def api_error(message: str = "Bad Request: message thread not found") -> TelegramBadRequest:
    return TelegramBadRequest(method=SendMessage(chat_id=1, text="x"), message=message)


@pytest.fixture
def settings():
    return Settings(
        BOT_TOKEN="123456789:TEST-token",
        ADMIN_GROUP_ID=ADMIN_GROUP_ID,
        ADMIN_IDS=str(PRIMARY_ADMIN_ID),
        _env_file=None,
    )


@pytest_asyncio.fixture
async def db_manager():
    manager = DatabaseManager(":memory:")
    await manager.ensure_schema()
    yield manager
    await manager.close()


@pytest.fixture
def bot():
    """AsyncMock bot: every API call is recorded, nothing goes to the network."""
    mock_bot = AsyncMock()
    mock_bot.create_forum_topic.return_value = ForumTopic(
        message_thread_id=TOPIC_ID, name="topic", icon_color=7322096
    )
    mock_bot.copy_message.return_value = MessageId(message_id=900)
    return mock_bot


@pytest.fixture
def config_service(db_manager, settings):
    return ConfigService(db_manager, settings)


@pytest.fixture
def access_service(config_service, settings):
    return AccessService(config_service, settings)


@pytest.fixture
def console_service(config_service):
    return AdminConsoleService(config_service)


@pytest.fixture
def verification_service(db_manager, config_service):
    return VerificationService(db_manager, config_service)


@pytest.fixture
def filter_service(db_manager, config_service):
    return ContentFilterService(db_manager, config_service)


@pytest.fixture
def backup_service(bot, config_service):
    return BackupService(bot, config_service)


@pytest.fixture
def relay_service(bot, db_manager, settings, backup_service):
    return RelayService(bot, db_manager, settings, backup_service=backup_service)


@pytest.fixture
def moderation_service(bot, db_manager):
    return ModerationService(bot, db_manager)


@pytest.fixture
def services(
    bot,
    db_manager,
    access_service,
    config_service,
    console_service,
    verification_service,
    filter_service,
    relay_service,
):
    """Keyword arguments the private handlers receive from ServiceMiddleware."""
    return dict(
        bot=bot,
        db_manager=db_manager,
        access_service=access_service,
        config_service=config_service,
        console_service=console_service,
        verification_service=verification_service,
        filter_service=filter_service,
        relay_service=relay_service,
    )
