"""Tests for RelayService."""

from datetime import timedelta

import pytest
import pytest_asyncio
from aiogram.types import ForumTopic, MessageEntity, MessageId, PhotoSize

from relaybot.services.relay_service import (
    ORIGINAL_TEXT_PLACEHOLDER,
    RELAY_FAILED_TEXT,
    TOPIC_CREATE_FAILED_TEXT,
    TOPIC_RECREATE_FAILED_TEXT,
    UNSUPPORTED_CONTENT_TEXT,
)
from relaybot.utils.formatting import to_timestamp
from tests.conftest import (
    ADMIN_GROUP_ID,
    BASE_DATE,
    TOPIC_ID,
    USER_ID,
    api_error,
    make_message,
    make_topic_message,
)


@pytest_asyncio.fixture
async def user(db_manager):
    return await db_manager.users.get_or_create(str(USER_ID))


@pytest_asyncio.fixture
async def linked_user(db_manager):
    """Пользователь, у которого уже есть тема."""
    await db_manager.users.get_or_create(str(USER_ID))
    await db_manager.users.update(str(USER_ID), topic_id=str(TOPIC_ID))
    return await db_manager.users.get_or_create(str(USER_ID))


@pytest.mark.unit
class TestRelayToTopic:
    @pytest.mark.asyncio
    async def test_first_message_creates_topic(self, relay_service, bot, db_manager, user):
        message = make_message("Здравствуйте", message_id=10)

        assert await relay_service.relay_to_topic(message, user) is True

        bot.create_forum_topic.assert_awaited_once_with(chat_id=ADMIN_GROUP_ID, name="Иван Петров | 555")
        card = bot.send_message.await_args_list[0].kwargs
        assert card["message_thread_id"] == TOPIC_ID
        assert "Карточка пользователя" in card["text"]
        assert card["reply_markup"].inline_keyboard[0][0].callback_data == f"block:{USER_ID}"
        bot.copy_message.assert_awaited_once_with(
            chat_id=ADMIN_GROUP_ID,
            message_thread_id=TOPIC_ID,
            from_chat_id=USER_ID,
            message_id=10,
            disable_notification=False,
        )

        stored = await db_manager.users.get_or_create(str(USER_ID))
        assert stored.topic_id == str(TOPIC_ID)
        assert stored.info.name == "Иван Петров"
        assert stored.info.username == "@ivan"
        assert stored.info.first_contact == to_timestamp(BASE_DATE)
        assert await db_manager.users.get_by_topic(str(TOPIC_ID)) == str(USER_ID)

        snapshot = await db_manager.messages.get(str(USER_ID), 10)
        assert snapshot.text == "Здравствуйте"
        assert snapshot.date == to_timestamp(BASE_DATE)

    @pytest.mark.asyncio
    async def test_existing_topic_is_reused(self, relay_service, bot, linked_user):
        await relay_service.relay_to_topic(make_message("второе"), linked_user)

        bot.create_forum_topic.assert_not_called()
        bot.copy_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_topic_creation_resets_block_count(self, relay_service, db_manager, user):
        await db_manager.users.update(str(USER_ID), block_count=3)
        user.block_count = 3

        await relay_service.relay_to_topic(make_message("hi"), user)

        assert (await db_manager.users.get_or_create(str(USER_ID))).block_count == 0

    @pytest.mark.asyncio
    async def test_topic_create_failure_apologizes(self, relay_service, bot, user):
        bot.create_forum_topic.side_effect = api_error("Bad Request: not enough rights")

        assert await relay_service.relay_to_topic(make_message("hi"), user) is False

        bot.send_message.assert_awaited_once_with(chat_id=str(USER_ID), text=TOPIC_CREATE_FAILED_TEXT)
        bot.copy_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_deleted_topic_is_recreated(self, relay_service, bot, db_manager, linked_user):
        bot.create_forum_topic.return_value = ForumTopic(message_thread_id=88, name="t", icon_color=7322096)
        bot.copy_message.side_effect = [api_error(), MessageId(message_id=901)]

        assert await relay_service.relay_to_topic(make_message("hi", message_id=11), linked_user) is True

        bot.create_forum_topic.assert_awaited_once()
        assert bot.copy_message.await_count == 2
        assert bot.copy_message.await_args_list[1].kwargs["message_thread_id"] == 88
        assert (await db_manager.users.get_or_create(str(USER_ID))).topic_id == "88"
        assert await db_manager.users.get_by_topic(str(TOPIC_ID)) is None
        assert await db_manager.messages.get(str(USER_ID), 11) is not None

    @pytest.mark.asyncio
    async def test_recreate_failure_apologizes(self, relay_service, bot, linked_user):
        bot.copy_message.side_effect = api_error()
        bot.create_forum_topic.side_effect = api_error("Bad Request: not enough rights")

        assert await relay_service.relay_to_topic(make_message("hi"), linked_user) is False

        bot.send_message.assert_awaited_once_with(chat_id=str(USER_ID), text=TOPIC_RECREATE_FAILED_TEXT)

    @pytest.mark.asyncio
    async def test_second_copy_failure_apologizes(self, relay_service, bot, db_manager, linked_user):
        bot.copy_message.side_effect = api_error()

        assert await relay_service.relay_to_topic(make_message("hi", message_id=12), linked_user) is False

        assert bot.copy_message.await_count == 2
        bot.send_message.assert_any_await(chat_id=str(USER_ID), text=RELAY_FAILED_TEXT)
        assert await db_manager.messages.get(str(USER_ID), 12) is None

    @pytest.mark.asyncio
    async def test_mirrors_to_backup_group(self, relay_service, bot, config_service, linked_user):
        await config_service.put("backup_group_id", "-1009999")

        await relay_service.relay_to_topic(make_message("<b>hi</b>"), linked_user)

        backup_call = bot.send_message.await_args_list[-1].kwargs
        assert backup_call["chat_id"] == "-1009999"
        assert backup_call["disable_notification"] is True
        assert "&lt;b&gt;hi&lt;/b&gt;" in backup_call["text"]

    @pytest.mark.asyncio
    async def test_media_without_caption_has_no_snapshot(self, relay_service, db_manager, linked_user):
        photo = [PhotoSize(file_id="p", file_unique_id="pu", width=1, height=1)]

        await relay_service.relay_to_topic(make_message(None, message_id=13, photo=photo), linked_user)

        assert await db_manager.messages.get(str(USER_ID), 13) is None


@pytest.mark.unit
class TestRelayToUser:
    @pytest.mark.asyncio
    async def test_text_reply_keeps_entities(self, relay_service, bot, db_manager, linked_user):
        entities = [MessageEntity(type="bold", offset=0, length=6)]
        message = make_topic_message("Ответ <тест>", message_id=300, entities=entities)

        await relay_service.relay_to_user(message)

        bot.send_message.assert_awaited_once_with(
            chat_id=str(USER_ID), text="Ответ <тест>", entities=entities, parse_mode=None
        )
        snapshot = await db_manager.messages.get(str(USER_ID), 300)
        assert snapshot.text == "Ответ <тест>"

    @pytest.mark.asyncio
    async def test_photo_reply_with_caption(self, relay_service, bot, db_manager, linked_user):
        photo = [
            PhotoSize(file_id="small", file_unique_id="s", width=90, height=90),
            PhotoSize(file_id="large", file_unique_id="l", width=800, height=800),
        ]
        message = make_topic_message(None, message_id=301, photo=photo, caption="see this")

        await relay_service.relay_to_user(message)

        bot.send_photo.assert_awaited_once_with(
            chat_id=str(USER_ID), photo="large", caption="see this", caption_entities=None, parse_mode=None
        )
        assert (await db_manager.messages.get(str(USER_ID), 301)).text == "see this"

    @pytest.mark.asyncio
    async def test_unknown_topic_posts_diagnostic(self, relay_service, bot, db_manager):
        await relay_service.relay_to_user(make_topic_message("hello", thread_id=999))

        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["chat_id"] == ADMIN_GROUP_ID
        assert kwargs["message_thread_id"] == 999
        assert "Не найден пользователь" in kwargs["text"]

    @pytest.mark.asyncio
    async def test_unsupported_content_notifies_user(self, relay_service, bot, linked_user):
        await relay_service.relay_to_user(make_topic_message(None))

        bot.send_message.assert_awaited_once_with(chat_id=str(USER_ID), text=UNSUPPORTED_CONTENT_TEXT)

    @pytest.mark.asyncio
    async def test_delivery_failure_reported_and_snapshot_kept(self, relay_service, bot, db_manager, linked_user):
        bot.send_message.side_effect = [api_error("Forbidden: bot was blocked by the user"), None]

        await relay_service.relay_to_user(make_topic_message("hello", message_id=302))

        report = bot.send_message.await_args_list[1].kwargs
        assert report["message_thread_id"] == TOPIC_ID
        assert "Не удалось переслать" in report["text"]
        assert (await db_manager.messages.get(str(USER_ID), 302)).text == "hello"


@pytest.mark.unit
class TestEdits:
    @pytest.mark.asyncio
    async def test_user_edit_reports_previous_text(self, relay_service, bot, db_manager, linked_user):
        await db_manager.messages.put(str(USER_ID), 20, "первый", to_timestamp(BASE_DATE))

        await relay_service.on_user_edit(make_message("второй", message_id=20, date=BASE_DATE + timedelta(minutes=1)))
        await relay_service.on_user_edit(make_message("третий", message_id=20, date=BASE_DATE + timedelta(minutes=2)))

        first, second = [call.kwargs["text"] for call in bot.send_message.await_args_list]
        assert "первый" in first and "второй" in first
        assert "второй" in second and "третий" in second
        assert "первый" not in second
        snapshot = await db_manager.messages.get(str(USER_ID), 20)
        assert snapshot.text == "третий"
        assert snapshot.date == to_timestamp(BASE_DATE + timedelta(minutes=2))

    @pytest.mark.asyncio
    async def test_user_edit_without_snapshot_uses_placeholder(self, relay_service, bot, db_manager, linked_user):
        await relay_service.on_user_edit(make_message("новый", message_id=21))

        assert ORIGINAL_TEXT_PLACEHOLDER in bot.send_message.await_args.kwargs["text"]
        assert await db_manager.messages.get(str(USER_ID), 21) is None

    @pytest.mark.asyncio
    async def test_user_edit_ignored_for_blocked_user(self, relay_service, bot, db_manager, linked_user):
        await db_manager.users.update(str(USER_ID), is_blocked=True)

        await relay_service.on_user_edit(make_message("новый", message_id=21))

        bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_user_edit_ignored_without_topic(self, relay_service, bot, user):
        await relay_service.on_user_edit(make_message("новый", message_id=21))

        bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_edit_notifies_user(self, relay_service, bot, db_manager, linked_user):
        await db_manager.messages.put(str(USER_ID), 300, "old answer", to_timestamp(BASE_DATE))
        edit_date = BASE_DATE + timedelta(minutes=5)

        await relay_service.on_admin_edit(make_topic_message("new <answer>", message_id=300, edit_date=to_timestamp(edit_date)))

        kwargs = bot.send_message.await_args.kwargs
        assert kwargs["chat_id"] == str(USER_ID)
        assert "old answer" in kwargs["text"]
        assert "new &lt;answer&gt;" in kwargs["text"]
        snapshot = await db_manager.messages.get(str(USER_ID), 300)
        assert snapshot.text == "new <answer>"
        assert snapshot.date == to_timestamp(edit_date)

    @pytest.mark.asyncio
    async def test_admin_edit_failure_keeps_snapshot(self, relay_service, bot, db_manager, linked_user):
        await db_manager.messages.put(str(USER_ID), 300, "old answer", to_timestamp(BASE_DATE))
        bot.send_message.side_effect = api_error("Forbidden: bot was blocked by the user")

        await relay_service.on_admin_edit(make_topic_message("new", message_id=300))

        assert (await db_manager.messages.get(str(USER_ID), 300)).text == "old answer"

    @pytest.mark.asyncio
    async def test_admin_edit_in_unknown_topic_is_ignored(self, relay_service, bot):
        await relay_service.on_admin_edit(make_topic_message("new", thread_id=999))

        bot.send_message.assert_not_called()
