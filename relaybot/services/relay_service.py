"""Пересылка сообщений между личными чатами и темами группы администраторов."""

from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import Message
from loguru import logger

from relaybot.database.manager import DatabaseManager
from relaybot.database.models.user import User, UserInfo
from relaybot.services.backup_service import BackupService
from relaybot.utils.formatting import (
    build_info_card,
    build_topic_name,
    escape_html,
    format_timestamp,
    to_timestamp,
)
from relaybot.utils.keyboards import get_card_keyboard
from config.settings import Settings


TOPIC_CREATE_FAILED_TEXT = "😔 Извините, не удалось создать чат с поддержкой. Попробуйте позже."
TOPIC_RECREATE_FAILED_TEXT = "😔 Извините, не удалось создать новый чат с поддержкой. Попробуйте позже."
RELAY_FAILED_TEXT = "😔 Извините, сообщение не удалось переслать. Попробуйте позже или свяжитесь с администратором."
UNSUPPORTED_CONTENT_TEXT = "ℹ️ Администратор отправил содержимое, которое бот не может переслать (например, опрос или особый тип медиа)."

ORIGINAL_TEXT_PLACEHOLDER = "[исходный текст недоступен или это не текст]"
ORIGINAL_DATE_PLACEHOLDER = "[время отправки неизвестно]"
NEW_CONTENT_PLACEHOLDER = "[нетекстовое содержимое]"


def message_content(message: Message) -> Optional[str]:
    return message.text or message.caption


class RelayService:
    """
    Маршрутизация сообщений: пользователь -> тема, тема -> пользователь,
    а также уведомления о редактировании с обеих сторон.
    """

    def __init__(
        self,
        bot: Bot,
        db_manager: DatabaseManager,
        settings: Settings,
        backup_service: Optional[BackupService] = None,
    ):
        self.bot = bot
        self.db_manager = db_manager
        self.settings = settings
        self.backup_service = backup_service

    @property
    def admin_group_id(self) -> int:
        return self.settings.ADMIN_GROUP_ID

    # Пользователь -> тема

    async def relay_to_topic(self, message: Message, user: User) -> bool:
        """
        Копирует сообщение пользователя в его тему, при необходимости создавая ее.
        Если копирование не удалось, тема пересоздается один раз.
        """
        if not user.topic_id:
            try:
                await self._create_topic(message, user)
            except TelegramAPIError as e:
                logger.error(f"❌ Не удалось создать тему для пользователя {user.user_id}: {e}")
                await self._notify_user(user.user_id, TOPIC_CREATE_FAILED_TEXT)
                return False

        try:
            await self._copy_to_topic(message, user)
        except TelegramAPIError as e:
            logger.warning(f"⚠️ Не удалось скопировать сообщение в тему {user.topic_id}, пересоздаем: {e}")
            user.topic_id = None
            await self.db_manager.users.update(user.user_id, topic_id=None)

            try:
                await self._create_topic(message, user)
            except TelegramAPIError as create_error:
                logger.error(f"❌ Не удалось пересоздать тему для пользователя {user.user_id}: {create_error}")
                await self._notify_user(user.user_id, TOPIC_RECREATE_FAILED_TEXT)
                return False

            try:
                await self._copy_to_topic(message, user)
            except TelegramAPIError as retry_error:
                logger.error(f"❌ Повторное копирование в новую тему тоже не удалось: {retry_error}")
                await self._notify_user(user.user_id, RELAY_FAILED_TEXT)
                return False

        if message_content(message):
            await self.db_manager.messages.put(
                user.user_id, message.message_id, message_content(message), to_timestamp(message.date)
            )

        if self.backup_service:
            await self.backup_service.mirror(message)

        return True

    async def _create_topic(self, message: Message, user: User) -> str:
        """Создает тему, сохраняет профиль и публикует карточку пользователя."""
        topic = await self.bot.create_forum_topic(
            chat_id=self.admin_group_id,
            name=build_topic_name(message.from_user),
        )
        topic_id = str(topic.message_thread_id)
        first_contact = to_timestamp(message.date)
        info = UserInfo.from_aiogram(message.from_user, first_contact)

        await self.db_manager.users.update(user.user_id, topic_id=topic_id, info=info, block_count=0)
        user.topic_id = topic_id
        user.info = info
        user.block_count = 0
        logger.info(f"🧵 Создана тема {topic_id} для пользователя {user.user_id}")

        await self.bot.send_message(
            chat_id=self.admin_group_id,
            message_thread_id=int(topic_id),
            text=build_info_card(message.from_user, first_contact),
            parse_mode="HTML",
            reply_markup=get_card_keyboard(user.user_id, user.is_blocked),
        )
        return topic_id

    async def _copy_to_topic(self, message: Message, user: User) -> None:
        await self.bot.copy_message(
            chat_id=self.admin_group_id,
            message_thread_id=int(user.topic_id),
            from_chat_id=message.chat.id,
            message_id=message.message_id,
            disable_notification=user.is_blocked,
        )

    async def _notify_user(self, user_id: str, text: str) -> None:
        try:
            await self.bot.send_message(chat_id=user_id, text=text)
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось отправить уведомление пользователю {user_id}: {e}")

    async def _notify_topic(self, topic_id: str, text: str) -> None:
        try:
            await self.bot.send_message(
                chat_id=self.admin_group_id,
                message_thread_id=int(topic_id),
                text=text,
                parse_mode="HTML",
            )
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось отправить сообщение в тему {topic_id}: {e}")

    # Тема -> пользователь

    async def relay_to_user(self, message: Message) -> None:
        """
        Доставляет ответ администратора из темы пользователю.
        Снимок сохраняется независимо от результата отправки.
        """
        topic_id = str(message.message_thread_id)
        user_id = await self.db_manager.users.get_by_topic(topic_id)
        if not user_id:
            logger.warning(f"⚠️ Для темы {topic_id} не найден пользователь")
            await self._notify_topic(topic_id, "❌ Не найден пользователь, связанный с этой темой. Сообщение не переслано.")
            return

        try:
            await self._send_admin_content(user_id, message)
            logger.info(f"📨 Ответ из темы {topic_id} доставлен пользователю {user_id}")
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось доставить ответ пользователю {user_id}: {e}")
            await self._notify_topic(topic_id, f"❌ Не удалось переслать сообщение пользователю {user_id}: {escape_html(str(e))}")

        if message_content(message):
            await self.db_manager.messages.put(
                user_id, message.message_id, message_content(message), to_timestamp(message.date)
            )

    async def _send_admin_content(self, user_id: str, message: Message) -> None:
        caption = dict(caption=message.caption, caption_entities=message.caption_entities, parse_mode=None)

        if message.text:
            await self.bot.send_message(
                chat_id=user_id, text=message.text, entities=message.entities, parse_mode=None
            )
        elif message.photo:
            await self.bot.send_photo(chat_id=user_id, photo=message.photo[-1].file_id, **caption)
        elif message.video:
            await self.bot.send_video(chat_id=user_id, video=message.video.file_id, **caption)
        elif message.audio:
            await self.bot.send_audio(chat_id=user_id, audio=message.audio.file_id, **caption)
        elif message.voice:
            await self.bot.send_voice(chat_id=user_id, voice=message.voice.file_id, **caption)
        elif message.sticker:
            await self.bot.send_sticker(chat_id=user_id, sticker=message.sticker.file_id)
        elif message.animation:
            await self.bot.send_animation(chat_id=user_id, animation=message.animation.file_id, **caption)
        else:
            await self.bot.send_message(chat_id=user_id, text=UNSUPPORTED_CONTENT_TEXT)

    # Редактирования

    async def on_user_edit(self, edited: Message) -> None:
        """Сообщает в тему, что пользователь изменил сообщение."""
        user = await self.db_manager.users.get_or_create(str(edited.from_user.id))
        if user.is_blocked or not user.topic_id:
            return

        original_text = ORIGINAL_TEXT_PLACEHOLDER
        original_date = ORIGINAL_DATE_PLACEHOLDER
        snapshot = await self.db_manager.messages.get(user.user_id, edited.message_id)
        if snapshot:
            original_text = snapshot.text or ORIGINAL_TEXT_PLACEHOLDER
            original_date = format_timestamp(snapshot.date)
            await self.db_manager.messages.put(
                user.user_id, edited.message_id, message_content(edited) or "", to_timestamp(edited.date)
            )

        text = (
            "⚠️ <b>Пользователь изменил сообщение</b>\n"
            f"<b>Время отправки оригинала:</b> <code>{original_date}</code>\n"
            f"<b>Исходный текст:</b> <code>{escape_html(original_text)}</code>\n"
            "<b>Новый текст:</b>\n"
            f"{escape_html(message_content(edited) or NEW_CONTENT_PLACEHOLDER)}"
        )
        await self._notify_topic(user.topic_id, text)

    async def on_admin_edit(self, edited: Message) -> None:
        """Сообщает пользователю, что администратор изменил ответ в теме."""
        user_id = await self.db_manager.users.get_by_topic(str(edited.message_thread_id))
        if not user_id:
            return

        snapshot = await self.db_manager.messages.get(user_id, edited.message_id)
        original_text = (snapshot.text if snapshot else None) or ORIGINAL_TEXT_PLACEHOLDER
        original_time = format_timestamp(snapshot.date) if snapshot else ORIGINAL_DATE_PLACEHOLDER
        edit_date = to_timestamp(edited.edit_date or edited.date)
        new_text = message_content(edited)

        text = (
            "⚠️ <b>Администратор изменил ответ</b>\n"
            "---\n"
            f"<b>Отправлено / прошлая правка:</b> <code>{original_time}</code>\n"
            f"<b>Время правки:</b> <code>{format_timestamp(edit_date)}</code>\n"
            "<b>Прежний текст:</b>\n"
            f"{escape_html(original_text)}\n"
            "<b>Новый текст:</b>\n"
            f"{escape_html(new_text or NEW_CONTENT_PLACEHOLDER)}"
        )
        try:
            await self.bot.send_message(chat_id=user_id, text=text, parse_mode="HTML")
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось уведомить пользователя {user_id} о правке: {e}")
            return

        await self.db_manager.messages.put(user_id, edited.message_id, new_text, edit_date)
