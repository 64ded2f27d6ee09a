"""Зеркалирование сообщений пользователей в резервную группу."""

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import Message
from loguru import logger

from relaybot.services.config_service import ConfigService
from relaybot.utils.formatting import build_backup_header, escape_html


class BackupService:
    """
    Копирует сообщения пользователей в резервную группу, если она задана.
    Ошибки только логируются: основная пересылка от них не зависит.
    """

    def __init__(self, bot: Bot, config_service: ConfigService):
        self.bot = bot
        self.config_service = config_service

    async def mirror(self, message: Message) -> None:
        backup_group_id = await self.config_service.get_backup_group_id()
        if not backup_group_id:
            return

        header = build_backup_header(message.from_user)
        try:
            if message.text:
                await self.bot.send_message(
                    chat_id=backup_group_id,
                    text=f"{header}\n\n{escape_html(message.text)}",
                    parse_mode="HTML",
                    disable_notification=True,
                )
            elif not (message.caption and await self._send_media_with_caption(backup_group_id, message, header)):
                await self.bot.send_message(
                    chat_id=backup_group_id,
                    text=header,
                    parse_mode="HTML",
                    disable_notification=True,
                )
                await self.bot.copy_message(
                    chat_id=backup_group_id,
                    from_chat_id=message.chat.id,
                    message_id=message.message_id,
                    disable_notification=True,
                )
            logger.debug(f"💾 Сообщение {message.message_id} скопировано в резервную группу {backup_group_id}")
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось скопировать сообщение {message.message_id} в резервную группу: {e}")

    async def _send_media_with_caption(self, chat_id: str, message: Message, header: str) -> bool:
        """Отправляет медиа одним сообщением с заголовком в подписи. False - тип не поддерживается."""
        caption = f"{header}\n\n{escape_html(message.caption)}"
        params = dict(chat_id=chat_id, caption=caption, parse_mode="HTML", disable_notification=True)

        if message.photo:
            await self.bot.send_photo(photo=message.photo[-1].file_id, **params)
        elif message.video:
            await self.bot.send_video(video=message.video.file_id, **params)
        elif message.animation:
            await self.bot.send_animation(animation=message.animation.file_id, **params)
        elif message.document:
            await self.bot.send_document(document=message.document.file_id, **params)
        elif message.audio:
            await self.bot.send_audio(audio=message.audio.file_id, **params)
        elif message.voice:
            await self.bot.send_voice(voice=message.voice.file_id, **params)
        else:
            return False
        return True
