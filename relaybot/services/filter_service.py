"""Фильтрация входящих сообщений проверенных пользователей."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from aiogram.types import Message
from loguru import logger

from relaybot.database.manager import DatabaseManager
from relaybot.database.models.rules import AutoReplyRule
from relaybot.database.models.user import User
from relaybot.services.config_service import ConfigService


AUTO_REPLY_BANNER = "🤖 Это автоматический ответ\n\n"

LINK_ENTITY_TYPES = ("url", "text_link")


class FilterVerdict(str, Enum):
    PASS = "pass"
    KEYWORD_BLOCKED = "keyword_blocked"
    TYPE_FILTERED = "type_filtered"
    AUTO_REPLIED = "auto_replied"


@dataclass
class FilterResult:
    """Решение фильтра и уведомления, которые нужно отправить пользователю."""
    verdict: FilterVerdict
    notices: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def should_relay(self) -> bool:
        return self.verdict == FilterVerdict.PASS


def pattern_matches(pattern: str, text: str) -> Optional[bool]:
    """
    Проверяет текст регулярным выражением без учета регистра.
    Для некорректного выражения возвращает None.
    """
    try:
        return re.search(pattern, text, re.IGNORECASE) is not None
    except re.error as e:
        logger.warning(f"⚠️ Некорректное регулярное выражение {pattern!r} пропущено: {e}")
        return None


def has_links(message: Message) -> bool:
    entities = message.entities or message.caption_entities or []
    return any(entity.type in LINK_ENTITY_TYPES for entity in entities)


def is_forwarded(message: Message) -> bool:
    return message.forward_origin is not None


def is_channel_forward(message: Message) -> bool:
    return message.forward_origin is not None and message.forward_origin.type == "channel"


def has_media(message: Message) -> bool:
    return any((
        message.photo, message.video, message.document, message.sticker,
        message.audio, message.voice, message.animation,
    ))


class ContentFilterService:
    """
    Последовательные проверки сообщения проверенного пользователя:
    запрещенные слова -> тип контента -> автоответ. Первое сработавшее
    правило останавливает обработку.
    """

    def __init__(self, db_manager: DatabaseManager, config_service: ConfigService):
        self.db_manager = db_manager
        self.config_service = config_service

    async def apply(self, message: Message, user: User) -> FilterResult:
        text = message.text or message.caption or ""

        blocked = await self.check_block_keywords(user, text)
        if blocked:
            return blocked

        reason = await self.get_filter_reason(message)
        if reason:
            logger.info(f"🚫 Сообщение {message.message_id} от {user.user_id} отфильтровано: {reason}")
            return FilterResult(
                FilterVerdict.TYPE_FILTERED,
                [f"🚫 Это сообщение отфильтровано: {reason}. По настройкам такой контент не пересылается."],
                reason=reason,
            )

        rule = await self.match_auto_reply(text)
        if rule:
            logger.info(f"🤖 Автоответ по правилу {rule.id} для пользователя {user.user_id}")
            return FilterResult(FilterVerdict.AUTO_REPLIED, [AUTO_REPLY_BANNER + rule.response])

        return FilterResult(FilterVerdict.PASS)

    async def check_block_keywords(self, user: User, text: str) -> Optional[FilterResult]:
        """
        Ищет первое совпадение с запрещенными словами. При совпадении
        увеличивает счетчик и блокирует пользователя по достижении порога.
        """
        if not text:
            return None

        keywords = await self.config_service.get_block_keywords()
        if not keywords:
            return None

        for keyword in keywords:
            if not pattern_matches(keyword, text):
                continue

            threshold = await self.config_service.get_block_threshold()
            user.block_count += 1
            await self.db_manager.users.update(user.user_id, block_count=user.block_count)

            notices = [
                f"⚠️ Ваше сообщение содержит запрещенное слово ({user.block_count}/{threshold}). "
                "Сообщение отброшено и не будет доставлено."
            ]
            if user.block_count >= threshold:
                user.is_blocked = True
                await self.db_manager.users.update(user.user_id, is_blocked=True)
                notices.append(
                    "❌ Вы многократно отправляли запрещенные слова и были автоматически заблокированы. "
                    "Бот больше не принимает ваши сообщения."
                )
                logger.warning(f"🚫 Пользователь {user.user_id} заблокирован автоматически ({user.block_count}/{threshold})")
            else:
                logger.info(f"⚠️ Запрещенное слово от {user.user_id}: {user.block_count}/{threshold}")

            return FilterResult(FilterVerdict.KEYWORD_BLOCKED, notices, reason=keyword)

        return None

    async def get_filter_reason(self, message: Message) -> Optional[str]:
        """Причина отказа по типу контента или None, если пересылка разрешена."""
        reason = ""

        if is_forwarded(message):
            if not await self.config_service.get_flag("enable_forward_forwarding"):
                reason = "пересланное сообщение (от пользователя/группы/канала)"
            elif is_channel_forward(message) and not await self.config_service.get_flag("enable_channel_forwarding"):
                reason = "пересланное из канала сообщение"
        elif message.audio or message.voice:
            if not await self.config_service.get_flag("enable_audio_forwarding"):
                reason = "аудио или голосовое сообщение"
        elif message.sticker or message.animation:
            if not await self.config_service.get_flag("enable_sticker_forwarding"):
                reason = "стикер или GIF"
        elif message.photo or message.video or message.document:
            if not await self.config_service.get_flag("enable_image_forwarding"):
                reason = "медиа (фото/видео/файл)"

        if has_links(message) and not await self.config_service.get_flag("enable_link_forwarding"):
            reason = f"{reason} (и содержит ссылку)" if reason else "содержимое со ссылкой"

        if not reason and message.text and not has_media(message) and not is_forwarded(message):
            if not await self.config_service.get_flag("enable_text_forwarding"):
                reason = "обычный текст"

        return reason or None

    async def match_auto_reply(self, text: str) -> Optional[AutoReplyRule]:
        if not text:
            return None
        for rule in await self.config_service.get_auto_reply_rules():
            if pattern_matches(rule.keywords, text):
                return rule
        return None
