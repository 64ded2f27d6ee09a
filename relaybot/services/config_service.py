"""Сервис чтения настроек: БД -> переменные окружения -> значение по умолчанию."""

import json
import time
from typing import Any, Awaitable, Callable, List, Optional

from loguru import logger
from pydantic import ValidationError

from relaybot.database.manager import DatabaseManager
from relaybot.database.models.rules import AutoReplyRule
from config.settings import Settings


# Явная таблица соответствия ключа config и переменной окружения.
# Ключи, которых здесь нет, в окружении не ищутся.
ENV_KEY_MAP = {
    "welcome_msg": "WELCOME_MESSAGE",
    "verif_q": "VERIFICATION_QUESTION",
    "verif_a": "VERIFICATION_ANSWER",
    "block_threshold": "BLOCK_THRESHOLD",
    "block_keywords": "BLOCK_KEYWORDS",
    "keyword_responses": "KEYWORD_RESPONSES",
    "authorized_admins": "AUTHORIZED_ADMINS",
    "backup_group_id": "BACKUP_GROUP_ID",
    "enable_image_forwarding": "ENABLE_IMAGE_FORWARDING",
    "enable_link_forwarding": "ENABLE_LINK_FORWARDING",
    "enable_text_forwarding": "ENABLE_TEXT_FORWARDING",
    "enable_channel_forwarding": "ENABLE_CHANNEL_FORWARDING",
    "enable_forward_forwarding": "ENABLE_FORWARD_FORWARDING",
    "enable_audio_forwarding": "ENABLE_AUDIO_FORWARDING",
    "enable_sticker_forwarding": "ENABLE_STICKER_FORWARDING",
}

FORWARDING_FLAGS = (
    "enable_forward_forwarding",
    "enable_channel_forwarding",
    "enable_audio_forwarding",
    "enable_sticker_forwarding",
    "enable_image_forwarding",
    "enable_link_forwarding",
    "enable_text_forwarding",
)

DEFAULT_WELCOME_MESSAGE = "👋 Добро пожаловать! Перед началом общения пройдите, пожалуйста, проверку."
DEFAULT_VERIFICATION_QUESTION = (
    "Вопрос: 1+1=?\n\n"
    "Подсказка:\n"
    "1. Правильный ответ - не «2».\n"
    "2. Ответ указан в описании бота."
)
DEFAULT_VERIFICATION_ANSWER = "3"
DEFAULT_BLOCK_THRESHOLD = 5

ADMIN_STATE_PREFIX = "admin_state:"

Resolver = Callable[[str], Awaitable[Optional[str]]]


class ConfigService:
    """
    Многоуровневое чтение настроек.

    Источники опрашиваются по порядку, первый непустой (не None) результат
    возвращается как есть.
    """

    def __init__(self, db_manager: DatabaseManager, settings: Settings):
        self.db_manager = db_manager
        self.settings = settings
        self.resolvers: List[Resolver] = [self._from_store, self._from_env]

    async def _from_store(self, key: str) -> Optional[str]:
        return await self.db_manager.config.get(key)

    async def _from_env(self, key: str) -> Optional[str]:
        env_name = ENV_KEY_MAP.get(key)
        if env_name is None:
            return None
        return getattr(self.settings, env_name, None)

    async def get(self, key: str, default: Any = None) -> Any:
        """Значение настройки с учетом всех источников."""
        for resolver in self.resolvers:
            value = await resolver(key)
            if value is not None:
                return value
        return default

    async def put(self, key: str, value: str) -> None:
        await self.db_manager.config.put(key, value)

    async def delete(self, key: str) -> None:
        await self.db_manager.config.delete(key)

    async def get_flag(self, key: str, default: str = "true") -> bool:
        """Флаги хранятся строками "true"/"false"."""
        value = await self.get(key, default)
        return str(value).strip().lower() == "true"

    async def get_int(self, key: str, default: int) -> int:
        value = await self.get(key, str(default))
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            logger.warning(f"⚠️ Некорректное числовое значение {key}={value!r}, используется {default}")
            return default
        return number if number > 0 else default

    async def get_list(self, key: str) -> list:
        """
        JSON-массив из настройки. Поврежденный JSON превращается в пустой
        список с предупреждением в логе.
        """
        raw = await self.get(key, "[]")
        try:
            items = json.loads(raw) if raw else []
        except (TypeError, ValueError) as e:
            logger.warning(f"⚠️ Не удалось разобрать {key} как JSON: {e}")
            return []
        if not isinstance(items, list):
            logger.warning(f"⚠️ Настройка {key} не является JSON-массивом")
            return []
        return items

    async def put_list(self, key: str, items: list) -> None:
        await self.put(key, json.dumps(items, ensure_ascii=False))

    async def get_block_keywords(self) -> List[str]:
        return [str(item) for item in await self.get_list("block_keywords") if str(item)]

    async def get_auto_reply_rules(self) -> List[AutoReplyRule]:
        rules = []
        for item in await self.get_list("keyword_responses"):
            try:
                rules.append(AutoReplyRule(**item))
            except (TypeError, ValidationError) as e:
                logger.warning(f"⚠️ Пропущено некорректное правило автоответа {item!r}: {e}")
        return rules

    async def save_auto_reply_rules(self, rules: List[AutoReplyRule]) -> None:
        await self.put_list("keyword_responses", [rule.model_dump() for rule in rules])

    async def add_auto_reply_rule(self, keywords: str, response: str) -> AutoReplyRule:
        """Добавляет правило с возрастающим id (метка времени в мс)."""
        rules = await self.get_auto_reply_rules()
        rule_id = int(time.time() * 1000)
        if rules:
            rule_id = max(rule_id, max(rule.id for rule in rules) + 1)
        rule = AutoReplyRule(keywords=keywords, response=response, id=rule_id)
        rules.append(rule)
        await self.save_auto_reply_rules(rules)
        return rule

    async def get_authorized_admins(self) -> List[str]:
        return [str(item).strip() for item in await self.get_list("authorized_admins") if str(item).strip()]

    async def get_block_threshold(self) -> int:
        return await self.get_int("block_threshold", DEFAULT_BLOCK_THRESHOLD)

    async def get_backup_group_id(self) -> str:
        return str(await self.get("backup_group_id", "") or "").strip()

    # Состояние мастера ввода администратора
    async def get_admin_state(self, admin_id: str) -> Optional[str]:
        return await self.db_manager.config.get(f"{ADMIN_STATE_PREFIX}{admin_id}")

    async def put_admin_state(self, admin_id: str, state_json: str) -> None:
        await self.db_manager.config.put(f"{ADMIN_STATE_PREFIX}{admin_id}", state_json)

    async def delete_admin_state(self, admin_id: str) -> None:
        await self.db_manager.config.delete(f"{ADMIN_STATE_PREFIX}{admin_id}")
