"""
Логика консоли настроек: мастер ввода, переключатели, удаление правил.

Отрисовка меню живет в relaybot.handlers.admin.menus, здесь только
изменение данных и состояния мастера.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from loguru import logger

from relaybot.services.config_service import FORWARDING_FLAGS, ConfigService
from relaybot.states.admin_states import (
    AwaitingInput,
    Idle,
    MalformedAdminState,
    dump_admin_state,
    parse_admin_state,
)
from relaybot.utils.callback_data import resolve_keyword_ref
from relaybot.utils.formatting import escape_html, shorten


RULE_SEPARATOR = "==="
ADD_SUFFIX = "_add"

# Ключ мастера -> меню, в которое возвращаемся после ввода или отмены
PARENT_MENUS = {
    "welcome_msg": "base",
    "verif_q": "base",
    "verif_a": "base",
    "block_threshold": "keyword",
    "backup_group_id": "backup",
    "authorized_admins": "authorized",
    "keyword_responses_add": "autoreply",
    "block_keywords_add": "keyword",
}

EDITABLE_KEYS = ("welcome_msg", "verif_q", "verif_a", "block_threshold", "backup_group_id", "authorized_admins")
ADDABLE_KEYS = ("keyword_responses", "block_keywords")

# Очистка без мастера: ключ кнопки -> (настройка, пустое значение, меню)
CLEAR_ACTIONS = {
    "backup_group_id_clear": ("backup_group_id", "", "backup"),
    "authorized_admins_clear": ("authorized_admins", "[]", "authorized"),
}

EMPTY_INPUT_TEXT = "⚠️ Значение не может быть пустым, отправьте его еще раз."


@dataclass
class WizardOutcome:
    """
    Результат обработки ввода. next_menu=None означает, что мастер
    продолжает ждать ввода.
    """
    text: str
    next_menu: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.next_menu is not None


class AdminConsoleService:
    def __init__(self, config_service: ConfigService):
        self.config_service = config_service

    async def get_state(self, admin_id: str) -> Union[Idle, AwaitingInput]:
        """Восстанавливает состояние мастера. Неизвестный ключ считается поврежденным состоянием."""
        state = parse_admin_state(await self.config_service.get_admin_state(admin_id))
        if isinstance(state, AwaitingInput) and state.key not in PARENT_MENUS:
            raise MalformedAdminState(f"Неизвестный ключ мастера: {state.key}")
        return state

    async def reset(self, admin_id: str) -> None:
        await self.config_service.delete_admin_state(admin_id)

    async def begin_input(self, admin_id: str, key: str) -> None:
        if key not in PARENT_MENUS:
            raise ValueError(f"Ключ {key} не поддерживает ввод")
        await self.config_service.put_admin_state(admin_id, dump_admin_state(AwaitingInput(key=key)))
        logger.debug(f"✏️ Администратор {admin_id} начал ввод {key}")

    async def cancel(self, admin_id: str) -> str:
        """Отменяет ввод и возвращает имя меню, в которое нужно вернуться."""
        try:
            state = await self.get_state(admin_id)
        except MalformedAdminState:
            state = Idle()
        await self.reset(admin_id)
        if isinstance(state, AwaitingInput):
            return PARENT_MENUS[state.key]
        return "root"

    async def toggle(self, key: str, value: str) -> None:
        if key not in FORWARDING_FLAGS or value not in ("true", "false"):
            raise ValueError(f"Недопустимое переключение {key}={value}")
        await self.config_service.put(key, value)
        logger.info(f"🔀 Флаг {key} установлен в {value}")

    async def clear(self, action: str) -> str:
        """Очищает настройку без мастера, возвращает меню для отрисовки."""
        key, empty_value, menu = CLEAR_ACTIONS[action]
        await self.config_service.put(key, empty_value)
        logger.info(f"🗑️ Настройка {key} очищена")
        return menu

    async def delete_entry(self, target: str, ref: str) -> bool:
        """
        Удаляет правило автоответа по id или запрещенное слово по точному
        значению (или по его короткой ссылке). Возвращает True, если что-то удалено.
        """
        if target == "keyword_responses":
            rules = await self.config_service.get_auto_reply_rules()
            remaining = [rule for rule in rules if str(rule.id) != ref]
            if len(remaining) == len(rules):
                return False
            await self.config_service.save_auto_reply_rules(remaining)
            return True

        if target == "block_keywords":
            keywords = await self.config_service.get_block_keywords()
            keyword = resolve_keyword_ref(ref, keywords)
            if keyword is None:
                return False
            await self.config_service.put_list("block_keywords", [item for item in keywords if item != keyword])
            return True

        raise ValueError(f"Неизвестный список {target}")

    async def handle_input(self, admin_id: str, state: AwaitingInput, text: str) -> WizardOutcome:
        """Применяет ввод администратора к ключу из состояния мастера."""
        text = text or ""
        if state.key == "block_keywords_add":
            outcome = await self._add_block_keyword(text)
        elif state.key == "keyword_responses_add":
            outcome = await self._add_auto_reply(text)
        else:
            outcome = await self._set_value(state.key, text)

        if outcome.finished:
            await self.reset(admin_id)
        return outcome

    async def _add_block_keyword(self, text: str) -> WizardOutcome:
        keyword = text.strip()
        if not keyword:
            return WizardOutcome(EMPTY_INPUT_TEXT)

        error = self._validate_pattern(keyword)
        if error:
            return WizardOutcome(
                f"⚠️ Слово не добавлено: некорректное регулярное выражение ({escape_html(error)}).", "keyword"
            )

        keywords = await self.config_service.get_block_keywords()
        if keyword in keywords:
            return WizardOutcome("⚠️ Слово не добавлено: такое значение уже есть в списке.", "keyword")

        keywords.append(keyword)
        await self.config_service.put_list("block_keywords", keywords)
        logger.info(f"🚫 Добавлено запрещенное слово {keyword!r}")
        return WizardOutcome(f"✅ Запрещенное слово <code>{escape_html(keyword)}</code> добавлено.", "keyword")

    async def _add_auto_reply(self, text: str) -> WizardOutcome:
        if not text.strip():
            return WizardOutcome(EMPTY_INPUT_TEXT)

        parsed = self._parse_rule(text)
        if parsed is None:
            return WizardOutcome(
                "⚠️ Правило не добавлено. Формат: <code>выражение===ответ</code>", "autoreply"
            )

        keywords, response = parsed
        error = self._validate_pattern(keywords)
        if error:
            return WizardOutcome(
                f"⚠️ Правило не добавлено: некорректное регулярное выражение ({escape_html(error)}).", "autoreply"
            )

        rule = await self.config_service.add_auto_reply_rule(keywords, response)
        logger.info(f"🤖 Добавлено правило автоответа {rule.id}")
        return WizardOutcome(f"✅ Правило автоответа добавлено. Выражение: <code>{escape_html(keywords)}</code>", "autoreply")

    async def _set_value(self, key: str, text: str) -> WizardOutcome:
        if key in ("verif_a", "block_threshold", "backup_group_id"):
            value = text.strip()
        elif key == "authorized_admins":
            value = json.dumps([item.strip() for item in text.split(",") if item.strip()], ensure_ascii=False)
        else:
            value = text

        if not text.strip() and key != "backup_group_id":
            return WizardOutcome(EMPTY_INPUT_TEXT)

        if key == "block_threshold" and not (value.isdigit() and int(value) > 0):
            return WizardOutcome("⚠️ Порог должен быть целым положительным числом, отправьте его еще раз.")

        await self.config_service.put(key, value)
        logger.info(f"⚙️ Настройка {key} обновлена")
        return WizardOutcome(
            f"✅ Настройка <code>{key}</code> обновлена. Новое значение: <code>{escape_html(shorten(value, 50))}</code>",
            PARENT_MENUS[key],
        )

    @staticmethod
    def _parse_rule(text: str) -> Optional[Tuple[str, str]]:
        parts = text.split(RULE_SEPARATOR)
        if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
            return None
        return parts[0].strip(), parts[1].strip()

    @staticmethod
    def _validate_pattern(pattern: str) -> Optional[str]:
        try:
            re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            return str(e)
        return None
