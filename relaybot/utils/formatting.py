"""Форматирование текстов: экранирование, время, карточка пользователя."""

from datetime import datetime
from html import escape
from typing import Optional, Union

from aiogram.types import User as AiogramUser


TOPIC_NAME_LIMIT = 128
UNKNOWN_TIME = "время неизвестно"


def escape_html(text: Optional[str]) -> str:
    """Экранирует текст для parse_mode=HTML."""
    if not text:
        return ""
    return escape(str(text), quote=False)


def to_timestamp(value: Union[datetime, int, None]) -> Optional[int]:
    """Unix-время в секундах из datetime aiogram или числа."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def format_timestamp(value: Union[datetime, int, None]) -> str:
    """Форматирует unix-время в локальную строку."""
    timestamp = to_timestamp(value)
    if not timestamp:
        return UNKNOWN_TIME
    return datetime.fromtimestamp(timestamp).strftime("%d.%m.%Y %H:%M:%S")


def display_name(user: AiogramUser) -> str:
    return (user.first_name or "") + (f" {user.last_name}" if user.last_name else "")


def build_topic_name(user: AiogramUser) -> str:
    """Название темы: «Имя | id», не длиннее лимита Telegram."""
    return f"{display_name(user).strip()} | {user.id}"[:TOPIC_NAME_LIMIT]


def build_info_card(user: AiogramUser, first_contact: Union[datetime, int, None] = None) -> str:
    """Карточка пользователя, публикуемая первой в новой теме."""
    username = f"@{user.username}" if user.username else "нет"
    return (
        "<b>👤 Карточка пользователя</b>\n"
        "---\n"
        f"• Имя: <code>{escape_html(display_name(user))}</code>\n"
        f"• Username: <code>{escape_html(username)}</code>\n"
        f"• ID: <code>{user.id}</code>\n"
        f"• Первое обращение: <code>{format_timestamp(first_contact or datetime.now())}</code>"
    )


def build_backup_header(user: AiogramUser) -> str:
    """Заголовок копии сообщения в резервной группе."""
    username = f"@{user.username}" if user.username else "нет"
    name = escape_html(display_name(user)) or "без имени"
    return (
        "<b>--- Резервная копия ---</b>\n"
        f"👤 <b>От пользователя:</b> <a href=\"tg://user?id={user.id}\">{name}</a>"
        f" • ID: <code>{user.id}</code> • Username: {escape_html(username)}\n"
        "------------------"
    )


def shorten(text: Optional[str], limit: int) -> str:
    """Обрезает текст до limit символов, добавляя многоточие."""
    text = text or ""
    return text if len(text) <= limit else f"{text[:limit]}..."
