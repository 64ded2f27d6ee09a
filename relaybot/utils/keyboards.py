"""Клавиатуры карточки пользователя в группе администраторов."""
from typing import Union

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def get_card_keyboard(user_id: Union[int, str], is_blocked: bool) -> InlineKeyboardMarkup:
    """Кнопки блокировки/разблокировки и закрепления карточки."""
    builder = InlineKeyboardBuilder()
    if is_blocked:
        builder.button(text="✅ Разблокировать", callback_data=f"unblock:{user_id}")
    else:
        builder.button(text="🚫 Заблокировать", callback_data=f"block:{user_id}")
    builder.button(text="📌 Закрепить карточку", callback_data=f"pin_card:{user_id}")
    builder.adjust(1)
    return builder.as_markup()
