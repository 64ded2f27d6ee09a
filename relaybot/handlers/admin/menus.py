"""Тексты и клавиатуры меню консоли настроек."""
from typing import Awaitable, Callable, Dict, Tuple

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from relaybot.services.admin_console_service import PARENT_MENUS
from relaybot.services.config_service import (
    DEFAULT_BLOCK_THRESHOLD,
    DEFAULT_VERIFICATION_ANSWER,
    DEFAULT_VERIFICATION_QUESTION,
    DEFAULT_WELCOME_MESSAGE,
    ConfigService,
)
from relaybot.utils.callback_data import config_cb, keyword_ref
from relaybot.utils.formatting import escape_html, shorten


Menu = Tuple[str, InlineKeyboardMarkup]

FLAG_LABELS = {
    "enable_forward_forwarding": "Пересланные (пользователи/группы/каналы)",
    "enable_channel_forwarding": "Пересланные из каналов",
    "enable_audio_forwarding": "Аудио и голосовые",
    "enable_sticker_forwarding": "Стикеры и GIF",
    "enable_image_forwarding": "Фото, видео, файлы",
    "enable_link_forwarding": "Сообщения со ссылками",
    "enable_text_forwarding": "Обычный текст",
}

PROMPTS = {
    "welcome_msg": "Отправьте <b>новое приветственное сообщение</b>:",
    "verif_q": "Отправьте <b>новый контрольный вопрос</b>:",
    "verif_a": "Отправьте <b>новый ответ</b> (несколько вариантов через <code>|</code>):",
    "block_threshold": "Отправьте <b>новый порог блокировки</b> (целое число):",
    "backup_group_id": "Отправьте <b>ID резервной группы</b>, например <code>-10012345678</code>.\nПустое сообщение очистит значение.",
    "authorized_admins": "Отправьте <b>список ID администраторов</b> через запятую, например <code>1234567, 987654</code>:",
    "keyword_responses_add": (
        "Отправьте <b>новое правило автоответа</b>.\n\n"
        "<b>Формат:</b> <code>выражение===ответ</code>\n"
        "Например: <code>привет|hello===Здравствуйте! Чем можем помочь?</code>"
    ),
    "block_keywords_add": (
        "Отправьте <b>новое запрещенное слово</b>.\n\n"
        "Поддерживаются регулярные выражения, например <code>(казино|ставки)</code>"
    ),
}


def back_button(builder: InlineKeyboardBuilder, menu: str = "root") -> None:
    if menu == "root":
        builder.button(text="⬅️ В главное меню", callback_data=config_cb("menu"))
    else:
        builder.button(text="⬅️ Назад", callback_data=config_cb("menu", menu))


async def render_root(config_service: ConfigService) -> Menu:
    builder = InlineKeyboardBuilder()
    builder.button(text="📝 Основные настройки (проверка)", callback_data=config_cb("menu", "base"))
    builder.button(text="🤖 Автоответы", callback_data=config_cb("menu", "autoreply"))
    builder.button(text="🚫 Запрещенные слова", callback_data=config_cb("menu", "keyword"))
    builder.button(text="🔗 Фильтр по типам", callback_data=config_cb("menu", "filter"))
    builder.button(text="🧑‍💻 Делегированные администраторы", callback_data=config_cb("menu", "authorized"))
    builder.button(text="💾 Резервная группа", callback_data=config_cb("menu", "backup"))
    builder.button(text="🔄 Обновить", callback_data=config_cb("menu"))
    builder.adjust(1)
    return "⚙️ <b>Настройки бота</b>\n\nВыберите раздел:", builder.as_markup()


async def render_base(config_service: ConfigService) -> Menu:
    welcome = await config_service.get("welcome_msg", DEFAULT_WELCOME_MESSAGE)
    question = await config_service.get("verif_q", DEFAULT_VERIFICATION_QUESTION)
    answer = await config_service.get("verif_a", DEFAULT_VERIFICATION_ANSWER)
    text = (
        "⚙️ <b>Основные настройки (проверка пользователей)</b>\n\n"
        "<b>Текущие значения:</b>\n"
        f"• Приветствие: {escape_html(shorten(welcome, 30))}\n"
        f"• Вопрос: {escape_html(shorten(question, 30))}\n"
        f"• Ответ: <code>{escape_html(answer)}</code>\n\n"
        "Выберите, что изменить:"
    )
    builder = InlineKeyboardBuilder()
    builder.button(text="📝 Приветствие", callback_data=config_cb("edit", "welcome_msg"))
    builder.button(text="❓ Контрольный вопрос", callback_data=config_cb("edit", "verif_q"))
    builder.button(text="🔑 Ответ", callback_data=config_cb("edit", "verif_a"))
    back_button(builder)
    builder.adjust(1)
    return text, builder.as_markup()


async def render_autoreply(config_service: ConfigService) -> Menu:
    count = len(await config_service.get_auto_reply_rules())
    builder = InlineKeyboardBuilder()
    builder.button(text="➕ Добавить правило", callback_data=config_cb("add", "keyword_responses"))
    builder.button(text=f"🗑️ Список и удаление ({count})", callback_data=config_cb("list", "keyword_responses"))
    back_button(builder)
    builder.adjust(1)
    return f"🤖 <b>Автоответы</b>\n\nВсего правил: <b>{count}</b>.\n\nВыберите действие:", builder.as_markup()


async def render_keyword(config_service: ConfigService) -> Menu:
    count = len(await config_service.get_block_keywords())
    threshold = await config_service.get("block_threshold", str(DEFAULT_BLOCK_THRESHOLD))
    text = (
        "🚫 <b>Запрещенные слова</b>\n\n"
        f"Всего слов: <b>{count}</b>.\n"
        f"Порог блокировки: <code>{escape_html(str(threshold))}</code>.\n\n"
        "Выберите действие:"
    )
    builder = InlineKeyboardBuilder()
    builder.button(text="➕ Добавить слово", callback_data=config_cb("add", "block_keywords"))
    builder.button(text=f"🗑️ Список и удаление ({count})", callback_data=config_cb("list", "block_keywords"))
    builder.button(text=f"✏️ Порог блокировки ({threshold})", callback_data=config_cb("edit", "block_threshold"))
    back_button(builder)
    builder.adjust(1)
    return text, builder.as_markup()


async def render_filter(config_service: ConfigService) -> Menu:
    lines = ["🔗 <b>Фильтр по типам</b>", "Нажмите кнопку, чтобы переключить. Изменения действуют сразу.", ""]
    builder = InlineKeyboardBuilder()
    for key, label in FLAG_LABELS.items():
        enabled = await config_service.get_flag(key)
        status = "✅ Разрешено" if enabled else "❌ Запрещено"
        lines.append(f"• {label}: {status}")
        builder.button(
            text=f"{'✅' if enabled else '❌'} {label}",
            callback_data=config_cb("toggle", key, "false" if enabled else "true"),
        )
    back_button(builder)
    builder.adjust(1)
    return "\n".join(lines), builder.as_markup()


async def render_authorized(config_service: ConfigService) -> Menu:
    primary = config_service.settings.admin_ids
    delegated = await config_service.get_authorized_admins()
    total = len(set(primary) | set(delegated))
    text = (
        "🧑‍💻 <b>Делегированные администраторы</b>\n\n"
        f"<b>Главные (ADMIN_IDS):</b> <code>{escape_html(', '.join(primary)) or 'нет'}</code>\n"
        f"<b>Делегированные:</b> <code>{escape_html(', '.join(delegated)) or 'нет'}</code>\n"
        f"<b>Всего:</b> {total}\n\n"
        "<b>Важно:</b>\n"
        "1. Ответы в темах принимаются только от администраторов из этих списков.\n"
        "2. Делегированные администраторы не проходят проверку в личном чате.\n"
        "3. Формат ввода: ID через запятую."
    )
    builder = InlineKeyboardBuilder()
    builder.button(text="✏️ Задать список", callback_data=config_cb("edit", "authorized_admins"))
    builder.button(text=f"🗑️ Очистить список ({len(delegated)})", callback_data=config_cb("edit", "authorized_admins_clear"))
    back_button(builder)
    builder.adjust(1)
    return text, builder.as_markup()


async def render_backup(config_service: ConfigService) -> Menu:
    backup_group_id = await config_service.get_backup_group_id()
    status = f"✅ <code>{escape_html(backup_group_id)}</code>" if backup_group_id else "❌ не задана"
    text = (
        "💾 <b>Резервная группа</b>\n\n"
        f"<b>ID группы:</b> {status}\n\n"
        "<b>Важно:</b>\n"
        "1. Бот должен быть администратором этой группы.\n"
        "2. Копии всех сообщений пользователей будут отправляться туда."
    )
    builder = InlineKeyboardBuilder()
    builder.button(text="✏️ Задать ID группы", callback_data=config_cb("edit", "backup_group_id"))
    builder.button(text="🗑️ Очистить", callback_data=config_cb("edit", "backup_group_id_clear"))
    back_button(builder)
    builder.adjust(1)
    return text, builder.as_markup()


MENU_RENDERERS: Dict[str, Callable[[ConfigService], Awaitable[Menu]]] = {
    "root": render_root,
    "base": render_base,
    "autoreply": render_autoreply,
    "keyword": render_keyword,
    "filter": render_filter,
    "authorized": render_authorized,
    "backup": render_backup,
}


async def render_menu(name: str, config_service: ConfigService) -> Menu:
    renderer = MENU_RENDERERS.get(name or "root", render_root)
    return await renderer(config_service)


async def render_list(key: str, config_service: ConfigService) -> Menu:
    """Список правил или слов с кнопкой удаления на каждую запись."""
    builder = InlineKeyboardBuilder()

    if key == "keyword_responses":
        rules = await config_service.get_auto_reply_rules()
        lines = [f"🤖 <b>Правила автоответа ({len(rules)})</b>", "Формат: <code>выражение</code> ➡️ ответ", "---"]
        for index, rule in enumerate(rules, start=1):
            lines.append(
                f"{index}. <code>{escape_html(shorten(rule.keywords, 15))}</code> ➡️ {escape_html(shorten(rule.response, 20))}"
            )
            builder.button(text=f"🗑️ Удалить {index}", callback_data=config_cb("delete", key, str(rule.id)))
        back = "autoreply"
        empty = not rules
    elif key == "block_keywords":
        keywords = await config_service.get_block_keywords()
        lines = [f"🚫 <b>Запрещенные слова ({len(keywords)})</b>", "---"]
        for index, keyword in enumerate(keywords, start=1):
            lines.append(f"{index}. <code>{escape_html(shorten(keyword, 25))}</code>")
            builder.button(text=f"🗑️ Удалить {index}", callback_data=config_cb("delete", key, keyword_ref(keyword)))
        back = "keyword"
        empty = not keywords
    else:
        raise ValueError(f"Неизвестный список {key}")

    if empty:
        lines.append("<i>(список пуст)</i>")

    back_button(builder, back)
    builder.adjust(1)
    return "\n".join(lines), builder.as_markup()


def render_prompt(key: str) -> Menu:
    """Подсказка мастера с кнопкой отмены, возвращающей в родительское меню."""
    prompt = PROMPTS.get(key, f"Отправьте новое значение <code>{escape_html(key)}</code>:")
    builder = InlineKeyboardBuilder()
    builder.button(text="❌ Отмена", callback_data=config_cb("menu", PARENT_MENUS.get(key, "root")))
    return f"{prompt}\n\nОтправьте /cancel или нажмите кнопку ниже, чтобы отменить.", builder.as_markup()
