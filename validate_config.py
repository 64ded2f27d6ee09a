#!/usr/bin/env python3
"""
Проверка конфигурации релей-бота перед запуском.

Настройки читаются тем же классом Settings, что и в боте, затем
проверяются через Telegram Bot API:
- токен (getMe)
- группа администраторов: супергруппа с включенными темами (getChat)
- права бота на управление темами (getChatMember)
- формат ADMIN_IDS и WEBHOOK_URL
"""

import sys
from pathlib import Path

import requests
from pydantic import ValidationError

API_URL = "https://api.telegram.org/bot{token}/{method}"


class CheckFailed(Exception):
    """Проверка не пройдена; текст исключения выводится пользователю."""


def call_api(token: str, method: str, **params) -> dict:
    """Вызов метода Bot API. Возвращает result или бросает CheckFailed."""
    try:
        response = requests.get(API_URL.format(token=token, method=method), params=params, timeout=10)
    except requests.exceptions.RequestException as e:
        raise CheckFailed(f"сетевая ошибка при вызове {method}: {e}") from e

    if response.status_code == 401:
        raise CheckFailed("токен отклонен Telegram (401 Unauthorized)")

    data = response.json()
    if not data.get("ok"):
        raise CheckFailed(f"{method}: {data.get('description', response.status_code)}")
    return data["result"]


def check_token(settings) -> str:
    me = call_api(settings.get_bot_token(), "getMe")
    return f"бот @{me.get('username', 'unknown')} (id {me['id']})"


def check_admin_group(settings) -> str:
    if not str(settings.ADMIN_GROUP_ID).startswith("-100"):
        raise CheckFailed("ADMIN_GROUP_ID должен выглядеть как -1001234567890")

    chat = call_api(settings.get_bot_token(), "getChat", chat_id=settings.ADMIN_GROUP_ID)
    if chat.get("type") != "supergroup":
        raise CheckFailed("группа администраторов должна быть супергруппой")
    if not chat.get("is_forum"):
        raise CheckFailed("в группе администраторов не включены темы (Topics)")
    return f"группа «{chat.get('title', settings.ADMIN_GROUP_ID)}» с темами"


def check_bot_rights(settings) -> str:
    token = settings.get_bot_token()
    me = call_api(token, "getMe")
    member = call_api(token, "getChatMember", chat_id=settings.ADMIN_GROUP_ID, user_id=me["id"])
    if member.get("status") != "administrator":
        raise CheckFailed("бот не является администратором группы")
    if not member.get("can_manage_topics"):
        raise CheckFailed("у бота нет права «Управление темами»")
    return "бот может создавать темы"


def check_admin_ids(settings) -> str:
    ids = settings.admin_ids
    if not ids:
        return "⚠️ ADMIN_IDS пуст: консоль настроек никому не доступна"
    wrong = [item for item in ids if not item.isdigit()]
    if wrong:
        raise CheckFailed(f"ADMIN_IDS содержит нечисловые значения: {', '.join(wrong)}")
    return f"главных администраторов: {len(ids)}"


def check_transport(settings) -> str:
    if settings.USE_POLLING:
        return "режим long polling"
    if settings.WEBHOOK_URL and not settings.WEBHOOK_URL.startswith("https://"):
        raise CheckFailed("WEBHOOK_URL должен начинаться с https://")
    target = settings.WEBHOOK_URL or "URL не задан, регистрация вебхука вручную"
    return f"webhook на {settings.WEBHOOK_HOST}:{settings.WEBHOOK_PORT}{settings.WEBHOOK_PATH} ({target})"


CHECKS = (
    ("Токен", check_token),
    ("Группа администраторов", check_admin_group),
    ("Права бота", check_bot_rights),
    ("ADMIN_IDS", check_admin_ids),
    ("Транспорт", check_transport),
)


def main():
    print("🔍 Relay Bot - проверка конфигурации")
    print("=" * 50)

    if not Path(".env").exists():
        print("⚠️ Файл .env не найден, используются только переменные окружения")

    try:
        from config.settings import Settings
        settings = Settings()
    except ValidationError as e:
        print("❌ Не заданы обязательные настройки (BOT_TOKEN, ADMIN_GROUP_ID):")
        print(e)
        sys.exit(1)

    failed = 0
    for title, check in CHECKS:
        try:
            print(f"✅ {title}: {check(settings)}")
        except CheckFailed as e:
            failed += 1
            print(f"❌ {title}: {e}")

    if failed:
        print(f"\n❌ Проверок не пройдено: {failed}. Исправьте ошибки перед запуском.")
        sys.exit(1)
    print("\n✅ Все проверки пройдены, бот готов к запуску.")


if __name__ == "__main__":
    main()
