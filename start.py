#!/usr/bin/env python3
"""
Запуск релей-бота поддержки.

Использование:
    python start.py
"""

import sys
import asyncio
import traceback
from pathlib import Path

from loguru import logger

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))


def setup_logging(level: str, log_file: str) -> None:
    """Консоль на заданном уровне и файл с ротацией."""
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(log_file, level=level, rotation="10 MB", retention=1)


def main():
    """Основная функция для запуска бота."""
    env_file = project_root / ".env"
    if not env_file.exists():
        print("❌ Ошибка: файл .env не найден!")
        print("💡 Создайте файл .env на основе env.example")
        print("📋 Пример команды: cp env.example .env")
        sys.exit(1)

    try:
        # Настройки загружаются при импорте
        from config.settings import settings
        from relaybot.app import BotApp

        setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
        logger.info("🚀 Запуск релей-бота поддержки...")
        logger.info(f"📡 Режим: {'long polling' if settings.USE_POLLING else 'webhook'}")
        logger.info("📋 Для остановки нажмите Ctrl+C")

        app = BotApp(settings)
        asyncio.run(app.run())

    except ImportError as e:
        logger.critical(f"❌ Ошибка импорта: {e}")
        traceback.print_exc()
        logger.info("💡 Установите зависимости: pip install -e .")
    except (KeyboardInterrupt, SystemExit):
        logger.info("✅ Бот остановлен.")
    except Exception as e:
        logger.critical(f"💥 Непредвиденная ошибка: {e}")
        traceback.print_exc()


if __name__ == "__main__":
    logger.info(f"Запуск на Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    if sys.version_info < (3, 10):
        logger.critical("Требуется Python 3.10 или выше.")
    else:
        main()
