"""Настройки конфигурации релей-бота поддержки."""
from typing import List, Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Основные настройки приложения."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 1. Настройки Telegram
    BOT_TOKEN: SecretStr = Field(..., description="Токен Telegram бота")
    ADMIN_GROUP_ID: int = Field(
        ...,
        description="ID группы-форума администраторов (темы пользователей)"
    )
    ADMIN_IDS: str = Field(
        default="",
        description="ID главных администраторов (через запятую в .env)"
    )

    # 2. Настройки базы данных
    DATABASE_PATH: str = Field(
        default="relay_bot.db",
        description="Путь к файлу SQLite"
    )

    # 3. Режим работы и webhook
    USE_POLLING: bool = Field(
        default=False,
        description="Запускать long polling вместо webhook (для разработки)"
    )
    WEBHOOK_HOST: str = Field(default="0.0.0.0", description="Адрес HTTP-сервера")
    WEBHOOK_PORT: int = Field(default=8080, description="Порт HTTP-сервера")
    WEBHOOK_PATH: str = Field(default="/", description="Путь webhook-эндпоинта")
    WEBHOOK_URL: str = Field(
        default="",
        description="Публичный URL webhook; если задан, регистрируется при старте"
    )

    # 4. Логирование
    LOG_LEVEL: str = Field(default="DEBUG", description="Уровень логирования")
    LOG_FILE: str = Field(default="bot.log", description="Файл логов")

    # 5. Значения по умолчанию для настроек из БД (таблица config имеет приоритет)
    WELCOME_MESSAGE: Optional[str] = None
    VERIFICATION_QUESTION: Optional[str] = None
    VERIFICATION_ANSWER: Optional[str] = None
    BLOCK_THRESHOLD: Optional[str] = None
    BLOCK_KEYWORDS: Optional[str] = None
    KEYWORD_RESPONSES: Optional[str] = None
    AUTHORIZED_ADMINS: Optional[str] = None
    BACKUP_GROUP_ID: Optional[str] = None
    ENABLE_IMAGE_FORWARDING: Optional[str] = None
    ENABLE_LINK_FORWARDING: Optional[str] = None
    ENABLE_TEXT_FORWARDING: Optional[str] = None
    ENABLE_CHANNEL_FORWARDING: Optional[str] = None
    ENABLE_FORWARD_FORWARDING: Optional[str] = None
    ENABLE_AUDIO_FORWARDING: Optional[str] = None
    ENABLE_STICKER_FORWARDING: Optional[str] = None

    # Валидаторы
    @field_validator('ADMIN_IDS', mode='before')
    def normalize_ids(cls, value):
        if isinstance(value, (list, tuple)):
            return ",".join(str(x) for x in value)
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator('WEBHOOK_PATH')
    def normalize_path(cls, value):
        return value if value.startswith("/") else f"/{value}"

    # Методы для удобства
    def get_bot_token(self) -> str:
        """Получить токен бота в виде строки."""
        return self.BOT_TOKEN.get_secret_value()

    @property
    def admin_ids(self) -> List[str]:
        """Список ID главных администраторов в виде строк."""
        return [x.strip() for x in self.ADMIN_IDS.split(',') if x.strip()]


# Инициализация настроек
settings = Settings()
