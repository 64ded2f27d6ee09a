"""Релей-бот: личные сообщения пользователей <-> темы в группе администраторов."""

__version__ = "1.0.0"
