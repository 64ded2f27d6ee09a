"""
Репозиторий для управления пользователями в базе данных.
"""
import json
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from .base import BaseRepository
from ..models.user import User, UserInfo


class UserRepository(BaseRepository):
    """
    Класс для выполнения операций CRUD над таблицей пользователей.
    """

    # Колонки, доступные для частичного обновления
    UPDATABLE_FIELDS = ("state", "is_blocked", "block_count", "topic_id", "info")

    async def get_or_create(self, user_id: str) -> User:
        """
        Возвращает пользователя, создавая запись со значениями по умолчанию,
        если ее еще нет.
        """
        await self.execute(
            "INSERT OR IGNORE INTO users (user_id, state, is_blocked, block_count) VALUES (?, 'new', 0, 0)",
            (str(user_id),),
        )
        row = await self.fetchone("SELECT * FROM users WHERE user_id = ?", (str(user_id),))
        return self._row_to_user(row)

    async def update(self, user_id: str, **fields: Any) -> None:
        """
        Обновляет только переданные поля пользователя.

        is_blocked хранится как 0/1, info сериализуется в колонку info_json.
        """
        if not fields:
            return

        assignments = []
        values = []
        for name, value in fields.items():
            if name not in self.UPDATABLE_FIELDS:
                raise ValueError(f"Неизвестное поле пользователя: {name}")

            if name == "is_blocked":
                assignments.append("is_blocked = ?")
                values.append(1 if value else 0)
            elif name == "info":
                assignments.append("info_json = ?")
                if isinstance(value, UserInfo):
                    value = value.model_dump()
                values.append(json.dumps(value, ensure_ascii=False) if value is not None else None)
            elif name == "state":
                assignments.append("state = ?")
                values.append(getattr(value, "value", value))
            else:
                assignments.append(f"{name} = ?")
                values.append(value)

        sql = f"UPDATE users SET {', '.join(assignments)} WHERE user_id = ?"
        await self.execute(sql, (*values, str(user_id)))

    async def get_by_topic(self, topic_id: str) -> Optional[str]:
        """
        Находит user_id по ID темы в группе администраторов.
        """
        row = await self.fetchone("SELECT user_id FROM users WHERE topic_id = ?", (str(topic_id),))
        return row["user_id"] if row else None

    def _row_to_user(self, row) -> User:
        info = None
        if row["info_json"]:
            try:
                info = UserInfo(**json.loads(row["info_json"]))
            except (ValueError, TypeError, ValidationError) as e:
                logger.warning(f"⚠️ Поврежденный профиль пользователя {row['user_id']}: {e}")

        return User(
            user_id=row["user_id"],
            state=row["state"],
            is_blocked=row["is_blocked"] == 1,
            block_count=row["block_count"],
            topic_id=row["topic_id"],
            info=info,
        )
