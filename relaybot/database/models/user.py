from typing import Optional

from aiogram.types import User as AiogramUser
from pydantic import BaseModel

from relaybot.states.verification import UserState


class UserInfo(BaseModel):
    """
    Снимок профиля пользователя на момент создания темы.
    Хранится в колонке info_json.
    """

    name: str = ""
    username: Optional[str] = None
    first_contact: Optional[int] = None

    @classmethod
    def from_aiogram(cls, user: AiogramUser, first_contact: Optional[int] = None) -> "UserInfo":
        """
        Создает профиль из объекта пользователя aiogram.
        """
        name = (user.first_name or "") + (f" {user.last_name}" if user.last_name else "")
        return cls(
            name=name,
            username=f"@{user.username}" if user.username else None,
            first_contact=first_contact,
        )


class User(BaseModel):
    """
    Pydantic-модель для пользователя, соответствующая структуре в БД.
    """

    user_id: str
    state: UserState = UserState.NEW
    is_blocked: bool = False
    block_count: int = 0
    topic_id: Optional[str] = None
    info: Optional[UserInfo] = None

    @property
    def is_verified(self) -> bool:
        return self.state == UserState.VERIFIED
