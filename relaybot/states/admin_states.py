"""
Состояния мастера ввода настроек администратора.

Состояние хранится в таблице config под ключом admin_state:<id> и
восстанавливается при каждом запросе.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError


class Idle(BaseModel):
    """Мастер не запущен."""
    action: Literal["idle"] = "idle"


class AwaitingInput(BaseModel):
    """Ожидается текстовый ввод значения для ключа key."""
    action: Literal["awaiting_input"] = "awaiting_input"
    key: str = Field(min_length=1)


AdminState = Annotated[Union[Idle, AwaitingInput], Field(discriminator="action")]

_adapter = TypeAdapter(AdminState)


class MalformedAdminState(ValueError):
    """Сохраненное состояние мастера не удалось разобрать."""


def parse_admin_state(raw: Optional[str]) -> Union[Idle, AwaitingInput]:
    if not raw:
        return Idle()
    try:
        return _adapter.validate_json(raw)
    except ValidationError as e:
        raise MalformedAdminState(str(e)) from e


def dump_admin_state(state: AwaitingInput) -> str:
    return state.model_dump_json()
