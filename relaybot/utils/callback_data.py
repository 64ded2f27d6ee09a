"""Разбор и сборка callback_data вида domain:action:target:value."""

import hashlib
from dataclasses import dataclass
from typing import Iterable, Optional


CALLBACK_DATA_LIMIT = 64
HASH_PREFIX = "#"


@dataclass(frozen=True)
class ConsoleCallback:
    domain: str
    action: str
    target: str = ""
    value: str = ""

    @classmethod
    def parse(cls, data: str) -> "ConsoleCallback":
        """
        Разбирает callback_data. Значение (последняя часть) может
        содержать двоеточия - например, ключевое слово.
        """
        parts = (data or "").split(":", 3)
        parts += [""] * (4 - len(parts))
        return cls(*parts)

    def pack(self) -> str:
        return ":".join(part for part in (self.domain, self.action, self.target, self.value) if part)


def config_cb(action: str, target: str = "", value: str = "") -> str:
    """callback_data для кнопок консоли настроек."""
    return ConsoleCallback("config", action, target, value).pack()


def keyword_ref(keyword: str, target: str = "block_keywords") -> str:
    """
    Ссылка на ключевое слово для кнопки удаления: само значение, а если
    callback_data не помещается в лимит - короткий хэш значения.
    """
    if len(config_cb("delete", target, keyword).encode("utf-8")) <= CALLBACK_DATA_LIMIT \
            and not keyword.startswith(HASH_PREFIX):
        return keyword
    digest = hashlib.sha1(keyword.encode("utf-8")).hexdigest()[:16]
    return f"{HASH_PREFIX}{digest}"


def resolve_keyword_ref(ref: str, keywords: Iterable[str]) -> Optional[str]:
    """Находит ключевое слово по ссылке из keyword_ref."""
    for keyword in keywords:
        if keyword_ref(keyword) == ref:
            return keyword
    return None
