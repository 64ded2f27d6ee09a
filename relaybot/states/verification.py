"""Состояния пользователя в процессе верификации."""

from enum import Enum


class UserState(str, Enum):
    """
    Жизненный цикл пользователя: new -> pending_verification -> verified.
    Состояние verified конечное.
    """

    NEW = "new"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
