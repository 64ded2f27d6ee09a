"""Сервис проверки пользователей контрольным вопросом."""

from typing import List

from loguru import logger

from relaybot.database.manager import DatabaseManager
from relaybot.database.models.user import User
from relaybot.services.config_service import (
    DEFAULT_VERIFICATION_ANSWER,
    DEFAULT_VERIFICATION_QUESTION,
    DEFAULT_WELCOME_MESSAGE,
    ConfigService,
)
from relaybot.states.verification import UserState


ALREADY_VERIFIED_TEXT = "✅ Вы уже прошли проверку, можете просто писать сообщения."
VERIFIED_TEXT = "✅ Проверка пройдена! Теперь вы можете отправлять сообщения."
WRONG_ANSWER_TEXT = "❌ Неверный ответ, попробуйте еще раз."
START_PROMPT_TEXT = "👋 Отправьте /start, чтобы начать."


class VerificationService:
    """
    Переходы состояния пользователя: new -> pending_verification -> verified.
    Из verified выхода нет.
    """

    def __init__(self, db_manager: DatabaseManager, config_service: ConfigService):
        self.db_manager = db_manager
        self.config_service = config_service

    async def get_welcome_message(self) -> str:
        return await self.config_service.get("welcome_msg", DEFAULT_WELCOME_MESSAGE)

    async def get_question(self) -> str:
        return await self.config_service.get("verif_q", DEFAULT_VERIFICATION_QUESTION)

    async def get_accepted_answers(self) -> List[str]:
        """Допустимые ответы: значения через «|», без регистра и пробелов по краям."""
        raw = await self.config_service.get("verif_a", DEFAULT_VERIFICATION_ANSWER)
        return [answer.strip().lower() for answer in str(raw).split("|") if answer.strip()]

    async def start(self, user: User) -> List[str]:
        """
        Обработка /start и /help обычного пользователя.
        Возвращает тексты для отправки по порядку.
        """
        welcome = await self.get_welcome_message()
        if user.is_verified:
            return [welcome, ALREADY_VERIFIED_TEXT]

        if user.state != UserState.PENDING_VERIFICATION:
            user.state = UserState.PENDING_VERIFICATION
            await self.db_manager.users.update(user.user_id, state=user.state)
            logger.info(f"🔐 Пользователь {user.user_id} начал проверку")

        return [welcome, await self.get_question()]

    async def check_answer(self, user: User, text: str) -> bool:
        """Сверяет ответ и переводит пользователя в verified при совпадении."""
        if user.is_verified:
            return True

        answer = (text or "").strip().lower()
        if answer and answer in await self.get_accepted_answers():
            await self.mark_verified(user)
            logger.info(f"✅ Пользователь {user.user_id} прошел проверку")
            return True

        logger.info(f"❌ Пользователь {user.user_id} ответил неверно")
        return False

    async def mark_verified(self, user: User) -> None:
        """Переводит пользователя в verified. Используется и для администраторов."""
        if user.is_verified:
            return
        user.state = UserState.VERIFIED
        await self.db_manager.users.update(user.user_id, state=user.state)
