"""Tests for the aiohttp webhook entry point."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from relaybot.database.manager import DatabaseInitError
from relaybot.webhook import WEBHOOK_HANDLER_KEY, WebhookHandler, create_app

UPDATE_PAYLOAD = {
    "update_id": 1001,
    "message": {
        "message_id": 1,
        "date": 1704110400,
        "chat": {"id": 555, "type": "private"},
        "from": {"id": 555, "is_bot": False, "first_name": "Иван"},
        "text": "/start",
    },
}


def make_request(method="POST", payload=None, error=None):
    request = Mock()
    request.method = method
    request.json = AsyncMock(return_value=payload, side_effect=error)
    return request


@pytest.fixture
def dp():
    dispatcher = Mock()
    dispatcher.feed_update = AsyncMock()
    return dispatcher


@pytest.fixture
def handler(dp, bot, db_manager):
    return WebhookHandler(dp, bot, db_manager)


@pytest.mark.unit
class TestWebhookHandler:
    @pytest.mark.asyncio
    async def test_schema_failure_returns_500(self, handler, dp):
        with patch.object(handler.db_manager, "ensure_schema", AsyncMock(side_effect=DatabaseInitError("disk full"))):
            response = await handler.handle(make_request(payload=UPDATE_PAYLOAD))

        assert response.status == 500
        assert response.text == "Database initialization failed: disk full"
        dp.feed_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_is_health_check(self, handler, dp):
        response = await handler.handle(make_request(method="GET"))

        assert response.status == 200
        assert response.text == "OK"
        dp.feed_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_post_schedules_processing(self, handler, dp, bot):
        response = await handler.handle(make_request(payload=UPDATE_PAYLOAD))
        await handler.wait_closed()

        assert response.status == 200
        assert response.text == "OK"
        dp.feed_update.assert_awaited_once()
        fed_bot, update = dp.feed_update.await_args.args
        assert fed_bot is bot
        assert update.update_id == 1001
        assert update.message.text == "/start"
        assert handler.pending == 0

    @pytest.mark.asyncio
    async def test_invalid_json_is_acknowledged(self, handler, dp):
        response = await handler.handle(make_request(error=ValueError("Expecting value")))

        assert response.text == "OK"
        dp.feed_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_update_is_acknowledged(self, handler, dp):
        response = await handler.handle(make_request(payload={"message": "nope"}))

        assert response.text == "OK"
        dp.feed_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_processing_errors_do_not_escape(self, handler, dp):
        dp.feed_update.side_effect = RuntimeError("handler crashed")

        response = await handler.handle(make_request(payload=UPDATE_PAYLOAD))
        await handler.wait_closed()

        assert response.text == "OK"
        assert handler.pending == 0


@pytest.mark.unit
class TestCreateApp:
    def test_routes_and_handler_key(self, dp, bot, db_manager):
        app = create_app(dp, bot, db_manager, "/hook")

        assert isinstance(app[WEBHOOK_HANDLER_KEY], WebhookHandler)
        resources = [resource.canonical for resource in app.router.resources()]
        assert resources == ["/hook"]
