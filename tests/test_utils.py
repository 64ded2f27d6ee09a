"""Tests for callback data, formatting helpers, keyboards and admin wizard state."""

from datetime import datetime, timezone

import pytest
from aiogram.types import BotCommandScopeAllPrivateChats

from relaybot.states.admin_states import (
    AwaitingInput,
    Idle,
    MalformedAdminState,
    dump_admin_state,
    parse_admin_state,
)
from relaybot.utils.callback_data import (
    CALLBACK_DATA_LIMIT,
    ConsoleCallback,
    config_cb,
    keyword_ref,
    resolve_keyword_ref,
)
from relaybot.utils.commands import set_bot_commands
from relaybot.utils.formatting import (
    TOPIC_NAME_LIMIT,
    UNKNOWN_TIME,
    build_backup_header,
    build_info_card,
    build_topic_name,
    escape_html,
    format_timestamp,
    shorten,
    to_timestamp,
)
from relaybot.utils.keyboards import get_card_keyboard
from tests.conftest import USER_ID, make_user


@pytest.mark.unit
class TestCallbackData:
    def test_parse_full(self):
        data = ConsoleCallback.parse("config:toggle:enable_link_forwarding:false")

        assert data == ConsoleCallback("config", "toggle", "enable_link_forwarding", "false")

    def test_parse_short(self):
        assert ConsoleCallback.parse("config:menu") == ConsoleCallback("config", "menu", "", "")

    def test_value_may_contain_colons(self):
        data = ConsoleCallback.parse("config:delete:block_keywords:https?://spam")

        assert data.value == "https?://spam"

    def test_pack_skips_empty_parts(self):
        assert config_cb("menu") == "config:menu"
        assert config_cb("menu", "base") == "config:menu:base"

    def test_short_keyword_is_its_own_reference(self):
        assert keyword_ref("casino") == "casino"

    def test_long_keyword_is_hashed(self):
        keyword = "k" * 100
        ref = keyword_ref(keyword)

        assert ref.startswith("#")
        assert len(config_cb("delete", "block_keywords", ref).encode("utf-8")) <= CALLBACK_DATA_LIMIT
        assert resolve_keyword_ref(ref, ["other", keyword]) == keyword

    def test_hash_like_keyword_is_hashed(self):
        assert keyword_ref("#tag") != "#tag"
        assert resolve_keyword_ref(keyword_ref("#tag"), ["#tag"]) == "#tag"

    def test_unknown_reference(self):
        assert resolve_keyword_ref("missing", ["casino"]) is None


@pytest.mark.unit
class TestFormatting:
    def test_escape_html(self):
        assert escape_html("<b>&</b>") == "&lt;b&gt;&amp;&lt;/b&gt;"
        assert escape_html(None) == ""

    def test_to_timestamp(self):
        moment = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

        assert to_timestamp(moment) == 1704110400
        assert to_timestamp(1704110400) == 1704110400
        assert to_timestamp(None) is None

    def test_format_unknown_time(self):
        assert format_timestamp(None) == UNKNOWN_TIME
        assert format_timestamp(0) == UNKNOWN_TIME

    def test_format_known_time(self):
        expected = datetime.fromtimestamp(1704110400).strftime("%d.%m.%Y %H:%M:%S")

        assert format_timestamp(1704110400) == expected

    def test_topic_name(self):
        assert build_topic_name(make_user()) == f"Иван Петров | {USER_ID}"
        assert build_topic_name(make_user(last_name=None)) == f"Иван | {USER_ID}"

    def test_topic_name_is_truncated(self):
        name = build_topic_name(make_user(first_name="Я" * 200))

        assert len(name) == TOPIC_NAME_LIMIT

    def test_info_card_escapes_name(self):
        card = build_info_card(make_user(first_name="<script>", username=None), 1704110400)

        assert "&lt;script&gt;" in card
        assert "Username: <code>нет</code>" in card
        assert f"ID: <code>{USER_ID}</code>" in card

    def test_backup_header_links_user(self):
        header = build_backup_header(make_user())

        assert f'href="tg://user?id={USER_ID}"' in header
        assert "@ivan" in header

    def test_shorten(self):
        assert shorten("abcdef", 3) == "abc..."
        assert shorten("abc", 3) == "abc"
        assert shorten(None, 3) == ""


@pytest.mark.unit
class TestCardKeyboard:
    def test_active_user(self):
        markup = get_card_keyboard(USER_ID, is_blocked=False)

        assert [row[0].callback_data for row in markup.inline_keyboard] == [f"block:{USER_ID}", f"pin_card:{USER_ID}"]

    def test_blocked_user(self):
        markup = get_card_keyboard(str(USER_ID), is_blocked=True)

        assert markup.inline_keyboard[0][0].callback_data == f"unblock:{USER_ID}"


@pytest.mark.unit
class TestAdminState:
    def test_empty_is_idle(self):
        assert isinstance(parse_admin_state(None), Idle)
        assert isinstance(parse_admin_state(""), Idle)

    def test_roundtrip(self):
        state = AwaitingInput(key="verif_q")

        assert parse_admin_state(dump_admin_state(state)) == state

    @pytest.mark.parametrize(
        "raw",
        [
            "{broken",
            '{"action": "dancing"}',
            '{"action": "awaiting_input"}',
            '{"action": "awaiting_input", "key": ""}',
        ],
    )
    def test_malformed(self, raw):
        with pytest.raises(MalformedAdminState):
            parse_admin_state(raw)


@pytest.mark.unit
class TestBotCommands:
    @pytest.mark.asyncio
    async def test_commands_in_private_chats(self, bot):
        await set_bot_commands(bot)

        commands, = bot.set_my_commands.await_args.args
        assert [command.command for command in commands] == ["start", "help", "cancel"]
        assert isinstance(bot.set_my_commands.await_args.kwargs["scope"], BotCommandScopeAllPrivateChats)
