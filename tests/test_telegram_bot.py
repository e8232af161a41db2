"""
Graphico — Telegram Handler Tests
=================================
Handlers are driven with minimal stand-ins for Update / CallbackQuery / context.
"""

import asyncio
import threading

import pytest

from bot import telegram_bot
from bot.telegram_bot import CONTROLLER_KEY, EDIT_FIELD, EDIT_FIELD_KEY, EDIT_VALUE, RESULT
from graphico.controller import ChallengeController
from graphico.models import DesignCategory


class FakeMessage:
    def __init__(self, text=None):
        self.text = text
        self.replies = []
        self.documents = []

    async def reply_text(self, text, **kwargs):
        self.replies.append((text, kwargs))

    async def reply_document(self, document, filename):
        self.documents.append((filename, document.read()))


class FakeQuery:
    def __init__(self, data):
        self.data = data

    async def answer(self):
        pass

    async def edit_message_reply_markup(self, reply_markup=None):
        pass


class FakeChat:
    id = 42

    async def send_action(self, action):
        pass


class FakeUpdate:
    def __init__(self, data=None, text=None):
        self.callback_query = FakeQuery(data) if data else None
        self.message = self.effective_message = FakeMessage(text)
        self.effective_chat = FakeChat()


class FakeContext:
    def __init__(self, controller):
        self.chat_data = {CONTROLLER_KEY: controller}
        self.user_data = {}


@pytest.fixture
def controller(gateway, make_brief):
    def generator(**kwargs):
        return make_brief("0123456789", client_type=kwargs["client_type"])

    controller = ChallengeController(gateway, generator=generator)
    controller.select_category(DesignCategory.YOUTUBE)
    controller.generate("Gaming")
    return controller


@pytest.fixture
def context(controller):
    return FakeContext(controller)


def _press(data, context):
    update = FakeUpdate(data=data)
    state = asyncio.run(telegram_bot.step_result_callback(update, context))
    return state, update.effective_message


def test_asset_download_runs_off_the_event_loop(context, monkeypatch, tmp_path):
    threads = []
    saved = tmp_path / "asset.jpg"
    saved.write_bytes(b"\xff\xd8jpeg")

    def fake_download(brief, category, dest):
        threads.append(threading.get_ident())
        return saved

    monkeypatch.setattr(telegram_bot, "download_asset", fake_download)
    state, message = _press("res_asset", context)

    assert state == RESULT
    assert threads and threads[0] != threading.get_ident()
    assert message.documents == [("asset.jpg", b"\xff\xd8jpeg")]


def test_failed_asset_download_sends_the_link(context, monkeypatch):
    monkeypatch.setattr(telegram_bot, "download_asset", lambda brief, category, dest: None)
    state, message = _press("res_asset", context)

    assert state == RESULT
    text, _ = message.replies[-1]
    assert "width=1280&height=720" in text


def test_summary_is_sent_as_plain_text(context):
    state, message = _press("res_summary", context)

    assert state == RESULT
    text, kwargs = message.replies[-1]
    assert text.startswith("Project: Level Up Thumbnail")
    assert "parse_mode" not in kwargs


def test_edit_flow_updates_the_brief(context, controller):
    brief_id = controller.current_brief.id

    state, _ = _press("res_edit", context)
    assert state == EDIT_FIELD

    state = asyncio.run(telegram_bot.step_edit_field(FakeUpdate(data="edit_copywriting"), context))
    assert state == EDIT_VALUE
    assert context.user_data[EDIT_FIELD_KEY] == "copywriting"

    update = FakeUpdate(text="GAME ON\nNew season")
    state = asyncio.run(telegram_bot.step_edit_value(update, context))

    assert state == RESULT
    assert controller.current_brief.copywriting == ["GAME ON", "New season"]
    assert controller.current_brief.id == brief_id
    assert EDIT_FIELD_KEY not in context.user_data
    assert "GAME ON" in update.effective_message.replies[-1][0]


def test_invalid_edit_value_asks_again(context, controller):
    context.user_data[EDIT_FIELD_KEY] = "deadline_hours"
    update = FakeUpdate(text="next week")

    state = asyncio.run(telegram_bot.step_edit_value(update, context))

    assert state == EDIT_VALUE
    assert controller.current_brief.deadline_hours == 48
    assert update.effective_message.replies[-1][0].startswith("⚠️")


def test_edit_cancel_returns_to_the_brief(context):
    state = asyncio.run(telegram_bot.step_edit_field(FakeUpdate(data="edit_cancel"), context))
    assert state == RESULT
    assert EDIT_FIELD_KEY not in context.user_data
