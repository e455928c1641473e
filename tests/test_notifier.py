import pytest
from aiogram.exceptions import TelegramBadRequest, TelegramNetworkError

from services.notifier import TelegramNotifier


class FakeBot:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def send_message(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


async def test_send_uses_html_and_channel():
    bot = FakeBot()
    notifier = TelegramNotifier(bot, "@listings")

    assert await notifier.send("<b>hi</b>") is True
    assert bot.calls == [{
        "chat_id": "@listings",
        "text": "<b>hi</b>",
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }]


@pytest.mark.parametrize(
    "error",
    [
        TelegramNetworkError(method=None, message="connection reset"),
        TelegramBadRequest(method=None, message="can't parse entities"),
        RuntimeError("session closed"),
    ],
)
async def test_send_failures_return_false(error):
    notifier = TelegramNotifier(FakeBot(error), -100123)

    assert await notifier.send("text") is False
