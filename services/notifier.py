# services/notifier.py
import logging
from typing import Union

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramNetworkError

from utils.error_handling import DeliveryError

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Posts alerts to one channel. Failures are reported, never raised."""

    def __init__(self, bot: Bot, chat_id: Union[int, str]):
        self.bot = bot
        self.chat_id = chat_id

    async def _deliver(self, text: str):
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=text,
                parse_mode="HTML",
                disable_web_page_preview=True
            )
        except TelegramNetworkError as e:
            raise DeliveryError(f"network error: {e}") from e
        except TelegramAPIError as e:
            raise DeliveryError(f"Telegram API rejected message: {e}") from e

    async def send(self, text: str) -> bool:
        try:
            await self._deliver(text)
        except DeliveryError as e:
            logger.error(f"❌ Failed to send Telegram message: {e}")
            return False
        except Exception as e:
            logger.error(f"❌ Unexpected error while sending to Telegram: {type(e).__name__} - {e}")
            return False

        logger.debug(f"✅ Message delivered to {self.chat_id}")
        return True
