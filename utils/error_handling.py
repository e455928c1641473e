# utils/error_handling.py
import functools
import logging
import traceback

logger = logging.getLogger(__name__)


class ListingFetchError(Exception):
    """Listings API answered with an error or a payload we cannot use."""


class DeliveryError(Exception):
    """Telegram rejected the message or could not be reached."""


def safe_task(name: str):
    """
    Decorator for scheduled coroutines: one failed run is logged and swallowed
    so the scheduler keeps firing the job on the next tick.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"❌ Task '{name}' failed: {type(e).__name__} - {e}")
                logger.debug(traceback.format_exc())
                return None

        return wrapper

    return decorator


async def critical_error_handler(context: str, error: Exception):
    """Logs an error the bot cannot continue after (startup, main loop)."""
    logger.critical(f"🚨 {context}: {type(error).__name__} - {error}", exc_info=error)
