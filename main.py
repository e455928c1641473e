# main.py
import asyncio
import logging
import signal
import sys
from pathlib import Path

from aiogram import Bot
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import Settings, load_settings
from database import AlertStateStore
from listings.cmc_client import CoinMarketCapClient
from services.alert_state import AlertStateTracker
from services.keep_alive import start_keep_alive
from services.listing_monitor import ListingMonitor
from services.notifier import TelegramNotifier
from utils.error_handling import critical_error_handler

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    Path("logs").mkdir(exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('logs/bot.log', encoding='utf-8'),
            logging.StreamHandler()
        ]
    )
    # apscheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


async def restore_state(settings: Settings, tracker: AlertStateTracker):
    """Opens the state DB and replays recent alert levels. Returns None when disabled."""
    if not settings.state_db_path:
        logger.warning("⚠️ STATE_DB_PATH is empty, alert state will not survive restarts")
        return None

    store = AlertStateStore(settings.state_db_path)
    await store.init()
    tracker.restore(await store.load_recent(settings.state_max_entries))
    return store


def install_stop_handlers(stop_event: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows: KeyboardInterrupt still stops asyncio.run()
            pass


# === MAIN ===
async def main():
    # handlers first so configuration errors land in logs/bot.log too
    setup_logging()
    settings = load_settings()
    logging.getLogger().setLevel(settings.log_level)

    logger.info("=" * 60)
    logger.info("🚀 CMC NEW LISTING BOT - STARTING")
    logger.info("=" * 60)

    bot = Bot(token=settings.telegram_bot_token)
    fetcher = CoinMarketCapClient(
        api_key=settings.cmc_api_key,
        base_url=settings.cmc_base_url,
        timeout=settings.http_timeout
    )
    scheduler = AsyncIOScheduler(timezone="UTC")
    tracker = AlertStateTracker(max_entries=settings.state_max_entries)
    keep_alive_runner = None
    stop_event = asyncio.Event()

    try:
        # 1. Alert state
        logger.info("📦 Loading alert state...")
        store = await restore_state(settings, tracker)

        # 2. Scheduler
        monitor = ListingMonitor(
            fetcher=fetcher,
            tracker=tracker,
            notifier=TelegramNotifier(bot, settings.telegram_channel_id),
            scheduler=scheduler,
            settings=settings,
            store=store,
        )
        monitor.start()
        scheduler.start()
        logger.info("✅ Scheduler started")

        # 3. Keep-alive
        keep_alive_runner = await start_keep_alive(
            settings.keep_alive_host,
            settings.port,
            settings.keep_alive_body
        )

        install_stop_handlers(stop_event)
        logger.info("=" * 60)
        await stop_event.wait()
        logger.info("🛑 Stop signal received")

    except Exception as e:
        await critical_error_handler("Critical error in main()", e)
        sys.exit(1)

    finally:
        logger.info("🧹 Cleaning up...")

        if scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("✅ Scheduler stopped")

        if keep_alive_runner is not None:
            await keep_alive_runner.cleanup()

        await fetcher.close()
        await bot.session.close()
        logger.info("✅ Bot session closed")

        logger.info("=" * 60)
        logger.info("👋 BOT STOPPED")
        logger.info("=" * 60)


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped with Ctrl+C")


if __name__ == "__main__":
    run()
