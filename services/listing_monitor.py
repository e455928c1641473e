# services/listing_monitor.py
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from config import Settings
from listings.token_record import TokenRecord
from services.alert_state import AlertAction, AlertLevel, AlertStateTracker
from services.message_builder import ListingMessageFormatter
from utils.error_handling import safe_task

logger = logging.getLogger(__name__)

CHECK_JOB_ID = "listing_check"
UPGRADE_JOB_PREFIX = "upgrade_recheck_"


class ListingMonitor:
    """
    Polls CMC for the newest listing and posts alerts for it.

    A listing that shows up without address/platform gets a partial alert
    right away plus one delayed re-check; once the data is complete the full
    alert follows. State is committed only after Telegram accepted the post.
    """

    def __init__(
            self,
            fetcher,
            tracker: AlertStateTracker,
            notifier,
            scheduler: AsyncIOScheduler,
            settings: Settings,
            store=None,
    ):
        self.fetcher = fetcher
        self.tracker = tracker
        self.notifier = notifier
        self.scheduler = scheduler
        self.settings = settings
        self.store = store
        self.last_seen_id: Optional[int] = None
        # held from decide() until commit so two paths never post the same level twice
        self._alert_lock = asyncio.Lock()

    # === SCHEDULING ===
    def start(self):
        self.scheduler.add_job(
            self.check_latest,
            IntervalTrigger(seconds=self.settings.poll_interval_seconds),
            id=CHECK_JOB_ID,
            name="CMC Listing Check",
            next_run_time=datetime.now(timezone.utc),
            replace_existing=True,
        )
        logger.info(
            f"⏰ Listing check every {self.settings.poll_interval_seconds:.0f}s, "
            f"upgrade re-check after {self.settings.upgrade_delay_seconds:.0f}s"
        )

    @staticmethod
    def upgrade_job_id(token_id: int) -> str:
        return f"{UPGRADE_JOB_PREFIX}{token_id}"

    def schedule_upgrade(self, token_id: int):
        run_at = datetime.now(timezone.utc) + timedelta(seconds=self.settings.upgrade_delay_seconds)
        self.scheduler.add_job(
            self.recheck_upgrade,
            DateTrigger(run_date=run_at),
            args=[token_id],
            id=self.upgrade_job_id(token_id),
            name=f"Upgrade re-check {token_id}",
            replace_existing=True,
        )
        logger.info(f"⏳ Upgrade re-check for token {token_id} scheduled at {run_at:%H:%M:%S} UTC")

    def cancel_upgrade(self, token_id: int) -> bool:
        try:
            self.scheduler.remove_job(self.upgrade_job_id(token_id))
        except JobLookupError:
            return False
        logger.info(f"🗑️ Pending upgrade re-check for token {token_id} cancelled")
        return True

    def _cancel_stale_upgrades(self, newest_id: int):
        for job in self.scheduler.get_jobs():
            if not job.id.startswith(UPGRADE_JOB_PREFIX):
                continue
            token_id = int(job.id[len(UPGRADE_JOB_PREFIX):])
            if token_id != newest_id:
                self.cancel_upgrade(token_id)

    # === CYCLES ===
    @safe_task("Listing Check")
    async def check_latest(self):
        record = await self.fetcher.fetch_latest()
        if record is None:
            logger.info("📭 No token fetched this cycle")
            return

        if record.id != self.last_seen_id:
            if self.last_seen_id is not None:
                logger.info(f"🆕 Newest listing changed: {self.last_seen_id} -> {record.id}")
            self._cancel_stale_upgrades(record.id)
            self.last_seen_id = record.id

        async with self._alert_lock:
            decision = self.tracker.decide(record.id, record.has_full_info)
            if decision.action == AlertAction.NOTHING:
                logger.info(
                    f"No new alert for {record.name} ({record.id}), "
                    f"level {self.tracker.level_of(record.id).name}"
                )
                return

            sent = await self._send_alert(record, decision.new_level)

        if sent and decision.action == AlertAction.SEND_PARTIAL:
            self.schedule_upgrade(record.id)
        elif sent:
            self.cancel_upgrade(record.id)

    @safe_task("Upgrade Re-check")
    async def recheck_upgrade(self, token_id: int):
        """Single fetch that may only upgrade `token_id` from PARTIAL to FULL."""
        if self.tracker.level_of(token_id) != AlertLevel.PARTIAL:
            logger.info(f"Upgrade re-check for {token_id} skipped: level is {self.tracker.level_of(token_id).name}")
            return

        record = await self.fetcher.fetch_latest()
        if record is None:
            logger.info(f"📭 Upgrade re-check for {token_id}: nothing fetched")
            return

        if record.id != token_id:
            logger.info(f"Upgrade re-check for {token_id} dropped: newest listing is now {record.id}")
            return

        async with self._alert_lock:
            decision = self.tracker.decide(record.id, record.has_full_info)
            if decision.action != AlertAction.SEND_FULL:
                logger.info(f"⌛ {record.name} ({record.id}) not upgraded, level {self.tracker.level_of(record.id).name}")
                return

            await self._send_alert(record, decision.new_level)

    async def _send_alert(self, record: TokenRecord, level: AlertLevel) -> bool:
        full = level == AlertLevel.FULL
        upgrade = full and self.tracker.level_of(record.id) == AlertLevel.PARTIAL
        text = ListingMessageFormatter.format_listing(record, full=full, footer=self.settings.promo_text)

        if not await self.notifier.send(text):
            logger.warning(f"⚠️ {level.name} alert for {record.name} ({record.id}) not delivered, will retry")
            return False

        self.tracker.commit(record.id, level)
        if self.store is not None:
            await self.store.save(record.id, level)

        if upgrade:
            logger.info(f"🔁 Upgraded alert to FULL for: {record.name} ({record.id})")
        else:
            logger.info(f"✅ Sent {level.name} alert for: {record.name} ({record.id})")
        return True
