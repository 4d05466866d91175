import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from core.config import settings
from core.exceptions import SyncException
from ingestion.service import run_sync

logger = logging.getLogger(__name__)


def cron_expression(hour: int, minute: int) -> str:
    """Daily crontab line firing at hour:minute"""
    return f"{minute} {hour} * * *"


class SyncScheduler:
    def __init__(self, hour: int = None, minute: int = None):
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.hour = settings.SCHEDULE_HOUR if hour is None else hour
        self.minute = settings.SCHEDULE_MINUTE if minute is None else minute

    async def run_sync_job(self):
        """Job to run the channel sync"""
        logger.info("Scheduler: Starting sync job")
        try:
            result = await run_sync(trigger="scheduler")
            logger.info(
                f"Scheduler: sync finished ({result.status.value}), "
                f"{result.records_written} records written"
            )
        except SyncException as e:
            logger.error(f"Scheduler: sync job failed - {e.message}")

    def start(self):
        """Start the scheduler"""
        expression = cron_expression(self.hour, self.minute)
        self.scheduler.add_job(
            self.run_sync_job,
            trigger=CronTrigger.from_crontab(expression, timezone="UTC"),
            id="channel_sync_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Sync scheduler started ({expression} UTC)")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Sync scheduler stopped")
