import asyncio
import logging

from app.core.config import settings
from app.database import get_db
from app.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)


class ReminderScheduler:
    def __init__(self, interval_seconds: int = None, initial_delay_seconds: int = None):
        self.running = False
        self.task = None
        self.interval_seconds = max(1, interval_seconds or settings.REMINDER_INTERVAL_SECONDS)
        self.initial_delay_seconds = max(
            0,
            settings.SCHEDULER_INITIAL_DELAY_SECONDS if initial_delay_seconds is None else initial_delay_seconds,
        )

    async def start(self):
        """Start the reminder scheduler"""
        if self.running:
            logger.warning("Reminder scheduler is already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run_scheduler())
        logger.info("Reminder scheduler started")

    async def stop(self):
        """Stop the reminder scheduler"""
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass

        logger.info("Reminder scheduler stopped")

    async def _run_scheduler(self):
        """Main scheduler loop"""
        # Avoid sending on server boot
        if self.initial_delay_seconds:
            logger.info(f"Scheduler initial delay: {self.initial_delay_seconds}s")
            await asyncio.sleep(self.initial_delay_seconds)

        while self.running:
            try:
                await asyncio.to_thread(self.run_once)
            except Exception as e:
                logger.error(f"Error in reminder scheduler: {e}")
            await asyncio.sleep(self.interval_seconds)

    def run_once(self) -> dict:
        db_gen = get_db()
        db = next(db_gen)
        try:
            result = ReminderService(db).send_reminders()
            if result["processed"]:
                logger.info(f"Scheduled reminders: {result['sent']} sent, {result['failed']} failed")
            return result
        finally:
            db_gen.close()


# Global scheduler instance
reminder_scheduler = ReminderScheduler()


async def start_reminder_scheduler():
    """Start the reminder scheduler (call this when the app starts)"""
    await reminder_scheduler.start()


async def stop_reminder_scheduler():
    """Stop the reminder scheduler (call this when the app shuts down)"""
    await reminder_scheduler.stop()
