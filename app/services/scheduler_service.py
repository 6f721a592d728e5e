"""
Сервис планировщика периодических задач
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings

logger = logging.getLogger(__name__)


class SchedulerService:
    """Сервис для управления периодическими задачами"""

    def __init__(self, reap_interval_seconds: Optional[int] = None):
        self.scheduler = AsyncIOScheduler()
        self.reap_interval_seconds = (
            reap_interval_seconds or settings.hold_reap_interval_seconds
        )
        self._jobs_registered = False

    def register_jobs(self):
        """Регистрация всех периодических задач"""
        if self._jobs_registered:
            logger.warning("Jobs already registered")
            return

        if not settings.enable_hold_reaper:
            logger.info("Hold reaper is disabled in settings")
            return

        # Импортируем здесь чтобы избежать циклических зависимостей
        from app.jobs.hold_reaper_job import reap_expired_holds_job

        self.scheduler.add_job(
            reap_expired_holds_job,
            IntervalTrigger(seconds=self.reap_interval_seconds),
            id="hold_reaper",
            name="Reap expired holds",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(
            f"Registered hold reaper job (every {self.reap_interval_seconds} seconds)"
        )
        self._jobs_registered = True

    def start(self):
        """Запуск планировщика"""
        if not self.scheduler.running:
            self.register_jobs()
            self.scheduler.start()
            logger.info("Scheduler started")
        else:
            logger.warning("Scheduler already running")

    def shutdown(self):
        """Остановка планировщика"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    def get_jobs(self):
        return self.scheduler.get_jobs()


# Глобальный экземпляр
scheduler_service = SchedulerService()
