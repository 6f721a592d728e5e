"""
Периодическая задача: удаление просроченных холдов (proposed bookings)
"""
import logging

logger = logging.getLogger(__name__)


async def reap_expired_holds_job():
    """
    Removes holds whose TTL has passed.

    Reads already ignore expired holds, so a missed or failed run only leaves
    dead rows behind until the next one.
    """
    try:
        from app.database import AsyncSessionLocal
        from app.services.hold_service import hold_service

        async with AsyncSessionLocal() as session:
            removed = await hold_service.reap_expired(session)

        if removed:
            logger.info(f"Hold reaper removed {removed} expired holds")
        else:
            logger.debug("No expired holds to reap")

    except Exception as e:
        logger.error(f"Hold reaper job failed: {e}", exc_info=True)
