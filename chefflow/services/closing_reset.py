"""
Nightly closing checklist reset.

Every completed closing-list item in every restaurant is set back to not
done, once a day at CLOSING_RESET_HOUR (Europe/Paris by default), and on
demand through POST /api/closing/reset or scripts/reset_closing.py.
Each run leaves a row in system_logs.
"""
import asyncio
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.database import AsyncSessionLocal
from chefflow.models.checklist import ChecklistItem, ChecklistType
from chefflow.models.restaurant import Restaurant
from chefflow.models.system_log import SystemLog
from chefflow.utils.logger import get_logger

logger = get_logger(__name__)

TRIGGER_SCHEDULED = "scheduled"
TRIGGER_MANUAL = "manual"

_ACTIONS = {
    TRIGGER_SCHEDULED: "daily_closing_reset",
    TRIGGER_MANUAL: "manual_closing_reset",
}
_DETAILS = {
    TRIGGER_SCHEDULED: {"executed_at": "3AM_GMT+1"},
    TRIGGER_MANUAL: {"triggered_by": "http_request"},
}


async def reset_closing_checklists(db: AsyncSession, trigger: str = TRIGGER_SCHEDULED) -> dict:
    """
    Reset completed closing items for all restaurants.

    Returns {"total_restaurants", "total_items_reset"}. Failures are written
    to system_logs with success=False and then re-raised.
    """
    action = _ACTIONS[trigger]
    logger.info(f"Starting {action}")

    try:
        result = await db.execute(select(Restaurant.id).order_by(Restaurant.id))
        restaurant_ids = list(result.scalars().all())

        total_reset = 0
        for restaurant_id in restaurant_ids:
            reset = await db.execute(
                update(ChecklistItem)
                .where(
                    ChecklistItem.restaurant_id == restaurant_id,
                    ChecklistItem.list_type == ChecklistType.CLOSING,
                    ChecklistItem.done.is_(True),
                )
                .values(done=False)
            )
            if reset.rowcount:
                await db.commit()
                total_reset += reset.rowcount
                logger.info(f"Reset {reset.rowcount} closing items for restaurant {restaurant_id}")

        db.add(SystemLog(
            action=action,
            total_restaurants=len(restaurant_ids),
            total_items_reset=total_reset,
            success=True,
            details=_DETAILS[trigger],
        ))
        await db.commit()
    except Exception as e:
        logger.error(f"Error during {action}: {e}")
        await db.rollback()
        db.add(SystemLog(action=action, success=False, error=str(e)))
        await db.commit()
        raise

    logger.info(f"{action} completed. Total items reset: {total_reset}")
    return {"total_restaurants": len(restaurant_ids), "total_items_reset": total_reset}


def next_run_after(now: datetime, hour: Optional[int] = None, timezone: Optional[str] = None) -> datetime:
    """Next HOUR:00 in the reset timezone strictly after `now` (an aware datetime)"""
    settings = get_settings()
    hour = settings.CLOSING_RESET_HOUR if hour is None else hour
    tz = ZoneInfo(timezone or settings.CLOSING_RESET_TIMEZONE)

    local_now = now.astimezone(tz)
    candidate = datetime(local_now.year, local_now.month, local_now.day, hour, tzinfo=tz)
    if candidate <= local_now:
        next_day = local_now.date() + timedelta(days=1)
        candidate = datetime(next_day.year, next_day.month, next_day.day, hour, tzinfo=tz)
    return candidate


async def run_closing_reset_once(trigger: str = TRIGGER_SCHEDULED) -> dict:
    async with AsyncSessionLocal() as db:
        return await reset_closing_checklists(db, trigger)


async def start_closing_reset_scheduler():
    """Background loop that runs the reset every day at the configured hour."""
    settings = get_settings()

    if not settings.CLOSING_RESET_ENABLED:
        logger.info("Closing checklist reset disabled")
        return

    logger.info(
        f"Closing reset scheduler started: daily at {settings.CLOSING_RESET_HOUR:02d}:00 "
        f"{settings.CLOSING_RESET_TIMEZONE}"
    )

    while True:
        now = datetime.now(ZoneInfo(settings.CLOSING_RESET_TIMEZONE))
        run_at = next_run_after(now)
        await asyncio.sleep(max(run_at.timestamp() - now.timestamp(), 0))

        try:
            await run_closing_reset_once(TRIGGER_SCHEDULED)
        except Exception as e:
            logger.error(f"Closing reset scheduler error: {e}")
