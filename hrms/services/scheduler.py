"""
Scheduler Service
- Monthly leave credit (1st of every month)
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from hrms.core.config import SchedulerSettings

logger = logging.getLogger(__name__)

MONTHLY_CREDIT_JOB_ID = "monthly_leave_credit"


def run_monthly_credit(session_factory: Callable[[], Session], timezone: str, force: bool = False) -> Optional[dict]:
    """Open a dedicated session and credit every active employee for the current month."""
    from hrms.services.leave_engine import LeaveEngine
    from hrms.stores.sql import sql_stores

    credit_date = datetime.now(ZoneInfo(timezone)).date()
    logger.info(f"⏰ Starting monthly leave credit for {credit_date.isoformat()}")
    db = session_factory()
    try:
        results = LeaveEngine(sql_stores(db)).run_monthly_credit(credit_date, force=force)
        logger.info(
            f"✅ Monthly leave credit: credited={len(results['credited'])}, "
            f"skipped={len(results['skipped'])}, errors={len(results['errors'])}"
        )
        return results
    except Exception as e:
        logger.error(f"❌ Monthly leave credit failed: {e}", exc_info=True)
        return None
    finally:
        db.close()


async def monthly_credit_job(session_factory: Callable[[], Session], timezone: str):
    # The job talks to the database synchronously; keep it off the event loop
    return await asyncio.to_thread(run_monthly_credit, session_factory, timezone)


def create_scheduler(session_factory: Callable[[], Session], config: SchedulerSettings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=config.timezone)
    scheduler.add_job(
        monthly_credit_job,
        CronTrigger(day=1, hour=config.credit_hour, minute=config.credit_minute, timezone=config.timezone),
        args=[session_factory, config.timezone],
        id=MONTHLY_CREDIT_JOB_ID,
        name="Monthly leave credit",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    logger.info(
        f"📅 Monthly leave credit scheduled: day 1 at {config.credit_hour:02d}:{config.credit_minute:02d} "
        f"({config.timezone})"
    )
    return scheduler


def get_scheduler_status(scheduler: Optional[AsyncIOScheduler]) -> dict:
    if scheduler is None:
        return {"running": False, "jobs": []}
    jobs = []
    for job in scheduler.get_jobs():
        # Jobs added before start() have no next run time yet
        next_run = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": next_run.isoformat() if next_run else None,
        })
    return {"running": scheduler.running, "jobs": jobs}


def shutdown_scheduler(scheduler: Optional[AsyncIOScheduler]):
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("🛑 Scheduler stopped")
