"""
Background job scheduler
APScheduler jobs: daily database backup and the expired-batch sweep
"""

import os
import shutil
import logging
from datetime import datetime
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from posadmin.core.config import settings
from posadmin.db.session import SessionLocal
from posadmin.services.inventory import mark_expired_batches

logger = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


def get_db_path() -> str:
    """SQLite database file path"""
    db_url = settings.SQLITE_DATABASE_URI
    if db_url.startswith("sqlite+aiosqlite:///"):
        return db_url.replace("sqlite+aiosqlite:///", "")
    if db_url.startswith("sqlite:///"):
        return db_url.replace("sqlite:///", "")
    return "./posadmin.db"


def get_backup_dir() -> str:
    """Backups live next to the database file"""
    db_path = get_db_path()
    backup_dir = os.path.join(os.path.dirname(os.path.abspath(db_path)), "backups")
    os.makedirs(backup_dir, exist_ok=True)
    return backup_dir


def auto_backup() -> Optional[str]:
    """Copy the database file; returns the backup file name"""
    try:
        db_path = get_db_path()
        if not os.path.exists(db_path):
            logger.warning(f"Database file not found: {db_path}")
            return None

        backup_dir = get_backup_dir()
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_filename = f"auto_backup_{timestamp}.db"
        backup_path = os.path.join(backup_dir, backup_filename)

        shutil.copy2(db_path, backup_path)

        size_mb = os.stat(backup_path).st_size / 1024 / 1024
        logger.info(f"✅ Backup finished: {backup_filename} ({size_mb:.2f} MB)")

        cleanup_old_backups(backup_dir, keep_count=settings.AUTO_BACKUP_KEEP_COUNT)
        return backup_filename

    except OSError as e:
        logger.error(f"❌ Backup failed: {str(e)}")
        return None


def cleanup_old_backups(backup_dir: str, keep_count: int = 7) -> int:
    """Keep only the newest `keep_count` automatic backups"""
    auto_backups = []
    for filename in os.listdir(backup_dir):
        if filename.startswith("auto_backup_") and filename.endswith(".db"):
            filepath = os.path.join(backup_dir, filename)
            auto_backups.append((os.stat(filepath).st_mtime, filename, filepath))

    # newest first
    auto_backups.sort(reverse=True)

    removed = 0
    for _, filename, filepath in auto_backups[keep_count:]:
        try:
            os.remove(filepath)
            removed += 1
            logger.info(f"🗑️ Removed old backup: {filename}")
        except OSError as e:
            logger.warning(f"Could not remove old backup {filename}: {str(e)}")
    return removed


async def expire_batches() -> int:
    """Mark product batches past their expiry date"""
    try:
        async with SessionLocal() as db:
            count = await mark_expired_batches(db)
            await db.commit()
        if count:
            logger.info(f"⌛ Expired batches marked: {count}")
        return count
    except Exception as e:
        logger.error(f"❌ Expiry sweep failed: {str(e)}")
        return 0


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.AUTO_BACKUP_ENABLED and not settings.EXPIRY_SWEEP_ENABLED:
        logger.info("⏰ Scheduled jobs disabled")
        return

    scheduler = AsyncIOScheduler()

    if settings.AUTO_BACKUP_ENABLED:
        scheduler.add_job(
            auto_backup,
            trigger=CronTrigger(
                hour=settings.AUTO_BACKUP_HOUR,
                minute=settings.AUTO_BACKUP_MINUTE
            ),
            id="auto_backup",
            name="Database backup",
            replace_existing=True
        )

    if settings.EXPIRY_SWEEP_ENABLED:
        scheduler.add_job(
            expire_batches,
            trigger=CronTrigger(
                hour=settings.EXPIRY_SWEEP_HOUR,
                minute=settings.EXPIRY_SWEEP_MINUTE
            ),
            id="expire_batches",
            name="Expired batch sweep",
            replace_existing=True
        )

    scheduler.start()
    logger.info(
        f"⏰ Scheduler started - backup {settings.AUTO_BACKUP_HOUR:02d}:{settings.AUTO_BACKUP_MINUTE:02d}, "
        f"expiry sweep {settings.EXPIRY_SWEEP_HOUR:02d}:{settings.EXPIRY_SWEEP_MINUTE:02d}"
    )


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Scheduler stopped")


def get_scheduler_status() -> dict:
    if not scheduler:
        return {
            "enabled": False,
            "running": False,
            "jobs": []
        }

    jobs = [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None
        }
        for job in scheduler.get_jobs()
    ]

    return {
        "enabled": True,
        "running": scheduler.running,
        "jobs": jobs
    }


def trigger_backup_now() -> Optional[str]:
    """Manual backup"""
    return auto_backup()
