"""System API - scheduler, backups and health"""

import os
from datetime import datetime
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from posadmin.api.api_v1.endpoints.history import create_history
from posadmin.core.config import settings
from posadmin.core.deps import get_db, require_permission
from posadmin.models import Staff
from posadmin.services.inventory import mark_expired_batches
from posadmin.services.scheduler import get_backup_dir, get_scheduler_status, trigger_backup_now

router = APIRouter()


@router.get("/health")
async def health_check(*, db: AsyncSession = Depends(get_db)) -> Any:
    """Database round trip"""
    await db.execute(text("SELECT 1"))
    return {
        "status": "healthy",
        "project": settings.PROJECT_NAME,
        "time": datetime.utcnow().isoformat()
    }


@router.get("/scheduler")
async def scheduler_status(
    *,
    current_staff: Staff = Depends(require_permission("system.manage"))) -> Any:
    """Scheduled jobs and their next run"""
    return get_scheduler_status()


@router.get("/backups")
async def list_backups(
    *,
    current_staff: Staff = Depends(require_permission("system.manage"))) -> Any:
    """Backup files, newest first"""
    backup_dir = get_backup_dir()
    backups = []
    for filename in os.listdir(backup_dir):
        if filename.endswith(".db"):
            stat = os.stat(os.path.join(backup_dir, filename))
            backups.append({
                "filename": filename,
                "size": stat.st_size,
                "size_display": f"{stat.st_size / 1024 / 1024:.2f} MB",
                "created_at": datetime.fromtimestamp(stat.st_mtime).isoformat()
            })
    backups.sort(key=lambda b: b["created_at"], reverse=True)
    return {"data": backups, "total": len(backups)}


@router.post("/backup")
async def backup_now(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("system.manage"))) -> Any:
    """Run the backup job immediately"""
    filename = trigger_backup_now()
    if not filename:
        raise HTTPException(status_code=500, detail="Backup failed")

    await create_history(
        db,
        staff_id=current_staff.id,
        action_type="BACKUP_CREATED",
        entity_type="system",
        message=filename
    )
    await db.commit()

    return {"message": "Backup created", "filename": filename}


@router.post("/expire-batches")
async def expire_batches_now(
    *,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_permission("system.manage"))) -> Any:
    """Run the expired-batch sweep immediately"""
    count = await mark_expired_batches(db)
    await db.commit()
    return {"message": "Expired batches marked", "count": count}
