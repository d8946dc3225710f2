"""
System logs API - audit trail of background jobs
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.database import get_db
from chefflow.models.system_log import SystemLog
from chefflow.models.user import User
from chefflow.api.auth import require_console_access

router = APIRouter()


class SystemLogResponse(BaseModel):
    id: int
    action: str
    timestamp: Optional[datetime]
    total_restaurants: Optional[int]
    total_items_reset: Optional[int]
    success: bool
    error: Optional[str]
    details: Optional[dict]

    class Config:
        from_attributes = True


@router.get("/", response_model=List[SystemLogResponse])
async def list_system_logs(
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
):
    query = select(SystemLog).order_by(SystemLog.timestamp.desc(), SystemLog.id.desc()).limit(limit)
    if action:
        query = query.where(SystemLog.action == action)
    result = await db.execute(query)
    return result.scalars().all()
