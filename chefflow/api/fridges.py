"""
Fridges API - fridge registry and AM / PM temperature logs
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.database import get_db
from chefflow.models.fridge import Fridge, FridgeLog
from chefflow.models.restaurant import Restaurant
from chefflow.models.user import User
from chefflow.api.auth import require_console_access
from chefflow.api.restaurants import get_current_restaurant

logger = logging.getLogger(__name__)

router = APIRouter()


class FridgeCreate(BaseModel):
    name: str


class FridgeLogCreate(BaseModel):
    fridge_name: str
    date: str = ""
    temperature_am: str = ""
    temperature_pm: str = ""


class FridgeLogResponse(BaseModel):
    id: int
    fridge_name: str
    date: str
    temperature_am: str
    temperature_pm: str
    done: bool
    created_by: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


async def _get_fridge(db: AsyncSession, restaurant_id: str, name: str) -> Optional[Fridge]:
    result = await db.execute(
        select(Fridge).where(Fridge.restaurant_id == restaurant_id, Fridge.name == name)
    )
    return result.scalar_one_or_none()


async def _fridge_names(db: AsyncSession, restaurant_id: str) -> List[str]:
    result = await db.execute(
        select(Fridge.name).where(Fridge.restaurant_id == restaurant_id).distinct().order_by(Fridge.name)
    )
    return list(result.scalars().all())


@router.get("/", response_model=List[str])
async def list_fridges(
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    return await _fridge_names(db, restaurant.id)


@router.post("/", response_model=List[str])
async def add_fridge(
    data: FridgeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Fridge name is required")
    if await _get_fridge(db, restaurant.id, name):
        raise HTTPException(status_code=400, detail="Fridge already exists")

    db.add(Fridge(restaurant_id=restaurant.id, name=name, created_by=current_user.id))
    await db.commit()
    logger.info(f"Fridge '{name}' registered for {restaurant.id}")
    return await _fridge_names(db, restaurant.id)


@router.get("/logs", response_model=List[FridgeLogResponse])
async def list_fridge_logs(
    fridge: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    query = (
        select(FridgeLog)
        .where(FridgeLog.restaurant_id == restaurant.id)
        .order_by(FridgeLog.created_at.desc(), FridgeLog.id.desc())
    )
    if fridge:
        query = query.where(FridgeLog.fridge_name == fridge)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/logs", response_model=FridgeLogResponse)
async def add_fridge_log(
    data: FridgeLogCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    fridge_name = data.fridge_name.strip()
    if not await _get_fridge(db, restaurant.id, fridge_name):
        raise HTTPException(status_code=400, detail=f'Fridge "{fridge_name}" is not registered')

    log = FridgeLog(
        restaurant_id=restaurant.id,
        fridge_name=fridge_name,
        date=data.date,
        temperature_am=data.temperature_am,
        temperature_pm=data.temperature_pm,
        done=True,
        created_by=current_user.id,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


@router.delete("/{name}")
async def delete_fridge(
    name: str,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    fridge = await _get_fridge(db, restaurant.id, name)
    if not fridge:
        raise HTTPException(status_code=404, detail="Fridge not found")
    await db.delete(fridge)
    await db.commit()
    return {"message": f"Fridge '{name}' deleted"}
