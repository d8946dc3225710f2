"""
Suppliers API - supplier registry and delivery temperature logs
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.database import get_db
from chefflow.models.restaurant import Restaurant
from chefflow.models.supplier import Supplier, DeliveryLog
from chefflow.models.user import User
from chefflow.api.auth import require_console_access
from chefflow.api.restaurants import get_current_restaurant

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class SupplierCreate(BaseModel):
    name: str


class DeliveryLogCreate(BaseModel):
    supplier_name: str
    date: str = ""
    frozen: str = ""
    chilled: str = ""


class DeliveryLogResponse(BaseModel):
    id: int
    supplier_name: str
    date: str
    frozen: str
    chilled: str
    done: bool
    created_by: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


async def _get_supplier(db: AsyncSession, restaurant_id: str, name: str) -> Optional[Supplier]:
    result = await db.execute(
        select(Supplier).where(Supplier.restaurant_id == restaurant_id, Supplier.name == name)
    )
    return result.scalar_one_or_none()


# --- Endpoints ---

@router.get("/", response_model=List[str])
async def list_suppliers(
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Registered supplier names"""
    result = await db.execute(
        select(Supplier.name)
        .where(Supplier.restaurant_id == restaurant.id)
        .distinct()
        .order_by(Supplier.name)
    )
    return list(result.scalars().all())


@router.post("/", response_model=List[str])
async def add_supplier(
    data: SupplierCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    name = data.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Supplier name is required")
    if await _get_supplier(db, restaurant.id, name):
        raise HTTPException(status_code=400, detail="Supplier already exists")

    db.add(Supplier(restaurant_id=restaurant.id, name=name, created_by=current_user.id))
    await db.commit()
    logger.info(f"Supplier '{name}' registered for {restaurant.id}")
    return await list_suppliers(db=db, restaurant=restaurant)


@router.get("/deliveries", response_model=List[DeliveryLogResponse])
async def list_deliveries(
    supplier: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Delivery readings, newest first"""
    query = (
        select(DeliveryLog)
        .where(DeliveryLog.restaurant_id == restaurant.id)
        .order_by(DeliveryLog.created_at.desc(), DeliveryLog.id.desc())
    )
    if supplier:
        query = query.where(DeliveryLog.supplier_name == supplier)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/deliveries", response_model=DeliveryLogResponse)
async def add_delivery(
    data: DeliveryLogCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Record the frozen / chilled temperatures of a delivery"""
    supplier_name = data.supplier_name.strip()
    if not await _get_supplier(db, restaurant.id, supplier_name):
        raise HTTPException(status_code=400, detail=f'Supplier "{supplier_name}" is not registered')

    log = DeliveryLog(
        restaurant_id=restaurant.id,
        supplier_name=supplier_name,
        date=data.date,
        frozen=data.frozen,
        chilled=data.chilled,
        done=True,
        created_by=current_user.id,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


@router.delete("/{name}")
async def delete_supplier(
    name: str,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Remove a supplier registration; its delivery logs are kept"""
    supplier = await _get_supplier(db, restaurant.id, name)
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found")
    await db.delete(supplier)
    await db.commit()
    return {"message": f"Supplier '{name}' deleted"}
