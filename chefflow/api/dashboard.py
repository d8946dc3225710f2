"""
Dashboard API - restaurant header, open item counts and recent activity feed
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.database import get_db
from chefflow.models.checklist import ChecklistItem, ChecklistType
from chefflow.models.fridge import FridgeLog
from chefflow.models.supplier import DeliveryLog
from chefflow.models.user import User
from chefflow.api.auth import require_console_access
from chefflow.services.restaurants import (
    UNKNOWN_USER,
    get_member_restaurant_ids,
    get_restaurant,
    load_available_restaurants,
    resolve_user_names,
)

settings = get_settings()

router = APIRouter()

# Newest entries taken from each source before merging
PER_SOURCE_LIMIT = 5

CHECKLIST_TITLES = {
    ChecklistType.PREP: ("prep", "Prep Item"),
    ChecklistType.ORDER: ("order", "Order Item"),
    ChecklistType.CLOSING: ("closing", "Closing Item"),
}


class ActivityItem(BaseModel):
    id: str
    type: str
    title: str
    timestamp: Optional[datetime]
    user_name: str
    status: Optional[str] = None


class DashboardStats(BaseModel):
    total_prep_items: int
    total_order_items: int
    total_closing_items: int


class DashboardRestaurant(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class DashboardResponse(BaseModel):
    restaurant: DashboardRestaurant
    stats: DashboardStats
    recent_activity: List[ActivityItem]
    available_restaurants: List[dict]


async def _open_count(db: AsyncSession, restaurant_id: str, list_type: ChecklistType) -> int:
    count = await db.scalar(
        select(func.count(ChecklistItem.id)).where(
            ChecklistItem.restaurant_id == restaurant_id,
            ChecklistItem.list_type == list_type,
            ChecklistItem.done.is_(False),
        )
    )
    return count or 0


async def _recent(db: AsyncSession, model, *conditions) -> list:
    result = await db.execute(
        select(model)
        .where(*conditions)
        .order_by(model.created_at.desc(), model.id.desc())
        .limit(PER_SOURCE_LIMIT)
    )
    return list(result.scalars().all())


async def build_recent_activity(db: AsyncSession, restaurant_id: str) -> List[ActivityItem]:
    """Latest entries of every list and log, merged newest first"""
    rows = []
    for list_type, (kind, label) in CHECKLIST_TITLES.items():
        items = await _recent(
            db, ChecklistItem,
            ChecklistItem.restaurant_id == restaurant_id,
            ChecklistItem.list_type == list_type,
        )
        rows += [
            (f"{kind}-{i.id}", kind, f"{label}: {i.name or 'Unknown item'}", i.created_at,
             i.created_by, "done" if i.done else "pending")
            for i in items
        ]

    fridge_logs = await _recent(db, FridgeLog, FridgeLog.restaurant_id == restaurant_id)
    rows += [
        (f"fridge-{log.id}", "fridge", f"Fridge Log: {log.fridge_name}", log.created_at, log.created_by, None)
        for log in fridge_logs
    ]

    deliveries = await _recent(db, DeliveryLog, DeliveryLog.restaurant_id == restaurant_id)
    rows += [
        (f"delivery-{log.id}", "delivery", f"Temperature Log: {log.supplier_name}", log.created_at,
         log.created_by, None)
        for log in deliveries
    ]

    names = await resolve_user_names(db, (row[4] for row in rows))
    activities = [
        ActivityItem(
            id=row_id,
            type=kind,
            title=title,
            timestamp=timestamp,
            user_name=names.get(created_by, UNKNOWN_USER),
            status=status,
        )
        for row_id, kind, title, timestamp, created_by, status in rows
    ]
    activities.sort(key=lambda a: a.timestamp or datetime.min, reverse=True)
    return activities[:settings.RECENT_ACTIVITY_LIMIT]


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
):
    restaurant_id = current_user.current_restaurant_id or current_user.primary_restaurant_id
    if not restaurant_id:
        raise HTTPException(status_code=403, detail="No restaurant selected for this user")

    member_ids = await get_member_restaurant_ids(db, current_user.id)
    if restaurant_id not in member_ids:
        raise HTTPException(status_code=403, detail="You are not a member of this restaurant")

    restaurant = await get_restaurant(db, restaurant_id)
    if restaurant:
        info = DashboardRestaurant(
            id=restaurant.id,
            name=restaurant.name or restaurant.id,
            address=restaurant.address,
            phone=restaurant.phone,
            email=restaurant.email,
        )
    else:
        info = DashboardRestaurant(id=restaurant_id, name=restaurant_id)

    return DashboardResponse(
        restaurant=info,
        stats=DashboardStats(
            total_prep_items=await _open_count(db, restaurant_id, ChecklistType.PREP),
            total_order_items=await _open_count(db, restaurant_id, ChecklistType.ORDER),
            total_closing_items=await _open_count(db, restaurant_id, ChecklistType.CLOSING),
        ),
        recent_activity=await build_recent_activity(db, restaurant_id),
        available_restaurants=await load_available_restaurants(db, member_ids),
    )
