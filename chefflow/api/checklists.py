"""
Checklists API - closing list, prep list and order list.

The three lists share one table and the same endpoints; each gets its own
router built by `build_checklist_router`. The closing router also exposes the
manual reset.
"""
import logging
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.database import get_db
from chefflow.models.checklist import ChecklistItem, ChecklistType
from chefflow.models.restaurant import Restaurant
from chefflow.models.user import User
from chefflow.api.auth import require_console_access
from chefflow.api.restaurants import get_current_restaurant
from chefflow.services.closing_reset import TRIGGER_MANUAL, reset_closing_checklists

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---

class ChecklistItemResponse(BaseModel):
    id: int
    list_type: ChecklistType
    name: str
    description: Optional[str]
    frequency: Optional[str]
    priority: Optional[str]
    done: bool
    completed_at: Optional[datetime]
    completed_by: Optional[int]
    created_by: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class ChecklistCounts(BaseModel):
    all: int
    pending: int
    completed: int


class ChecklistResponse(BaseModel):
    items: List[ChecklistItemResponse]
    counts: ChecklistCounts


class ChecklistItemCreate(BaseModel):
    name: str
    description: Optional[str] = None
    frequency: Optional[str] = None
    priority: Optional[str] = None


class ChecklistItemUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    frequency: Optional[str] = None
    priority: Optional[str] = None


def build_checklist_router(list_type: ChecklistType) -> APIRouter:
    router = APIRouter()

    async def _get_item_or_404(db: AsyncSession, item_id: int, restaurant_id: str) -> ChecklistItem:
        result = await db.execute(
            select(ChecklistItem).where(
                ChecklistItem.id == item_id,
                ChecklistItem.restaurant_id == restaurant_id,
                ChecklistItem.list_type == list_type,
            )
        )
        item = result.scalar_one_or_none()
        if not item:
            raise HTTPException(status_code=404, detail="Item not found")
        return item

    @router.get("/", response_model=ChecklistResponse)
    async def list_items(
        status: Literal["all", "pending", "completed"] = "all",
        db: AsyncSession = Depends(get_db),
        restaurant: Restaurant = Depends(get_current_restaurant),
    ):
        """Items newest first, filtered by status, with per-status counts"""
        scope = (ChecklistItem.restaurant_id == restaurant.id, ChecklistItem.list_type == list_type)

        query = select(ChecklistItem).where(*scope).order_by(
            ChecklistItem.created_at.desc(), ChecklistItem.id.desc()
        )
        if status == "pending":
            query = query.where(ChecklistItem.done.is_(False))
        elif status == "completed":
            query = query.where(ChecklistItem.done.is_(True))
        result = await db.execute(query)
        items = result.scalars().all()

        total = await db.scalar(select(func.count(ChecklistItem.id)).where(*scope))
        completed = await db.scalar(
            select(func.count(ChecklistItem.id)).where(*scope, ChecklistItem.done.is_(True))
        )
        return ChecklistResponse(
            items=[ChecklistItemResponse.model_validate(i) for i in items],
            counts=ChecklistCounts(all=total, pending=total - completed, completed=completed),
        )

    @router.post("/", response_model=ChecklistItemResponse)
    async def create_item(
        data: ChecklistItemCreate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_console_access),
        restaurant: Restaurant = Depends(get_current_restaurant),
    ):
        name = data.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Item name is required")

        item = ChecklistItem(
            restaurant_id=restaurant.id,
            list_type=list_type,
            name=name,
            description=data.description,
            frequency=data.frequency,
            priority=data.priority,
            done=False,
            created_by=current_user.id,
        )
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    @router.put("/{item_id}", response_model=ChecklistItemResponse)
    async def update_item(
        item_id: int,
        data: ChecklistItemUpdate,
        db: AsyncSession = Depends(get_db),
        restaurant: Restaurant = Depends(get_current_restaurant),
    ):
        item = await _get_item_or_404(db, item_id, restaurant.id)
        if data.name is not None and not data.name.strip():
            raise HTTPException(status_code=400, detail="Item name is required")

        for key, value in data.model_dump(exclude_none=True).items():
            setattr(item, key, value.strip() if key == "name" else value)
        await db.commit()
        await db.refresh(item)
        return item

    @router.post("/{item_id}/toggle", response_model=ChecklistItemResponse)
    async def toggle_item(
        item_id: int,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_console_access),
        restaurant: Restaurant = Depends(get_current_restaurant),
    ):
        """Flip done; completion time and user are recorded when marking done"""
        item = await _get_item_or_404(db, item_id, restaurant.id)
        item.done = not item.done
        if item.done:
            item.completed_at = datetime.utcnow()
            item.completed_by = current_user.id
        else:
            item.completed_at = None
            item.completed_by = None
        await db.commit()
        await db.refresh(item)
        return item

    @router.delete("/{item_id}")
    async def delete_item(
        item_id: int,
        db: AsyncSession = Depends(get_db),
        restaurant: Restaurant = Depends(get_current_restaurant),
    ):
        item = await _get_item_or_404(db, item_id, restaurant.id)
        await db.delete(item)
        await db.commit()
        return {"message": "Item deleted"}

    return router


closing_router = build_checklist_router(ChecklistType.CLOSING)
prep_router = build_checklist_router(ChecklistType.PREP)
order_router = build_checklist_router(ChecklistType.ORDER)


@closing_router.post("/reset")
async def reset_closing(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
):
    """Manually reset completed closing items across all restaurants"""
    logger.info(f"Manual closing reset triggered by {current_user.email}")
    try:
        result = await reset_closing_checklists(db, TRIGGER_MANUAL)
    except Exception as e:
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    total = result["total_items_reset"]
    return {
        "success": True,
        "totalItemsReset": total,
        "message": f"Successfully reset {total} closing checklist items across all restaurants.",
    }
