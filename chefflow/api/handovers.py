"""
Shift handovers API - notes and task lists passed between shifts
"""
import time
from datetime import date as date_type, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.database import get_db
from chefflow.models.handover import Handover
from chefflow.models.restaurant import Restaurant
from chefflow.models.user import User
from chefflow.api.auth import require_console_access
from chefflow.api.restaurants import get_current_restaurant
from chefflow.services.restaurants import UNKNOWN_USER, resolve_user_names

settings = get_settings()

router = APIRouter()

Priority = Literal["low", "medium", "high"]
Shift = Literal["morning", "afternoon", "evening"]


# --- Pydantic Schemas ---

class HandoverTask(BaseModel):
    id: str
    description: str
    completed: bool = False
    priority: Priority = "medium"


class HandoverTaskCreate(BaseModel):
    description: str
    completed: bool = False
    priority: Priority = "medium"


class HandoverResponse(BaseModel):
    id: int
    restaurant_id: str
    shift: str
    date: date_type
    handed_over_by: str
    handed_over_to: str
    notes: str
    tasks: List[HandoverTask]
    pdf_link: Optional[str]
    created_by: Optional[int]
    created_by_name: str = UNKNOWN_USER
    created_at: Optional[datetime]


class HandoverCreate(BaseModel):
    shift: Shift = "morning"
    date: Optional[date_type] = None
    handed_over_by: str = ""
    handed_over_to: str = ""
    notes: str = ""
    tasks: List[HandoverTaskCreate] = []
    pdf_link: Optional[str] = None


class TaskUpdate(BaseModel):
    completed: bool


# --- Helpers ---

def _build_handover_response(h: Handover, names: dict) -> HandoverResponse:
    return HandoverResponse(
        id=h.id,
        restaurant_id=h.restaurant_id,
        shift=h.shift,
        date=h.date,
        handed_over_by=h.handed_over_by,
        handed_over_to=h.handed_over_to,
        notes=h.notes,
        tasks=h.tasks or [],
        pdf_link=h.pdf_link,
        created_by=h.created_by,
        created_by_name=names.get(h.created_by, UNKNOWN_USER),
        created_at=h.created_at,
    )


async def _get_handover_or_404(db: AsyncSession, handover_id: int, restaurant_id: str) -> Handover:
    result = await db.execute(
        select(Handover).where(Handover.id == handover_id, Handover.restaurant_id == restaurant_id)
    )
    handover = result.scalar_one_or_none()
    if not handover:
        raise HTTPException(status_code=404, detail="Handover not found")
    return handover


# --- Endpoints ---

@router.get("/", response_model=List[HandoverResponse])
async def list_handovers(
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Most recent handovers first"""
    result = await db.execute(
        select(Handover)
        .where(Handover.restaurant_id == restaurant.id)
        .order_by(Handover.created_at.desc(), Handover.id.desc())
        .limit(settings.HANDOVER_LIST_LIMIT)
    )
    handovers = result.scalars().all()
    names = await resolve_user_names(db, (h.created_by for h in handovers))
    return [_build_handover_response(h, names) for h in handovers]


@router.get("/{handover_id}", response_model=HandoverResponse)
async def get_handover(
    handover_id: int,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    handover = await _get_handover_or_404(db, handover_id, restaurant.id)
    names = await resolve_user_names(db, [handover.created_by])
    return _build_handover_response(handover, names)


@router.post("/", response_model=HandoverResponse)
async def create_handover(
    data: HandoverCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    stamp = int(time.time() * 1000)
    tasks = [
        {"id": f"task-{stamp}-{index}", **task.model_dump()}
        for index, task in enumerate(data.tasks)
    ]

    handover = Handover(
        restaurant_id=restaurant.id,
        shift=data.shift,
        date=data.date or date_type.today(),
        handed_over_by=data.handed_over_by,
        handed_over_to=data.handed_over_to,
        notes=data.notes,
        tasks=tasks,
        pdf_link=data.pdf_link,
        created_by=current_user.id,
    )
    db.add(handover)
    await db.commit()
    await db.refresh(handover)
    return _build_handover_response(handover, {current_user.id: current_user.display_name})


@router.put("/{handover_id}/tasks/{task_id}", response_model=HandoverResponse)
async def update_task(
    handover_id: int,
    task_id: str,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Mark a handover task completed / not completed"""
    handover = await _get_handover_or_404(db, handover_id, restaurant.id)

    tasks = [dict(t) for t in (handover.tasks or [])]
    task = next((t for t in tasks if t.get("id") == task_id), None)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    task["completed"] = data.completed

    # JSON columns only persist on reassignment
    handover.tasks = tasks
    await db.commit()
    await db.refresh(handover)

    names = await resolve_user_names(db, [handover.created_by])
    return _build_handover_response(handover, names)


@router.delete("/{handover_id}")
async def delete_handover(
    handover_id: int,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    handover = await _get_handover_or_404(db, handover_id, restaurant.id)
    await db.delete(handover)
    await db.commit()
    return {"message": "Handover deleted"}
