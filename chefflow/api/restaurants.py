"""
Restaurants API - session context, switching, joining and restaurant info
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.database import get_db
from chefflow.models.restaurant import Restaurant
from chefflow.models.user import User
from chefflow.api.auth import get_current_user, require_console_access, require_admin
from chefflow.services.restaurants import (
    add_memberships,
    ensure_restaurant_exists,
    get_member_restaurant_ids,
    get_restaurant,
    is_member,
    load_available_restaurants,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Schemas ---

class RestaurantSummary(BaseModel):
    id: str
    name: str


class RestaurantResponse(BaseModel):
    id: str
    name: str
    address: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class RestaurantCreate(BaseModel):
    id: str
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class RestaurantUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class SessionContext(BaseModel):
    restaurant_id: Optional[str]
    restaurant_name: Optional[str]
    role: str
    available_restaurants: List[RestaurantSummary]


class SwitchRequest(BaseModel):
    restaurant_id: str


class JoinRequest(BaseModel):
    restaurant_ids: List[str]


class JoinValidation(BaseModel):
    valid: List[RestaurantSummary]
    errors: List[str]


# --- Dependencies ---

async def get_current_restaurant(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
) -> Restaurant:
    """The restaurant the signed-in user is working in"""
    restaurant_id = current_user.current_restaurant_id or current_user.primary_restaurant_id
    if not restaurant_id:
        raise HTTPException(status_code=403, detail="No restaurant selected for this user")
    if not await is_member(db, current_user.id, restaurant_id):
        raise HTTPException(status_code=403, detail="You are not a member of this restaurant")

    restaurant = await get_restaurant(db, restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant ID does not exist")
    return restaurant


# --- Helpers ---

async def _resolve_initial_restaurant(db: AsyncSession, user: User, member_ids: list[str]) -> Optional[Restaurant]:
    """Saved selection if still a member, otherwise the primary restaurant"""
    candidate = user.current_restaurant_id
    if not candidate or candidate not in member_ids:
        candidate = user.primary_restaurant_id or (member_ids[0] if member_ids else None)
    if not candidate:
        return None
    restaurant = await get_restaurant(db, candidate)
    if restaurant is None:
        logger.error(f"Restaurant {candidate} for user {user.email} does not exist")
    return restaurant


async def validate_join_ids(db: AsyncSession, user: User, restaurant_ids: list[str]) -> JoinValidation:
    member_ids = await get_member_restaurant_ids(db, user.id)
    valid: list[RestaurantSummary] = []
    errors: list[str] = []

    for raw_id in restaurant_ids:
        rid = raw_id.strip()
        if not rid:
            errors.append("Please enter a restaurant ID")
            continue
        if any(r.id == rid for r in valid):
            errors.append(f'"{rid}" is already in your list')
            continue
        restaurant = await get_restaurant(db, rid)
        if not restaurant:
            errors.append(f'Restaurant "{rid}" does not exist')
            continue
        if rid in member_ids:
            errors.append(f'You have already joined "{rid}"')
            continue
        valid.append(RestaurantSummary(id=rid, name=restaurant.name or rid))

    return JoinValidation(valid=valid, errors=errors)


# --- Endpoints ---

@router.get("/context", response_model=SessionContext)
async def get_context(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Restaurant scope of the signed-in user"""
    member_ids = await get_member_restaurant_ids(db, current_user.id)
    available = await load_available_restaurants(db, member_ids)
    restaurant = await _resolve_initial_restaurant(db, current_user, member_ids)

    if restaurant and current_user.current_restaurant_id != restaurant.id:
        current_user.current_restaurant_id = restaurant.id
        await db.commit()

    return SessionContext(
        restaurant_id=restaurant.id if restaurant else None,
        restaurant_name=(restaurant.name or restaurant.id) if restaurant else None,
        role=current_user.role.value,
        available_restaurants=available,
    )


@router.post("/switch", response_model=SessionContext)
async def switch_restaurant(
    data: SwitchRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Make another of the user's restaurants the current one"""
    restaurant = await get_restaurant(db, data.restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant does not exist")
    if not await is_member(db, current_user.id, restaurant.id):
        raise HTTPException(status_code=403, detail="You are not a member of this restaurant")

    current_user.current_restaurant_id = restaurant.id
    await db.commit()
    logger.info(f"{current_user.email} switched to restaurant {restaurant.id}")

    member_ids = await get_member_restaurant_ids(db, current_user.id)
    return SessionContext(
        restaurant_id=restaurant.id,
        restaurant_name=restaurant.name or restaurant.id,
        role=current_user.role.value,
        available_restaurants=await load_available_restaurants(db, member_ids),
    )


@router.post("/join/validate", response_model=JoinValidation)
async def validate_join(
    data: JoinRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Check restaurant ids before joining them"""
    return await validate_join_ids(db, current_user, data.restaurant_ids)


@router.post("/join", response_model=List[RestaurantSummary])
async def join_restaurants(
    data: JoinRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Join one or more existing restaurants at once"""
    if not data.restaurant_ids:
        raise HTTPException(status_code=400, detail="Please add at least one restaurant to join")

    validation = await validate_join_ids(db, current_user, data.restaurant_ids)
    if validation.errors:
        raise HTTPException(status_code=400, detail="; ".join(validation.errors))

    member_ids = await add_memberships(db, current_user.id, [r.id for r in validation.valid])
    await db.commit()
    logger.info(f"{current_user.email} joined {len(validation.valid)} restaurant(s)")
    return await load_available_restaurants(db, member_ids)


@router.post("/")
async def create_restaurant(
    data: RestaurantCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Provision a restaurant id (no-op when it already exists)"""
    restaurant_id = data.id.strip()
    if not restaurant_id:
        raise HTTPException(status_code=400, detail="Restaurant ID is required")

    fields = data.model_dump(exclude={"id", "name"}, exclude_none=True)
    restaurant, created = await ensure_restaurant_exists(db, restaurant_id, name=data.name, **fields)
    await db.commit()
    return {
        "created": created,
        "restaurant": RestaurantResponse.model_validate(restaurant),
    }


@router.get("/current", response_model=RestaurantResponse)
async def get_current(restaurant: Restaurant = Depends(get_current_restaurant)):
    return restaurant


@router.put("/current", response_model=RestaurantResponse)
async def update_current(
    data: RestaurantUpdate,
    db: AsyncSession = Depends(get_db),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Update the current restaurant's name and contact fields"""
    for key, value in data.model_dump(exclude_none=True).items():
        setattr(restaurant, key, value)
    await db.commit()
    await db.refresh(restaurant)
    return restaurant
