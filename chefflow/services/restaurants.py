"""
Restaurant-scope helpers: existence checks, memberships and user-name lookups
shared by the API routers and the background jobs.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.models.restaurant import Restaurant, RestaurantMember
from chefflow.models.user import User

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


async def get_restaurant(db: AsyncSession, restaurant_id: str) -> Optional[Restaurant]:
    result = await db.execute(select(Restaurant).where(Restaurant.id == restaurant_id))
    return result.scalar_one_or_none()


async def restaurant_exists(db: AsyncSession, restaurant_id: str) -> bool:
    return await get_restaurant(db, restaurant_id) is not None


async def ensure_restaurant_exists(
    db: AsyncSession,
    restaurant_id: str,
    name: Optional[str] = None,
    **fields,
) -> tuple[Restaurant, bool]:
    """Return (restaurant, created). Missing restaurants are created with defaults."""
    restaurant = await get_restaurant(db, restaurant_id)
    if restaurant:
        return restaurant, False

    restaurant = Restaurant(
        id=restaurant_id,
        name=name or restaurant_id,
        status=fields.pop("status", "active"),
        created_at=fields.pop("created_at", None) or datetime.utcnow(),
        **fields,
    )
    db.add(restaurant)
    await db.flush()
    logger.info(f"Created restaurant {restaurant_id}")
    return restaurant, True


async def get_member_restaurant_ids(db: AsyncSession, user_id: int) -> list[str]:
    """Restaurant ids a user belongs to, in the order they were joined"""
    result = await db.execute(
        select(RestaurantMember.restaurant_id)
        .where(RestaurantMember.user_id == user_id)
        .order_by(RestaurantMember.created_at, RestaurantMember.id)
    )
    return list(result.scalars().all())


async def is_member(db: AsyncSession, user_id: int, restaurant_id: str) -> bool:
    result = await db.execute(
        select(RestaurantMember.id).where(
            RestaurantMember.user_id == user_id,
            RestaurantMember.restaurant_id == restaurant_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def add_memberships(db: AsyncSession, user_id: int, restaurant_ids: Iterable[str]) -> list[str]:
    """Add memberships with set-union semantics; returns the full list afterwards."""
    current = await get_member_restaurant_ids(db, user_id)
    for restaurant_id in restaurant_ids:
        if restaurant_id in current:
            continue
        db.add(RestaurantMember(user_id=user_id, restaurant_id=restaurant_id))
        current.append(restaurant_id)
    await db.flush()
    return current


async def load_available_restaurants(db: AsyncSession, restaurant_ids: list[str]) -> list[dict]:
    """[{id, name}] for the given ids, skipping ones that no longer exist"""
    if not restaurant_ids:
        return []
    result = await db.execute(select(Restaurant).where(Restaurant.id.in_(restaurant_ids)))
    by_id = {r.id: r for r in result.scalars().all()}

    restaurants = []
    for restaurant_id in restaurant_ids:
        restaurant = by_id.get(restaurant_id)
        if restaurant is None:
            logger.warning(f"Membership points at missing restaurant {restaurant_id}")
            continue
        restaurants.append({"id": restaurant.id, "name": restaurant.name or restaurant.id})
    return restaurants


async def resolve_user_names(db: AsyncSession, user_ids: Iterable[Optional[int]]) -> dict[int, str]:
    """Map user ids to display names (full name, else email, else Unknown User)"""
    ids = {uid for uid in user_ids if uid is not None}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    names = {u.id: u.display_name for u in result.scalars().all()}
    return {uid: names.get(uid, UNKNOWN_USER) for uid in ids}
