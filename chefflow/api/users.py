"""
Staff management API - members of the current restaurant
"""
import logging
import secrets
import string
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.database import get_db
from chefflow.models.restaurant import Restaurant, RestaurantMember
from chefflow.models.user import User, UserRole
from chefflow.api.auth import require_console_access, get_password_hash
from chefflow.api.restaurants import get_current_restaurant
from chefflow.services.restaurants import add_memberships, get_member_restaurant_ids, is_member

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()

# Roles that can be assigned from the staff form
STAFF_ROLES = {UserRole.EMPLOYEE, UserRole.MANAGER}

_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = 8) -> str:
    """Random alphanumeric password for new staff accounts"""
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


# --- Schemas ---

class StaffResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    primary_restaurant_id: Optional[str]
    created_at: Optional[datetime]
    last_login: Optional[datetime]

    class Config:
        from_attributes = True


class StaffCreated(StaffResponse):
    generated_password: Optional[str] = None


class StaffCreate(BaseModel):
    email: str
    full_name: str
    role: UserRole = UserRole.EMPLOYEE
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("role")
    @classmethod
    def staff_role_only(cls, v: UserRole) -> UserRole:
        if v not in STAFF_ROLES:
            raise ValueError("Role must be employee or manager")
        return v


class StaffUpdate(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[UserRole] = None
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("role")
    @classmethod
    def staff_role_only(cls, v: Optional[UserRole]) -> Optional[UserRole]:
        if v is not None and v not in STAFF_ROLES:
            raise ValueError("Role must be employee or manager")
        return v


# --- Helpers ---

async def _get_member_or_404(db: AsyncSession, user_id: int, restaurant_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not await is_member(db, user.id, restaurant_id):
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def _check_account_control(db: AsyncSession, current_user: User, user: User) -> None:
    """
    Login details belong to the account, which is shared by all its restaurants.
    Only change them when the caller is a member of every one of them and the
    target is neither an owner nor an admin.
    """
    if user.is_restaurant_owner or user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=403,
            detail="Restaurant owners and admins manage their own login details",
        )
    caller_ids = set(await get_member_restaurant_ids(db, current_user.id))
    target_ids = set(await get_member_restaurant_ids(db, user.id))
    if not target_ids <= caller_ids:
        raise HTTPException(
            status_code=403,
            detail="This user also works in restaurants you do not manage",
        )


def _check_password(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
        )


# --- Endpoints ---

@router.get("/", response_model=List[StaffResponse])
async def list_staff(
    role: Optional[UserRole] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Members of the current restaurant, newest first"""
    query = (
        select(User)
        .join(RestaurantMember, RestaurantMember.user_id == User.id)
        .where(RestaurantMember.restaurant_id == restaurant.id, User.id != current_user.id)
        .order_by(User.created_at.desc(), User.id.desc())
    )
    if role:
        query = query.where(User.role == role)

    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=StaffCreated)
async def create_staff(
    data: StaffCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Create a staff account in the current restaurant"""
    result = await db.execute(select(User).where(User.email == data.email))
    existing = result.scalar_one_or_none()
    if existing:
        if await is_member(db, existing.id, restaurant.id):
            raise HTTPException(status_code=400, detail="This user is already a member of this restaurant")
        raise HTTPException(
            status_code=400,
            detail="An account with this email already exists. Ask them to join this restaurant with its ID.",
        )

    generated = None
    password = data.password
    if password:
        _check_password(password)
    else:
        password = generated = generate_password()

    user = User(
        email=data.email,
        full_name=data.full_name.strip(),
        hashed_password=get_password_hash(password),
        role=data.role,
        is_restaurant_owner=False,
        primary_restaurant_id=restaurant.id,
        current_restaurant_id=restaurant.id,
    )
    db.add(user)
    await db.flush()
    await add_memberships(db, user.id, [restaurant.id])
    await db.commit()
    await db.refresh(user)

    logger.info(f"{current_user.email} added {user.email} ({user.role.value}) to {restaurant.id}")
    response = StaffCreated.model_validate(user)
    response.generated_password = generated
    return response


@router.put("/{user_id}", response_model=StaffResponse)
async def update_staff(
    user_id: int,
    data: StaffUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Update a staff member's name, email, role or password"""
    if user_id == current_user.id:
        raise HTTPException(status_code=403, detail="You cannot edit your own account here")

    user = await _get_member_or_404(db, user_id, restaurant.id)

    changes_login = (
        (data.email and data.email != user.email)
        or (data.role is not None and data.role != user.role)
        or bool(data.password)
    )
    if changes_login:
        await _check_account_control(db, current_user, user)

    if data.email and data.email != user.email:
        result = await db.execute(select(User.id).where(User.email == data.email))
        if result.scalar_one_or_none():
            raise HTTPException(status_code=400, detail="Email already registered")
        user.email = data.email
    if data.full_name is not None:
        user.full_name = data.full_name.strip()
    if data.role is not None:
        user.role = data.role
    if data.password:
        _check_password(data.password)
        user.hashed_password = get_password_hash(data.password)

    await db.commit()
    await db.refresh(user)
    return user


@router.delete("/{user_id}")
async def delete_staff(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_console_access),
    restaurant: Restaurant = Depends(get_current_restaurant),
):
    """Remove a member from the current restaurant; drop the account once it has none left"""
    if user_id == current_user.id:
        raise HTTPException(status_code=403, detail="You cannot delete your own account")

    user = await _get_member_or_404(db, user_id, restaurant.id)

    await db.execute(
        delete(RestaurantMember).where(
            RestaurantMember.user_id == user.id,
            RestaurantMember.restaurant_id == restaurant.id,
        )
    )
    remaining = await db.scalar(
        select(func.count(RestaurantMember.id)).where(RestaurantMember.user_id == user.id)
    )

    account_deleted = False
    if not remaining:
        await db.delete(user)
        account_deleted = True
    else:
        if user.current_restaurant_id == restaurant.id:
            user.current_restaurant_id = None
        if user.primary_restaurant_id == restaurant.id:
            user.primary_restaurant_id = None
    await db.commit()

    logger.info(f"{current_user.email} removed user {user_id} from {restaurant.id}")
    return {"message": "User removed", "account_deleted": account_deleted}
