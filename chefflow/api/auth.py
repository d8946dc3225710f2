"""
Authentication API - sign-up, login, current user and role guards
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Union

import bcrypt
import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.database import get_db
from chefflow.models.user import User, UserRole, CONSOLE_ROLES
from chefflow.services.restaurants import (
    add_memberships,
    get_member_restaurant_ids,
    restaurant_exists,
)

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


# --- Password / token helpers ---

def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Malformed hash stored for this account
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# --- Schemas ---

class Token(BaseModel):
    access_token: str
    token_type: str


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    is_restaurant_owner: bool
    primary_restaurant_id: Optional[str]
    current_restaurant_id: Optional[str]
    restaurant_ids: List[str] = []
    created_at: Optional[datetime]
    last_login: Optional[datetime]


class RegisterRequest(BaseModel):
    full_name: str
    email: str
    password: str
    confirm_password: str
    restaurant_id: str
    additional_restaurant_ids: Union[str, List[str], None] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("restaurant_id")
    @classmethod
    def strip_restaurant_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Restaurant ID is required")
        return v

    def all_restaurant_ids(self) -> list[str]:
        """Primary id first, then the additional ones (comma list or array), deduplicated"""
        extra = self.additional_restaurant_ids or []
        if isinstance(extra, str):
            extra = extra.split(",")
        ids = [self.restaurant_id]
        for rid in extra:
            rid = rid.strip()
            if rid and rid not in ids:
                ids.append(rid)
        return ids


async def build_user_response(db: AsyncSession, user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        is_restaurant_owner=bool(user.is_restaurant_owner),
        primary_restaurant_id=user.primary_restaurant_id,
        current_restaurant_id=user.current_restaurant_id,
        restaurant_ids=await get_member_restaurant_ids(db, user.id),
        created_at=user.created_at,
        last_login=user.last_login,
    )


# --- Dependencies ---

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise credentials_exception
    email = payload.get("sub")
    if not email:
        raise credentials_exception

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exception
    return user


async def require_console_access(current_user: User = Depends(get_current_user)) -> User:
    """Only restaurant admins and managers may use the admin console"""
    if current_user.role not in CONSOLE_ROLES:
        raise HTTPException(
            status_code=403,
            detail="Only restaurant admins and managers can access the admin panel.",
        )
    return current_user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


# --- Endpoints ---

@router.post("/register", response_model=UserResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a restaurant owner account linked to one or more existing restaurants"""
    if data.password != data.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if len(data.password) < settings.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
        )

    restaurant_ids = data.all_restaurant_ids()
    for rid in restaurant_ids:
        if not await restaurant_exists(db, rid):
            raise HTTPException(
                status_code=400,
                detail=f'Restaurant ID "{rid}" does not exist. '
                       f'Please contact us to purchase valid restaurant IDs.',
            )

    result = await db.execute(select(User).where(User.email == data.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=data.email,
        full_name=data.full_name.strip(),
        hashed_password=get_password_hash(data.password),
        role=UserRole.MANAGER,
        is_restaurant_owner=True,
        primary_restaurant_id=restaurant_ids[0],
        current_restaurant_id=restaurant_ids[0],
    )
    db.add(user)
    await db.flush()
    await add_memberships(db, user.id, restaurant_ids)
    await db.commit()
    await db.refresh(user)

    logger.info(f"Registered owner {user.email} for restaurants {restaurant_ids}")
    return await build_user_response(db, user)


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).where(User.email == form_data.username.strip().lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login = datetime.utcnow()
    await db.commit()

    token = create_access_token(data={"sub": user.email})
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await build_user_response(db, current_user)
