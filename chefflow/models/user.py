"""
User account model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from datetime import datetime
from enum import Enum
from chefflow.database import Base


class UserRole(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"


# Roles allowed into the admin console
CONSOLE_ROLES = {UserRole.MANAGER, UserRole.ADMIN}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole, native_enum=False), nullable=False, default=UserRole.EMPLOYEE)
    is_restaurant_owner = Column(Boolean, default=False)

    # Primary restaurant chosen at sign-up / creation, and the one currently selected
    primary_restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True)
    current_restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or "Unknown User"
