"""
Checklist items - closing list, prep list and order list share one table
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum
from datetime import datetime
from enum import Enum
from chefflow.database import Base


class ChecklistType(str, Enum):
    CLOSING = "closing"
    PREP = "prep"
    ORDER = "order"


class ChecklistItem(Base):
    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    list_type = Column(SQLEnum(ChecklistType, native_enum=False), nullable=False, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(String, nullable=True)  # daily, weekly, monthly
    priority = Column(String, nullable=True)   # low, medium, high

    done = Column(Boolean, default=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
