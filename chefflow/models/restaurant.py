"""
Restaurant (tenant) and membership models
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from chefflow.database import Base


class Restaurant(Base):
    """A restaurant venue; every other record hangs off its id"""
    __tablename__ = "restaurants"

    # Human-chosen slug, e.g. "admin-review"
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)

    # Contact info
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)

    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, default=datetime.utcnow)


class RestaurantMember(Base):
    """Links a user account to a restaurant it may work in"""
    __tablename__ = "restaurant_members"
    __table_args__ = (
        UniqueConstraint("user_id", "restaurant_id", name="uq_member_user_restaurant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
