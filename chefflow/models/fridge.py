"""
Fridge registry and daily fridge temperature logs
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from chefflow.database import Base


class Fridge(Base):
    __tablename__ = "fridges"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_fridge_restaurant_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    date = Column(String, nullable=False, default="")
    temperature_am = Column(String, nullable=False, default="")
    temperature_pm = Column(String, nullable=False, default="")
    done = Column(Boolean, default=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    registered_at = Column(DateTime, default=datetime.utcnow)


class FridgeLog(Base):
    __tablename__ = "fridge_logs"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    fridge_name = Column(String, nullable=False, index=True)
    date = Column(String, nullable=False, default="")
    temperature_am = Column(String, nullable=False, default="")
    temperature_pm = Column(String, nullable=False, default="")
    done = Column(Boolean, default=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
