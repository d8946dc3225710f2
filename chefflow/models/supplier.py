"""
Supplier registry and delivery temperature logs
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from chefflow.database import Base


class Supplier(Base):
    """A supplier registered for a restaurant; delivery logs reference it by name"""
    __tablename__ = "suppliers"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "name", name="uq_supplier_restaurant_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)

    # Blank reading slots filled in by staff on delivery
    date = Column(String, nullable=False, default="")
    frozen = Column(String, nullable=False, default="")
    chilled = Column(String, nullable=False, default="")
    done = Column(Boolean, default=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    registered_at = Column(DateTime, default=datetime.utcnow)


class DeliveryLog(Base):
    """A recorded delivery with its frozen / chilled temperature readings"""
    __tablename__ = "delivery_logs"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_name = Column(String, nullable=False, index=True)
    date = Column(String, nullable=False, default="")
    frozen = Column(String, nullable=False, default="")
    chilled = Column(String, nullable=False, default="")
    done = Column(Boolean, default=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
