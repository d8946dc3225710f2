"""
Shift handover model
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, JSON
from datetime import datetime, date
from chefflow.database import Base


class Handover(Base):
    __tablename__ = "handovers"

    id = Column(Integer, primary_key=True, index=True)
    restaurant_id = Column(String, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False, index=True)
    shift = Column(String, nullable=False, default="morning")  # morning, afternoon, evening
    date = Column(Date, nullable=False, default=date.today)
    handed_over_by = Column(String, nullable=False, default="")
    handed_over_to = Column(String, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")

    # [{"id": "task-...", "description": ..., "completed": bool, "priority": "medium"}]
    tasks = Column(JSON, nullable=False, default=list)
    pdf_link = Column(String, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
