"""
System log - audit trail for background jobs such as the closing reset
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON
from datetime import datetime
from chefflow.database import Base


class SystemLog(Base):
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False, index=True)  # daily_closing_reset, manual_closing_reset
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    total_restaurants = Column(Integer, nullable=True)
    total_items_reset = Column(Integer, nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    error = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)  # {"executed_at": "3AM_GMT+1"} / {"triggered_by": "http_request"}
