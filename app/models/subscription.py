"""Subscription model: one row per user subscription to an external service."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, Date, DateTime, Index, Integer, Text, Uuid
from sqlalchemy.sql import func

from app.models import Base


class Subscription(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_user_service_start", "user_id", "service_name", "subs_start_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    service_name = Column(Text, nullable=False)
    monthly_cost = Column("month_cost", Integer, nullable=False)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    start_date = Column("subs_start_date", Date, nullable=False)
    end_date = Column("subs_end_date", Date)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return (
            f"Subscription(id={self.id}, user_id={self.user_id}, "
            f"service_name={self.service_name!r}, start={self.start_date}, end={self.end_date})"
        )
