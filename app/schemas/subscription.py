from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models import Subscription
from app.services.billing_periods import format_month


class SubscriptionCreate(BaseModel):
    service_name: str
    price: int
    user_id: uuid.UUID
    start_date: str
    end_date: Optional[str] = None


class SubscriptionUpdate(SubscriptionCreate):
    pass


class SubscriptionSchema(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0f8fad5b-d9cb-469f-a165-70867728950e",
                "service_name": "Yandex Plus",
                "price": 400,
                "user_id": "60601fee-2bf1-4721-ae6f-7636e79a0cba",
                "start_date": "07-2025",
                "end_date": None,
            }
        }
    )

    id: uuid.UUID
    service_name: str
    price: int
    user_id: uuid.UUID
    start_date: str
    end_date: Optional[str] = None

    @classmethod
    def from_model(cls, row: Subscription) -> "SubscriptionSchema":
        return cls(
            id=row.id,
            service_name=row.service_name,
            price=row.monthly_cost,
            user_id=row.user_id,
            start_date=format_month(row.start_date),
            end_date=format_month(row.end_date) if row.end_date else None,
        )


class TotalCostSchema(BaseModel):
    total_cost: int


class MessageSchema(BaseModel):
    message: str
