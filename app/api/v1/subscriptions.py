from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_subscription_service
from app.config import settings
from app.schemas.subscription import (
    MessageSchema,
    SubscriptionCreate,
    SubscriptionSchema,
    SubscriptionUpdate,
    TotalCostSchema,
)
from app.services.billing_periods import parse_month, parse_optional_month
from app.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=SubscriptionSchema, status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionCreate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.create(
        user_id=payload.user_id,
        service_name=payload.service_name,
        monthly_cost=payload.price,
        start_date=parse_month(payload.start_date, "start_date"),
        end_date=parse_optional_month(payload.end_date, "end_date"),
    )
    return SubscriptionSchema.from_model(subscription)


@router.get("/", response_model=list[SubscriptionSchema])
def list_subscriptions(
    user_id: uuid.UUID,
    limit: Optional[int] = None,
    offset: int = 0,
    service: SubscriptionService = Depends(get_subscription_service),
):
    page_size = settings.default_page_size if limit is None else limit
    rows = service.list_by_user(user_id, page_size, offset)
    logger.info(f"Listed {len(rows)} subscriptions for user {user_id}")
    return [SubscriptionSchema.from_model(row) for row in rows]


@router.get("/total-cost", response_model=TotalCostSchema)
def total_cost(
    user_id: uuid.UUID,
    start_date: str = Query(..., description="First month of the period, MM-YYYY"),
    end_date: Optional[str] = Query(None, description="Last month of the period, MM-YYYY"),
    service_name: Optional[str] = None,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Total subscription cost over an inclusive range of months."""
    total = service.total_cost(
        user_id,
        parse_month(start_date, "start_date"),
        parse_optional_month(end_date, "end_date"),
        service_name=service_name,
    )
    return TotalCostSchema(total_cost=total)


@router.get("/{subscription_id}", response_model=SubscriptionSchema)
def get_subscription(
    subscription_id: uuid.UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    return SubscriptionSchema.from_model(service.get_by_id(subscription_id))


@router.put("/{subscription_id}", response_model=SubscriptionSchema)
def update_subscription(
    subscription_id: uuid.UUID,
    payload: SubscriptionUpdate,
    service: SubscriptionService = Depends(get_subscription_service),
):
    subscription = service.update(
        subscription_id,
        user_id=payload.user_id,
        service_name=payload.service_name,
        monthly_cost=payload.price,
        start_date=parse_month(payload.start_date, "start_date"),
        end_date=parse_optional_month(payload.end_date, "end_date"),
    )
    return SubscriptionSchema.from_model(subscription)


@router.delete("/{subscription_id}", response_model=MessageSchema)
def delete_subscription(
    subscription_id: uuid.UUID,
    service: SubscriptionService = Depends(get_subscription_service),
):
    service.delete(subscription_id)
    return MessageSchema(message="Subscription deleted successfully")
