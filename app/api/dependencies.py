"""Shared API dependencies."""
from fastapi import Depends

from app.config import settings
from app.database import SessionProvider, get_session_provider
from app.repositories.subscription_repository import SubscriptionRepository
from app.services.subscription_service import SubscriptionService


def get_subscription_service(
    provider: SessionProvider = Depends(get_session_provider),
) -> SubscriptionService:
    return SubscriptionService(
        provider,
        SubscriptionRepository(),
        max_page_size=settings.max_page_size,
    )


__all__ = ["get_session_provider", "get_subscription_service"]
