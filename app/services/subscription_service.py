"""
Subscription Service Layer

Enforces the subscription invariants before touching the store and computes
the cost of a user's subscriptions over a period. Store access goes through
the injected ``SessionProvider``; only the check-then-write operations run
inside a transaction.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import AppError, NotFoundError, OverlapError, ValidationError
from app.database import SessionProvider
from app.models import Subscription
from app.repositories.subscription_repository import SubscriptionRepository
from app.services.billing_periods import ensure_ordered, format_month, month_start

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGE_SIZE = 500


def _validated_fields(
    user_id: uuid.UUID,
    service_name: str,
    monthly_cost: int,
    start_date: date,
    end_date: Optional[date],
) -> dict[str, Any]:
    name = (service_name or "").strip()
    if not name:
        raise ValidationError("service_name must not be empty", field="service_name")
    if monthly_cost is None or monthly_cost < 0:
        raise ValidationError("price must be a non-negative integer", field="price")
    start = month_start(start_date)
    end = month_start(end_date) if end_date is not None else None
    ensure_ordered(start, end, "start_date", "end_date")
    return {
        "user_id": user_id,
        "service_name": name,
        "monthly_cost": monthly_cost,
        "start_date": start,
        "end_date": end,
    }


class SubscriptionService:
    def __init__(
        self,
        provider: SessionProvider,
        repository: SubscriptionRepository,
        today: Callable[[], date] = date.today,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    ):
        self._provider = provider
        self._repository = repository
        self._today = today
        self._max_page_size = max_page_size

    def create(
        self,
        *,
        user_id: uuid.UUID,
        service_name: str,
        monthly_cost: int,
        start_date: date,
        end_date: Optional[date] = None,
    ) -> Subscription:
        """Create a subscription unless the pair's latest subscription is still running.

        The latest subscription for ``(user_id, service_name)`` blocks the new
        one when it is open-ended or ends strictly after the new start month.
        """
        values = _validated_fields(user_id, service_name, monthly_cost, start_date, end_date)
        subscription = Subscription(id=uuid.uuid4(), **values)
        logger.debug(f"Creating subscription {subscription.id} for user {user_id}")

        def work(session: Session) -> Subscription:
            latest = self._repository.latest_end_date_for(
                session, values["user_id"], values["service_name"]
            )
            if latest is not None and (
                latest.end_date is None or latest.end_date > values["start_date"]
            ):
                raise OverlapError(
                    "previous subscription has not ended",
                    user_id=str(values["user_id"]),
                    service_name=values["service_name"],
                    previous_end_date=format_month(latest.end_date) if latest.end_date else None,
                )
            return self._repository.insert(session, subscription)

        try:
            created = self._provider.execute_tx(work, operation="create")
        except OverlapError as exc:
            logger.warning(f"Rejected subscription for user {user_id}: {exc.message}")
            raise exc.wrap("create")
        except AppError as exc:
            logger.exception(f"Failed to create subscription for user {user_id}")
            raise exc.wrap("create")

        logger.info(f"Created subscription {created.id} ({created.service_name}) for user {user_id}")
        return created

    def update(
        self,
        subscription_id: uuid.UUID,
        *,
        user_id: uuid.UUID,
        service_name: str,
        monthly_cost: int,
        start_date: date,
        end_date: Optional[date] = None,
    ) -> Subscription:
        """Replace every mutable field of a subscription; the id never changes."""
        values = _validated_fields(user_id, service_name, monthly_cost, start_date, end_date)
        logger.debug(f"Updating subscription {subscription_id}")

        def work(session: Session) -> Subscription:
            current = self._repository.get_by_id(session, subscription_id)
            if current is None:
                raise NotFoundError(
                    "subscription not found", subscription_id=str(subscription_id)
                )
            if self._repository.has_overlap(
                session,
                values["user_id"],
                values["service_name"],
                values["start_date"],
                values["end_date"],
                exclude_id=subscription_id,
            ):
                raise OverlapError(
                    "another subscription for this service is active in the requested period",
                    user_id=str(values["user_id"]),
                    service_name=values["service_name"],
                )
            return self._repository.update(session, current, values)

        try:
            return self._provider.execute_tx(work, operation="update")
        except (NotFoundError, OverlapError) as exc:
            raise exc.wrap("update")
        except AppError as exc:
            logger.exception(f"Failed to update subscription {subscription_id}")
            raise exc.wrap("update")

    def delete(self, subscription_id: uuid.UUID) -> None:
        logger.debug(f"Deleting subscription {subscription_id}")
        try:
            deleted = self._provider.execute(
                lambda session: self._repository.delete_by_id(session, subscription_id),
                operation="delete",
            )
        except AppError as exc:
            logger.exception(f"Failed to delete subscription {subscription_id}")
            raise exc.wrap("delete")
        if deleted == 0:
            raise NotFoundError(
                "subscription not found",
                operation="delete",
                subscription_id=str(subscription_id),
            )
        logger.info(f"Deleted subscription {subscription_id}")

    def get_by_id(self, subscription_id: uuid.UUID) -> Subscription:
        logger.debug(f"Getting subscription {subscription_id}")
        try:
            subscription = self._provider.execute(
                lambda session: self._repository.get_by_id(session, subscription_id),
                operation="get_by_id",
            )
        except AppError as exc:
            logger.exception(f"Failed to read subscription {subscription_id}")
            raise exc.wrap("get_by_id")
        if subscription is None:
            raise NotFoundError(
                "subscription not found",
                operation="get_by_id",
                subscription_id=str(subscription_id),
            )
        return subscription

    def list_by_user(self, user_id: uuid.UUID, limit: int, offset: int = 0) -> list[Subscription]:
        """Subscriptions of a user, newest start month first."""
        if limit < 1 or limit > self._max_page_size:
            raise ValidationError(
                f"limit must be between 1 and {self._max_page_size}",
                operation="list_by_user",
                field="limit",
            )
        if offset < 0:
            raise ValidationError(
                "offset must not be negative", operation="list_by_user", field="offset"
            )
        logger.debug(f"Listing subscriptions for user {user_id} (limit={limit}, offset={offset})")
        try:
            return self._provider.execute(
                lambda session: self._repository.list_by_user(session, user_id, limit, offset),
                operation="list_by_user",
            )
        except AppError as exc:
            logger.exception(f"Failed to list subscriptions for user {user_id}")
            raise exc.wrap("list_by_user")

    def total_cost(
        self,
        user_id: uuid.UUID,
        period_start: date,
        period_end: Optional[date] = None,
        service_name: Optional[str] = None,
    ) -> int:
        """
        Total cost of a user's subscriptions over an inclusive range of months.

        Each matching subscription contributes its monthly cost times the number
        of months it shares with the period. Without ``period_end`` the period
        runs through the current month; a period that would then start in the
        future costs nothing yet.
        """
        start = month_start(period_start)
        if period_end is None:
            end = month_start(self._today())
            if start > end:
                return 0
        else:
            end = month_start(period_end)
            try:
                ensure_ordered(start, end, "start_date", "end_date")
            except ValidationError as exc:
                raise exc.wrap("total_cost")

        name_filter = (service_name or "").strip() or None
        logger.debug(
            f"Calculating total cost for user {user_id} "
            f"({name_filter or 'all services'}, {format_month(start)}..{format_month(end)})"
        )
        try:
            return self._provider.execute(
                lambda session: self._repository.aggregate_cost(
                    session, user_id, name_filter, start, end
                ),
                operation="total_cost",
            )
        except AppError as exc:
            logger.exception(f"Failed to calculate total cost for user {user_id}")
            raise exc.wrap("total_cost")
