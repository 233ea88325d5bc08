"""
Subscription store: queries against the ``subscriptions`` table.

Every method takes the session of the surrounding unit of work so the caller
decides whether it runs inside a transaction.
"""
from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterator, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import PersistenceError
from app.models import Subscription
from app.services.billing_periods import overlap_months


@dataclass(frozen=True)
class LatestEndDate:
    """End date of the latest subscription for a pair; ``None`` means still active."""

    end_date: Optional[date]


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc), operation=operation) from exc


class SubscriptionRepository:
    def insert(self, session: Session, subscription: Subscription) -> Subscription:
        with _store_errors("subscription.insert"):
            session.add(subscription)
            session.flush()
        return subscription

    def update(
        self,
        session: Session,
        subscription: Subscription,
        values: dict[str, Any],
    ) -> Subscription:
        with _store_errors("subscription.update"):
            for field, value in values.items():
                setattr(subscription, field, value)
            session.flush()
        return subscription

    def delete_by_id(self, session: Session, subscription_id: uuid.UUID) -> int:
        with _store_errors("subscription.delete"):
            return (
                session.query(Subscription)
                .filter(Subscription.id == subscription_id)
                .delete(synchronize_session=False)
            )

    def get_by_id(self, session: Session, subscription_id: uuid.UUID) -> Optional[Subscription]:
        with _store_errors("subscription.get_by_id"):
            return session.query(Subscription).filter(Subscription.id == subscription_id).first()

    def list_by_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        limit: int,
        offset: int,
    ) -> list[Subscription]:
        with _store_errors("subscription.list_by_user"):
            return (
                session.query(Subscription)
                .filter(Subscription.user_id == user_id)
                .order_by(Subscription.start_date.desc(), Subscription.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )

    def latest_end_date_for(
        self,
        session: Session,
        user_id: uuid.UUID,
        service_name: str,
    ) -> Optional[LatestEndDate]:
        """End date of the pair's latest subscription.

        Among subscriptions sharing the latest start month the open-ended or
        later-ending one decides, then the higher id.
        """
        with _store_errors("subscription.latest_end_date"):
            row = (
                session.query(Subscription.end_date)
                .filter(
                    Subscription.user_id == user_id,
                    Subscription.service_name == service_name,
                )
                .order_by(
                    Subscription.start_date.desc(),
                    Subscription.end_date.desc().nulls_first(),
                    Subscription.id.desc(),
                )
                .first()
            )
        if row is None:
            return None
        return LatestEndDate(end_date=row[0])

    def has_overlap(
        self,
        session: Session,
        user_id: uuid.UUID,
        service_name: str,
        start_date: date,
        end_date: Optional[date],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """Whether another subscription of the pair is active inside the given window.

        Windows that only touch at a boundary month do not count, matching the
        create rule where a new start may equal the previous end.
        """
        with _store_errors("subscription.has_overlap"):
            query = session.query(Subscription.id).filter(
                Subscription.user_id == user_id,
                Subscription.service_name == service_name,
                or_(Subscription.end_date.is_(None), Subscription.end_date > start_date),
            )
            if end_date is not None:
                query = query.filter(Subscription.start_date < end_date)
            if exclude_id is not None:
                query = query.filter(Subscription.id != exclude_id)
            return query.first() is not None

    def aggregate_cost(
        self,
        session: Session,
        user_id: uuid.UUID,
        service_name: Optional[str],
        period_start: date,
        period_end: date,
    ) -> int:
        """Sum of monthly cost times overlap months for every matching subscription."""
        with _store_errors("subscription.aggregate_cost"):
            query = session.query(
                Subscription.monthly_cost,
                Subscription.start_date,
                Subscription.end_date,
            ).filter(
                Subscription.user_id == user_id,
                Subscription.start_date <= period_end,
                or_(Subscription.end_date.is_(None), Subscription.end_date >= period_start),
            )
            if service_name:
                query = query.filter(Subscription.service_name == service_name)
            rows = query.all()

        return sum(
            monthly_cost * overlap_months(start_date, end_date, period_start, period_end)
            for monthly_cost, start_date, end_date in rows
        )
