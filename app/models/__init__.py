"""
SQLAlchemy models for the subscription tracker.
"""
from __future__ import annotations

from sqlalchemy.orm import declarative_base

Base = declarative_base()


from app.models.subscription import Subscription  # noqa: E402

__all__ = ["Base", "Subscription"]
