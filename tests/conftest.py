import os
import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('LOG_LEVEL', 'DEBUG')

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.dependencies import get_subscription_service  # noqa: E402
from app.database import SessionProvider, get_session_provider  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402
from app.repositories.subscription_repository import SubscriptionRepository  # noqa: E402
from app.services.subscription_service import SubscriptionService  # noqa: E402

TODAY = date(2025, 6, 15)


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def provider(session_factory):
    return SessionProvider(session_factory, 'SERIALIZABLE')


@pytest.fixture
def repository():
    return SubscriptionRepository()


@pytest.fixture
def service(provider, repository):
    return SubscriptionService(provider, repository, today=lambda: TODAY, max_page_size=100)


@pytest.fixture
def client(provider, service):
    app.dependency_overrides[get_session_provider] = lambda: provider
    app.dependency_overrides[get_subscription_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
