import os

# La configuration est lue à l'import de app.config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("STRIPE_PRICE_ID", "price_test_membership")
os.environ.setdefault("PUBLIC_BASE_URL", "https://diaspora9ja.test")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.dependencies import get_event_logger, get_gateway, get_notifications
from app.models import Lead, Client  # noqa: F401
from app.services.payment_gateway import PaymentGateway

from helpers import WEBHOOK_SECRET, FakeGateway, FakeNotifications, RecordingEventLogger

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def event_logger():
    return RecordingEventLogger()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifications():
    return FakeNotifications()


@pytest.fixture
def client(db_session, event_logger, gateway, notifications):
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_logger] = lambda: event_logger
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_notifications] = lambda: notifications
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def webhook_client(client):
    """Même client, mais avec la vraie vérification de signature Stripe."""
    from main import app

    real_gateway = PaymentGateway("sk_test_dummy", WEBHOOK_SECRET)
    app.dependency_overrides[get_gateway] = lambda: real_gateway
    return client
