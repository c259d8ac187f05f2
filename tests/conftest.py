"""Shared fixtures: in-memory SQLite, fake email delivery, row factories."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["REDIS_URL"] = "memory://"
os.environ["INVITATION_TIMEOUT_SWEEP_ENABLED"] = "false"

import uuid
from datetime import date, datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import create_access_token
from app.config.database import SessionLocal, engine, get_db
from app.main import app
from app.models import (
    AvailabilityRule,
    Base,
    Booking,
    Business,
    BusinessHoliday,
    DateOverrideSlot,
    Provider,
    SchedulingPolicy,
)
from app.services.notification import notification_service


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Captures customer emails instead of queueing Celery tasks."""
    sent = []

    def fake_sender(**kwargs):
        sent.append(kwargs)

    monkeypatch.setattr(notification_service, "enqueue_no_provider_email", fake_sender)
    return sent


class Factory:
    def __init__(self, session):
        self.db = session

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def business(self, name="Sparkle Cleaning"):
        return self._save(Business(name=name))

    def provider(self, business, first_name="Pat", priority=0, created_at=None,
                 status="active", email=None):
        return self._save(Provider(
            business_id=business.id,
            user_id=uuid.uuid4(),
            first_name=first_name,
            last_name="Smith",
            email=email,
            status=status,
            invitation_priority=priority,
            created_at=created_at or datetime(2025, 1, 1, tzinfo=timezone.utc),
        ))

    def rule(self, provider, day_of_week, start_time, end_time,
             effective_date=None, expiry_date=None, is_available=True):
        return self._save(AvailabilityRule(
            provider_id=provider.id,
            business_id=provider.business_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            effective_date=effective_date,
            expiry_date=expiry_date,
            is_available=is_available,
        ))

    def override(self, provider, slot_date, start_time, end_time, is_available=True):
        return self._save(DateOverrideSlot(
            provider_id=provider.id,
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            is_available=is_available,
        ))

    def holiday(self, business, holiday_date, recurring=False, name=None):
        return self._save(BusinessHoliday(
            business_id=business.id,
            holiday_date=holiday_date,
            recurring=recurring,
            name=name,
        ))

    def policy(self, business, **options):
        return self._save(SchedulingPolicy(business_id=business.id, **options))

    def booking(self, business, scheduled_date=date(2026, 2, 1), scheduled_time="10:30",
                customer_email="jane@example.com", **fields):
        return self._save(Booking(
            business_id=business.id,
            customer_name=fields.pop("customer_name", "Jane Doe"),
            customer_email=customer_email,
            customer_phone=fields.pop("customer_phone", "+15550100"),
            service=fields.pop("service", "Deep Clean"),
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            address=fields.pop("address", "1 Main St"),
            total_price=fields.pop("total_price", 120),
            **fields,
        ))


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def auth_headers():
    def _headers(provider):
        token = create_access_token({"sub": str(provider.user_id)})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
async def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
