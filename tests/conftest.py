import os

# Must be set before anything under app/ reads settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_PER_SECOND", "1000")
os.environ.setdefault("CAPACITY_CONFLICT_MODE", "sum")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config.database import get_db
from app.models import (
    AvailabilityOverride,
    AvailabilityRule,
    Base,
    Booking,
    Business,
    Service,
    StaffMember,
)
from tests.utils import MONDAY_INDEX


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def business(db):
    business = Business(
        name="Chez Test",
        business_type="restaurant",
        email="owner@cheztest.example",
        booking_link_slug="chez-test",
        booking_advance_days=30,
        cancellation_hours=24,
    )
    db.add(business)
    db.commit()
    return business


@pytest.fixture()
def make_service(db, business):
    def _make(**overrides):
        fields = dict(
            business_id=business.id,
            name="Haircut",
            duration_minutes=60,
            price=Decimal("25.00"),
            capacity=1,
            requires_staff=False,
            buffer_after_minutes=0,
        )
        fields.update(overrides)
        service = Service(**fields)
        db.add(service)
        db.commit()
        return service
    return _make


@pytest.fixture()
def service(make_service):
    """Capacity-based, 60 minutes, capacity 1"""
    return make_service()


@pytest.fixture()
def make_staff(db, business):
    def _make(name="Alex", services=()):
        staff = StaffMember(business_id=business.id, name=name)
        staff.services.extend(services)
        db.add(staff)
        db.commit()
        return staff
    return _make


@pytest.fixture()
def add_rule(db):
    def _add(day_of_week, start_time, end_time, business=None, staff=None, is_active=True):
        rule = AvailabilityRule(
            business_id=business.id if business else None,
            staff_member_id=staff.id if staff else None,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_active=is_active,
        )
        db.add(rule)
        db.commit()
        return rule
    return _add


@pytest.fixture()
def add_override(db):
    def _add(day, business=None, staff=None, is_available=False, start_time=None, end_time=None, reason=None):
        override = AvailabilityOverride(
            business_id=business.id if business else None,
            staff_member_id=staff.id if staff else None,
            date=day,
            is_available=is_available,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
        )
        db.add(override)
        db.commit()
        return override
    return _add


@pytest.fixture()
def add_booking(db):
    def _add(service, booking_date, start_time, end_time, party_size=1, staff=None,
             status="confirmed", customer_email="guest@example.com"):
        booking = Booking(
            business_id=service.business_id,
            service_id=service.id,
            staff_member_id=staff.id if staff else None,
            customer_name="Guest",
            customer_email=customer_email,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            party_size=party_size,
            status=status,
        )
        db.add(booking)
        db.commit()
        return booking
    return _add


@pytest.fixture()
def monday_hours(business, add_rule):
    """Business open Mondays 09:00-12:00"""
    return add_rule(MONDAY_INDEX, "09:00", "12:00", business=business)


@pytest.fixture()
def client(engine, monkeypatch):
    from app.api.v1.public import bookings as public_bookings
    from app.main import create_app

    queued = []

    class _QueuedTask:
        @staticmethod
        def delay(booking_id):
            queued.append(booking_id)

    monkeypatch.setattr(public_bookings, "send_booking_confirmation", _QueuedTask)

    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        test_client.queued_confirmations = queued
        yield test_client
