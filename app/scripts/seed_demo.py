#!/usr/bin/env python3
"""
Seed a demo business with weekday hours, two services and one staff member
Usage: python -m app.scripts.seed_demo
"""
import sys
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from app.config.database import SessionLocal
from app.models import AvailabilityOverride, AvailabilityRule, Business, Service, StaffMember

DEMO_SLUG = "demo-bistro"


def seed_demo(db: Session, today: date = None) -> Business:
    """Create the demo business unless it already exists; returns it"""
    existing = db.query(Business).filter(Business.booking_link_slug == DEMO_SLUG).first()
    if existing:
        return existing

    business = Business(
        name="Demo Bistro & Spa",
        business_type="restaurant",
        email="hello@demo-bistro.example",
        phone="+15550100",
        booking_link_slug=DEMO_SLUG,
        booking_advance_days=30,
        cancellation_hours=24,
    )
    db.add(business)
    db.flush()

    table = Service(
        business_id=business.id,
        name="Dinner table",
        duration_minutes=90,
        price=Decimal("0"),
        capacity=20,
        buffer_after_minutes=30,
    )
    massage = Service(
        business_id=business.id,
        name="Massage (60 min)",
        duration_minutes=60,
        price=Decimal("80.00"),
        capacity=1,
        requires_staff=True,
        buffer_after_minutes=15,
    )
    therapist = StaffMember(business_id=business.id, name="Jordan", services=[massage])
    db.add_all([table, massage, therapist])
    db.flush()

    rules = []
    for day in range(1, 6):  # Monday..Friday, 0=Sunday
        rules.append(AvailabilityRule(business_id=business.id, day_of_week=day, start_time="17:00", end_time="22:00"))
        rules.append(AvailabilityRule(staff_member_id=therapist.id, day_of_week=day, start_time="09:00", end_time="12:00"))
        rules.append(AvailabilityRule(staff_member_id=therapist.id, day_of_week=day, start_time="13:00", end_time="17:00"))

    # Example closure two weeks out
    closed_on = (today or date.today()) + timedelta(days=14)
    closure = AvailabilityOverride(business_id=business.id, date=closed_on, is_available=False, reason="Private event")

    db.add_all(rules + [closure])
    db.commit()
    db.refresh(business)
    return business


def main():
    db = SessionLocal()
    try:
        business = seed_demo(db)
        print(f"Demo business ready: {business.name} (slug: {business.booking_link_slug}, id: {business.id})")
    except Exception as e:
        db.rollback()
        print(f"Error seeding demo data: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
