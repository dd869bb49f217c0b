#!/usr/bin/env python
"""
Seed script to populate the database with sample data for local development.

Usage:
    python scripts/seed_data.py --homeowners 5
"""

import argparse
from datetime import date, datetime, timezone
from decimal import Decimal

from hoa_portal.auth.jwt import get_password_hash
from hoa_portal.config import Base, SessionLocal, engine
from hoa_portal.constants import ROLE_ADMIN, ROLE_HOMEOWNER, ROLE_STAFF
from hoa_portal.models.models import Announcement, AppSetting, Due, Project, User
from hoa_portal.services.billing import generate_monthly_dues
from hoa_portal.services.settings import ensure_default_settings

DEV_USERS = [
    ("user_001", ROLE_ADMIN, "Admin User", "admin@gmail.com", "09170000000", 1, 1, "admin"),
    ("user_002", ROLE_HOMEOWNER, "John Doe", "john.doe@home.com", "09180000000", 5, 12, "password"),
    ("user_003", ROLE_STAFF, "Security Guard", "staff@hoa.com", "09190000000", 0, 0, "password"),
]


def ensure_user(session, user_id, role, full_name, email, phone, block, lot, password) -> User:
    user = session.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(
        user_id=user_id,
        role=role,
        full_name=full_name,
        email=email,
        phone=phone,
        block=block,
        lot=lot,
        hashed_password=get_password_hash(password),
        status="active",
    )
    session.add(user)
    session.flush()
    return user


def create_extra_homeowners(session, count: int) -> None:
    for index in range(1, count + 1):
        ensure_user(
            session,
            f"user_{100 + index:03d}",
            ROLE_HOMEOWNER,
            f"Test Homeowner {index}",
            f"owner{index}@home.com",
            "",
            10 + index,
            index,
            "password",
        )


def seed_settings(session, effective: date) -> None:
    ensure_default_settings(session)
    row = session.get(AppSetting, "effectiveDate")
    if not row.value:
        row.value = effective.isoformat()
        row.updated_at = datetime.now(timezone.utc)
    session.commit()


def seed_project(session) -> None:
    if session.get(Project, "proj_001"):
        return
    session.add(
        Project(
            project_id="proj_001",
            name="Clubhouse Renovation",
            description="Repairing the roof and painting walls",
            status="Ongoing",
            start_date=date(2023, 11, 1),
            end_date=date(2024, 1, 30),
            budget=Decimal("500000.00"),
            funds_allocated=Decimal("150000.00"),
            funds_spent=Decimal("50000.00"),
        )
    )


def seed_announcement(session) -> None:
    if session.query(Announcement).count():
        return
    session.add(
        Announcement(
            title="Quarterly Pest Control Schedule",
            content="Pest control runs next week. Please make sure someone is home to grant access.",
            image_url="",
            created_by="Admin User",
            audience="all",
        )
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed development data.")
    parser.add_argument("--homeowners", type=int, default=0, help="Extra homeowners to create")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        for row in DEV_USERS:
            ensure_user(session, *row)
        create_extra_homeowners(session, args.homeowners)
        seed_project(session)
        seed_announcement(session)
        session.commit()

        billing_month = date.today().replace(day=1)
        seed_settings(session, billing_month)
        generate_monthly_dues(session, billing_month)
        print(
            f"Seeded {session.query(User).count()} users and "
            f"{session.query(Due).count()} dues (admin@gmail.com / admin)."
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
