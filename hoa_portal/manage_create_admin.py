"""Create the first Admin account for the HOA portal.

Run: `python -m hoa_portal.manage_create_admin --email admin@example.com --password changeme`
"""

import argparse
from contextlib import contextmanager

from hoa_portal.auth.jwt import get_password_hash
from hoa_portal.config import Base, SessionLocal, engine
from hoa_portal.constants import ROLE_ADMIN
from hoa_portal.models.models import User
from hoa_portal.services.settings import ensure_default_settings


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def main():
    parser = argparse.ArgumentParser(description="Create the first Admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--full-name", default="Admin User")
    parser.add_argument("--block", type=int, default=1)
    parser.add_argument("--lot", type=int, default=1)
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        ensure_default_settings(db)
        email = args.email.strip().lower()
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            print("User already exists with that email.")
            return

        user = User(
            email=email,
            full_name=args.full_name,
            hashed_password=get_password_hash(args.password),
            role=ROLE_ADMIN,
            status="active",
            block=args.block,
            lot=args.lot,
        )
        db.add(user)
        db.flush()
        print(f"Created Admin user with id {user.user_id}")


if __name__ == "__main__":
    main()
