#!/usr/bin/env python3
"""Create an admin account for the apartment admin console.

Run: `python scripts/create_admin.py --email admin@example.com --password changeme --super`
"""

from __future__ import annotations

import argparse
import sys
from contextlib import contextmanager
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from apartment_admin.auth.jwt import get_password_hash  # noqa: E402
from apartment_admin.config import Base, SessionLocal, engine  # noqa: E402
from apartment_admin.models.models import Admin  # noqa: E402


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
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--display-name", default="Administrator")
    parser.add_argument("--super", dest="super_admin", action="store_true", help="grant the super-admin role")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    email = args.email.strip().lower()
    with session_scope() as db:
        if db.query(Admin).filter(Admin.email == email).first():
            print("Admin already exists with that email.")
            return
        db.add(
            Admin(
                email=email,
                display_name=args.display_name,
                hashed_password=get_password_hash(args.password),
                role="super-admin" if args.super_admin else "admin",
                is_active=True,
            )
        )
    print(f"Created admin {email}.")


if __name__ == "__main__":
    main()
