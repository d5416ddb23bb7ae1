#!/usr/bin/env python3
"""
Database initialization script for the rental listing moderation service.

Creates the tables for local development and optionally saves the admin
profiles listed in BOOTSTRAP_ADMIN_PRINCIPALS. Deployed databases are managed
with alembic instead.
"""

import argparse
from sqlmodel import Session, SQLModel

from app.core.config import settings
from app.db.session import engine
from app.models.user import UserProfile, UserRole
from app.db import base  # noqa: F401  registers every table


def create_db_and_tables():
    """Create database tables."""
    print("Creating database tables...")

    SQLModel.metadata.create_all(engine)

    print("✅ Database tables created successfully!")
    print(f"Database URL: {settings.database_url}")
    print("\nTables created:")
    for table in SQLModel.metadata.tables.keys():
        print(f"  - {table}")


def seed_admins():
    """Save an admin profile for every bootstrap principal that has none."""
    with Session(engine) as session:
        for principal in settings.bootstrap_admin_principals:
            if session.get(UserProfile, principal) is not None:
                print(f"  = {principal} already has a profile")
                continue
            session.add(UserProfile(principal=principal, name=principal, role=UserRole.ADMIN))
            print(f"  + admin profile for {principal}")
        session.commit()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed-admins", action="store_true", help="Save bootstrap admin profiles")
    args = parser.parse_args()

    create_db_and_tables()
    if args.seed_admins:
        seed_admins()
