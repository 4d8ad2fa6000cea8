"""
Design Gallery - Database Initialization
==========================================
Creates all tables if they don't exist, seeds default app settings,
and creates the initial admin account.
Safe to run multiple times.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --drop   # Drop and recreate all tables
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import Base, engine, SessionLocal
from config.settings import ADMIN_USERNAME, ADMIN_PASSWORD, PASSWORD_MIN_LENGTH
from common.security import hash_password

# Import ALL models so Base.metadata knows about them
from modules.user.models import User  # noqa
from modules.catalog.models import Design, DesignImage  # noqa
from modules.favorite.models import UserFavorite  # noqa
from modules.cart.models import Cart, CartItem  # noqa
from modules.admin.models import AppSetting, DEFAULT_SETTINGS  # noqa


def seed_settings(db) -> int:
    created = 0
    for key, value, description in DEFAULT_SETTINGS:
        if not db.query(AppSetting).filter(AppSetting.key == key).first():
            db.add(AppSetting(key=key, value=value, description=description))
            created += 1
    return created


def seed_admin(db) -> bool:
    if not ADMIN_PASSWORD:
        print("  ADMIN_PASSWORD not set, skipping admin creation.")
        return False
    if len(ADMIN_PASSWORD) < PASSWORD_MIN_LENGTH:
        print(f"  ADMIN_PASSWORD must be at least {PASSWORD_MIN_LENGTH} characters, skipping.")
        return False
    if db.query(User).filter(User.username == ADMIN_USERNAME).first():
        print(f"  Admin '{ADMIN_USERNAME}' already exists.")
        return False
    db.add(User(
        username=ADMIN_USERNAME,
        password_hash=hash_password(ADMIN_PASSWORD),
        is_admin=True,
        is_approved=True,
    ))
    return True


def init_db(drop_first=False):
    if drop_first:
        print("Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
        print("Done.")

    print("Creating all tables...")
    Base.metadata.create_all(bind=engine)

    # List created tables
    from sqlalchemy import inspect
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    print(f"\nTables in database ({len(tables)}):")
    for t in sorted(tables):
        print(f"  - {t}")

    db = SessionLocal()
    try:
        print("\nSeeding settings...")
        print(f"  {seed_settings(db)} setting(s) added.")
        print("Seeding admin...")
        if seed_admin(db):
            print(f"  Admin '{ADMIN_USERNAME}' created.")
        db.commit()
    finally:
        db.close()
    print("\nDatabase initialized successfully!")


if __name__ == "__main__":
    drop = "--drop" in sys.argv
    if drop:
        confirm = input("This will DROP all tables. Type 'yes': ")
        if confirm.strip().lower() != "yes":
            print("Aborted.")
            sys.exit(0)
    init_db(drop_first=drop)
