#!/usr/bin/env python3
"""
Script to create the first manager account.
Run this after the database migration has been completed; managers can
then create every other sales person through the API.

Usage:
    python create_admin_manager.py <email> <password> <name> <department>

Example:
    python create_admin_manager.py boss@example.com mypassword123 "Hanako Sato" "Sales Dept. 1"
"""

import asyncio
import sys
from pathlib import Path

# Add the apps/api directory to the path so we can import dailyreport
api_dir = Path(__file__).parent / "apps" / "api"
sys.path.insert(0, str(api_dir))

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from dailyreport.core.config import get_settings
from dailyreport.core.database import build_engine, build_session_factory
from dailyreport.models.sales_person import SalesPerson
from dailyreport.routers.auth import get_password_hash


async def create_admin_manager(email: str, password: str, name: str, department: str) -> bool:
    """Create a top-level manager (no manager of their own)."""
    settings = get_settings()
    engine = build_engine(settings.database_url)
    session_factory = build_session_factory(engine)

    try:
        async with session_factory() as db:
            existing = (
                await db.execute(select(SalesPerson).where(SalesPerson.email == email.lower()))
            ).scalar_one_or_none()
            if existing:
                print(f"❌ Sales person with email {email} already exists!")
                return False

            manager = SalesPerson(
                name=name,
                email=email.lower(),
                password_hash=get_password_hash(password),
                department=department,
                is_manager=True,
                manager_id=None,
            )
            db.add(manager)
            try:
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                print(f"❌ Error creating manager: {e}")
                return False

            print("✅ Manager created successfully!")
            print(f"   Sales person ID: {manager.id}")
            print(f"   Name: {manager.name}")
            print(f"   Email: {manager.email}")
            print(f"   Department: {manager.department}")
            return True
    finally:
        await engine.dispose()


if __name__ == "__main__":
    if len(sys.argv) != 5:
        print("Usage: python create_admin_manager.py <email> <password> <name> <department>")
        print('Example: python create_admin_manager.py boss@example.com mypassword123 "Hanako Sato" "Sales Dept. 1"')
        sys.exit(1)

    email, password, name, department = sys.argv[1:5]

    if not email or not password or not name or not department:
        print("❌ Email, password, name, and department are required!")
        sys.exit(1)

    ok = asyncio.run(create_admin_manager(email, password, name, department))
    sys.exit(0 if ok else 1)
