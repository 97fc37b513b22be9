"""Shared pytest fixtures for the test suite."""

import os
from datetime import date
from functools import lru_cache
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

# dailyreport.main builds a module-level app from the environment on
# import; give it something harmless BEFORE any app code imports.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from dailyreport.core.config import Settings
from dailyreport.core.database import Base
from dailyreport.main import create_app
from dailyreport.models.comment import Comment
from dailyreport.models.customer import Customer
from dailyreport.models.daily_report import DailyReport, ReportStatus
from dailyreport.models.sales_person import SalesPerson
from dailyreport.models.visit_record import VisitRecord
from dailyreport.routers.auth import create_access_token, get_password_hash
from dailyreport.services.validators import parse_visit_time

PASSWORD = "password123"
REPORT_DATE = date(2025, 6, 2)


@lru_cache
def password_hash() -> str:
    # bcrypt is slow; hash the shared test password once
    return get_password_hash(PASSWORD)


class Seeder:
    """Inserts rows straight through the ORM, bypassing the API rules."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def add(self, obj):
        async with self.session_factory() as db:
            db.add(obj)
            await db.commit()
            await db.refresh(obj)
        return obj

    async def sales_person(self, name, *, is_manager=False, manager=None, email=None, department="Sales 1"):
        return await self.add(
            SalesPerson(
                name=name,
                email=email or f"{name.lower()}@example.com",
                password_hash=password_hash(),
                department=department,
                is_manager=is_manager,
                manager_id=manager.id if manager else None,
            )
        )

    async def customer(self, name="Acme Trading", **fields):
        return await self.add(Customer(customer_name=name, **fields))

    async def report(self, owner, *, report_date=REPORT_DATE, status=ReportStatus.draft, customers=(), problem=None, plan=None):
        report = await self.add(
            DailyReport(
                sales_person_id=owner.id,
                report_date=report_date,
                status=status,
                problem=problem,
                plan=plan,
            )
        )
        for customer in customers:
            await self.visit(report, customer)
        return report

    async def visit(self, report, customer, visit_time="10:00", content="Regular follow-up"):
        return await self.add(
            VisitRecord(
                report_id=report.id,
                customer_id=customer.id,
                visit_time=parse_visit_time(visit_time),
                visit_content=content,
            )
        )

    async def comment(self, report, author, text="Looks good"):
        return await self.add(Comment(report_id=report.id, sales_person_id=author.id, comment_text=text))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        jwt_secret_key="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
async def app(settings):
    app = create_app(settings)
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield app
    await app.state.engine.dispose()


@pytest.fixture
def session_factory(app):
    return app.state.session_factory


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def auth(settings):
    """Bearer headers for a seeded sales person."""

    def headers_for(sales_person):
        token = create_access_token(
            settings,
            data={"sub": str(sales_person.id), "is_manager": sales_person.is_manager},
        )
        return {"Authorization": f"Bearer {token}"}

    return headers_for


@pytest.fixture
async def org(seed):
    """
    boss (1, manager)
     └─ manager (2, manager)
         ├─ alice (3)
         └─ bob (4)
    other_manager (5, manager)
     └─ carol (6)
    """
    boss = await seed.sales_person("Boss", is_manager=True)
    manager = await seed.sales_person("Manager", is_manager=True, manager=boss)
    alice = await seed.sales_person("Alice", manager=manager)
    bob = await seed.sales_person("Bob", manager=manager)
    other_manager = await seed.sales_person("Other", is_manager=True)
    carol = await seed.sales_person("Carol", manager=other_manager)
    return SimpleNamespace(
        boss=boss,
        manager=manager,
        alice=alice,
        bob=bob,
        other_manager=other_manager,
        carol=carol,
    )
