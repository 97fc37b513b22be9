import asyncio
from datetime import date, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from dailyreport.core.database import build_engine, build_session_factory, get_session_factory
from dailyreport.models.daily_report import ReportStatus
from dailyreport.routers.dashboard import get_clock
from dailyreport.services import dashboard as dashboard_service
from dailyreport.services.dashboard import build_dashboard, month_range
from dailyreport.services.permissions import Principal

NOW = datetime(2025, 6, 15, 10, 30)


def principal_of(sales_person):
    return Principal(id=sales_person.id, is_manager=sales_person.is_manager, name=sales_person.name)


@pytest.mark.parametrize(
    "now, start, end",
    [
        (datetime(2025, 6, 15, 10, 30), datetime(2025, 6, 1), datetime(2025, 6, 30, 23, 59, 59, 999000)),
        (datetime(2024, 2, 29, 0, 0), datetime(2024, 2, 1), datetime(2024, 2, 29, 23, 59, 59, 999000)),
        (datetime(2025, 12, 31, 23, 59), datetime(2025, 12, 1), datetime(2025, 12, 31, 23, 59, 59, 999000)),
    ],
)
def test_month_range(now, start, end):
    assert month_range(now) == (start, end)


async def test_non_manager_gets_null_unconfirmed_count(org, session_factory):
    data = await build_dashboard(session_factory, principal_of(org.alice), NOW)
    assert data.unconfirmed_report_count is None
    assert data.model_dump()["unconfirmed_report_count"] is None


async def test_manager_with_nothing_pending_gets_zero(org, session_factory):
    # has a subordinate, but nothing submitted
    data = await build_dashboard(session_factory, principal_of(org.other_manager), NOW)
    assert data.unconfirmed_report_count == 0


async def test_manager_without_subordinates_gets_zero(seed, session_factory):
    lone = await seed.sales_person("Lone", is_manager=True)
    data = await build_dashboard(session_factory, principal_of(lone), NOW)
    assert data.unconfirmed_report_count == 0


async def test_unconfirmed_counts_direct_subordinates_only(org, seed, session_factory):
    await seed.report(org.alice, report_date=date(2025, 6, 2), status=ReportStatus.submitted)
    await seed.report(org.alice, report_date=date(2025, 6, 3), status=ReportStatus.draft)
    await seed.report(org.alice, report_date=date(2025, 6, 4), status=ReportStatus.confirmed)
    await seed.report(org.bob, report_date=date(2025, 5, 20), status=ReportStatus.submitted)
    await seed.report(org.carol, report_date=date(2025, 6, 2), status=ReportStatus.submitted)

    manager = await build_dashboard(session_factory, principal_of(org.manager), NOW)
    boss = await build_dashboard(session_factory, principal_of(org.boss), NOW)

    # not limited to the month
    assert manager.unconfirmed_report_count == 2
    assert boss.unconfirmed_report_count == 0


async def test_monthly_visit_count(org, seed, session_factory):
    acme = await seed.customer("Acme")
    globex = await seed.customer("Globex")
    await seed.report(org.alice, report_date=date(2025, 6, 1), customers=[acme, globex])
    await seed.report(org.alice, report_date=date(2025, 6, 14), customers=[acme])
    await seed.report(org.alice, report_date=date(2025, 5, 31), customers=[acme, globex])
    await seed.report(org.bob, report_date=date(2025, 6, 10), customers=[acme])

    data = await build_dashboard(session_factory, principal_of(org.alice), NOW)
    assert data.monthly_visit_count == 3


async def test_recent_reports(org, seed, session_factory):
    acme = await seed.customer("Acme")
    for day in range(1, 8):
        await seed.report(org.alice, report_date=date(2025, 6, day), customers=[acme] * (day % 3))

    data = await build_dashboard(session_factory, principal_of(org.alice), NOW)

    assert [r.report_date.day for r in data.recent_reports] == [7, 6, 5, 4, 3]
    assert [r.visit_count for r in data.recent_reports] == [1, 0, 2, 1, 0]
    assert data.recent_reports[0].status == ReportStatus.draft
    assert data.recent_reports[0].status_label == "Draft"


async def test_recent_comments_exclude_own(org, seed, session_factory):
    report = await seed.report(org.alice)
    other_report = await seed.report(org.bob)
    await seed.comment(report, org.alice, "note to self")
    first = await seed.comment(report, org.manager, "first")
    second = await seed.comment(report, org.manager, "second")
    await seed.comment(other_report, org.manager, "for bob")

    data = await build_dashboard(session_factory, principal_of(org.alice), NOW)

    assert [c.comment_id for c in data.recent_comments] == [second.id, first.id]
    assert data.recent_comments[0].commenter_name == "Manager"
    assert data.recent_comments[0].report_date == report.report_date


async def test_any_failed_read_fails_the_dashboard(org, tmp_path):
    # a database without tables: every read raises
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/empty.db")
    try:
        with pytest.raises(OperationalError):
            await build_dashboard(build_session_factory(engine), principal_of(org.manager), NOW)
    finally:
        await engine.dispose()


async def test_failed_read_cancels_the_others(org, session_factory, monkeypatch):
    cancelled = asyncio.Event()

    async def store_down(db, *args):
        raise RuntimeError("store down")

    async def slow_read(db, *args):
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    monkeypatch.setattr(dashboard_service, "count_monthly_visits", store_down)
    monkeypatch.setattr(dashboard_service, "fetch_recent_reports", slow_read)

    with pytest.raises(RuntimeError, match="store down"):
        await build_dashboard(session_factory, principal_of(org.manager), NOW)

    assert cancelled.is_set()


async def test_dashboard_endpoint(app, client, org, seed, auth):
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    acme = await seed.customer("Acme")
    await seed.report(org.alice, report_date=date(2025, 6, 2), status=ReportStatus.submitted, customers=[acme])

    resp = await client.get("/api/v1/dashboard", headers=auth(org.alice))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["monthly_visit_count"] == 1
    assert data["unconfirmed_report_count"] is None
    assert data["recent_reports"][0]["status_label"] == "Submitted"

    resp = await client.get("/api/v1/dashboard", headers=auth(org.manager))
    assert resp.json()["data"]["unconfirmed_report_count"] == 1


async def test_dashboard_requires_auth(client):
    resp = await client.get("/api/v1/dashboard")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_UNAUTHORIZED"


async def test_dashboard_store_failure_is_500(app, org, auth, tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path}/empty.db")
    app.dependency_overrides[get_session_factory] = lambda: build_session_factory(engine)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/v1/dashboard", headers=auth(org.manager))
    finally:
        await engine.dispose()

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
    }
