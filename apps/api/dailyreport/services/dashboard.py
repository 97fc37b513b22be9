"""
Dashboard snapshot for one principal.

The four reads are independent and run concurrently, each in its own
session (an AsyncSession cannot run two statements at once). If any read
fails the others are cancelled and the whole dashboard fails; there is
no partial result.
"""
import asyncio
import calendar
import logging
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dailyreport.models.comment import Comment
from dailyreport.models.daily_report import DailyReport, ReportStatus
from dailyreport.models.sales_person import SalesPerson
from dailyreport.models.visit_record import VisitRecord
from dailyreport.schemas.dashboard import DashboardData, RecentComment, RecentReport
from dailyreport.services.permissions import Principal

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def month_range(now: datetime) -> tuple[datetime, datetime]:
    """First and last instant (23:59:59.999) of ``now``'s calendar month."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime(now.year, now.month, 1)
    end = datetime.combine(date(now.year, now.month, last_day), time(23, 59, 59, 999000))
    return start, end


async def count_monthly_visits(db: AsyncSession, sales_person_id: int, start: date, end: date) -> int:
    stmt = (
        select(func.count(VisitRecord.id))
        .join(DailyReport, DailyReport.id == VisitRecord.report_id)
        .where(
            DailyReport.sales_person_id == sales_person_id,
            DailyReport.report_date >= start,
            DailyReport.report_date <= end,
        )
    )
    return (await db.execute(stmt)).scalar_one()


async def count_unconfirmed_reports(db: AsyncSession, manager_id: int) -> int:
    stmt = (
        select(func.count(DailyReport.id))
        .join(SalesPerson, SalesPerson.id == DailyReport.sales_person_id)
        .where(
            SalesPerson.manager_id == manager_id,
            DailyReport.status == ReportStatus.submitted,
        )
    )
    return (await db.execute(stmt)).scalar_one()


async def fetch_recent_reports(db: AsyncSession, sales_person_id: int) -> list[RecentReport]:
    visit_count = (
        select(func.count(VisitRecord.id))
        .where(VisitRecord.report_id == DailyReport.id)
        .correlate(DailyReport)
        .scalar_subquery()
    )
    stmt = (
        select(DailyReport.id, DailyReport.report_date, DailyReport.status, visit_count.label("visit_count"))
        .where(DailyReport.sales_person_id == sales_person_id)
        .order_by(DailyReport.report_date.desc())
        .limit(RECENT_LIMIT)
    )
    rows = (await db.execute(stmt)).all()
    return [
        RecentReport(
            report_id=r.id,
            report_date=r.report_date,
            visit_count=r.visit_count,
            status=r.status,
            status_label=ReportStatus(r.status).label,
        )
        for r in rows
    ]


async def fetch_recent_comments(db: AsyncSession, sales_person_id: int) -> list[RecentComment]:
    stmt = (
        select(
            Comment.id,
            Comment.report_id,
            Comment.comment_text,
            Comment.created_at,
            DailyReport.report_date,
            SalesPerson.name.label("commenter_name"),
        )
        .join(DailyReport, DailyReport.id == Comment.report_id)
        .join(SalesPerson, SalesPerson.id == Comment.sales_person_id)
        .where(
            DailyReport.sales_person_id == sales_person_id,
            Comment.sales_person_id != sales_person_id,
        )
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .limit(RECENT_LIMIT)
    )
    rows = (await db.execute(stmt)).all()
    return [
        RecentComment(
            comment_id=r.id,
            report_id=r.report_id,
            report_date=r.report_date,
            commenter_name=r.commenter_name,
            comment_text=r.comment_text,
            created_at=r.created_at,
        )
        for r in rows
    ]


async def build_dashboard(
    session_factory: async_sessionmaker[AsyncSession],
    principal: Principal,
    now: datetime,
) -> DashboardData:
    start, end = month_range(now)

    async def run(query, *args):
        async with session_factory() as db:
            return await query(db, *args)

    async def unconfirmed() -> Optional[int]:
        if not principal.is_manager:
            return None
        return await run(count_unconfirmed_reports, principal.id)

    tasks = [
        asyncio.ensure_future(run(count_monthly_visits, principal.id, start.date(), end.date())),
        asyncio.ensure_future(unconfirmed()),
        asyncio.ensure_future(run(fetch_recent_reports, principal.id)),
        asyncio.ensure_future(run(fetch_recent_comments, principal.id)),
    ]
    try:
        visit_count, unconfirmed_count, recent_reports, recent_comments = await asyncio.gather(*tasks)
    except Exception:
        logger.exception("Dashboard aggregation failed for sales person %s", principal.id)
        # First failure wins; stop the other reads and collect their outcomes
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return DashboardData(
        monthly_visit_count=visit_count,
        unconfirmed_report_count=unconfirmed_count,
        recent_reports=recent_reports,
        recent_comments=recent_comments,
    )
