from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyreport.core.errors import ApiError, ErrorCode
from dailyreport.models.customer import Customer
from dailyreport.models.daily_report import DailyReport
from dailyreport.models.sales_person import SalesPerson
from dailyreport.services.permissions import ReportSubject


async def get_report_subject(db: AsyncSession, report_id: int) -> ReportSubject:
    """Load what the permission checks need about a report, or 404."""
    row = (
        await db.execute(
            select(DailyReport.id, DailyReport.sales_person_id, DailyReport.status, SalesPerson.manager_id)
            .join(SalesPerson, SalesPerson.id == DailyReport.sales_person_id)
            .where(DailyReport.id == report_id)
        )
    ).first()
    if row is None:
        raise ApiError.not_found("Report not found")

    return ReportSubject(
        id=row.id,
        sales_person_id=row.sales_person_id,
        status=row.status,
        owner_manager_id=row.manager_id,
    )


async def customer_names(db: AsyncSession, customer_ids: Iterable[int], field: str = "visits") -> dict[int, str]:
    """Map customer ids to names; 422 if any id does not exist."""
    wanted = set(customer_ids)
    if not wanted:
        return {}

    rows = await db.execute(select(Customer.id, Customer.customer_name).where(Customer.id.in_(wanted)))
    found = {r.id: r.customer_name for r in rows}

    missing = sorted(wanted - found.keys())
    if missing:
        raise ApiError(
            ErrorCode.VALIDATION_ERROR,
            "Customer does not exist",
            details=[{"field": field, "message": f"Customer ID {cid} does not exist"} for cid in missing],
        )
    return found
