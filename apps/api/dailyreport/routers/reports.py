import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dailyreport.core.database import get_db
from dailyreport.core.errors import ApiError, ErrorCode
from dailyreport.core.responses import paginated, success
from dailyreport.models.comment import Comment
from dailyreport.models.daily_report import DailyReport, ReportStatus
from dailyreport.models.sales_person import SalesPerson
from dailyreport.models.visit_record import VisitRecord
from dailyreport.routers.auth import get_current_principal
from dailyreport.routers.comments import load_comments
from dailyreport.routers.visits import load_visits
from dailyreport.schemas.reports import ReportDetail, ReportIn, ReportListItem, ReportSaved, StatusUpdate
from dailyreport.services.hierarchy import direct_subordinate_ids
from dailyreport.services.pagination import calculate_offset, calculate_pagination
from dailyreport.services.permissions import (
    Principal,
    check_delete_report,
    check_edit_report,
    check_view_report,
    raise_for_denial,
    transition,
)
from dailyreport.services.reports import customer_names, get_report_subject
from dailyreport.services.validators import parse_visit_time

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_DATE_MESSAGE = "A report for this date already exists"


def is_duplicate_report(exc: IntegrityError) -> bool:
    """True if the store rejected a second report for the same owner and date."""
    msg = str(exc.orig)
    return "uq_daily_reports_sales_person_id_report_date" in msg or (
        "UNIQUE constraint failed" in msg and "daily_reports.report_date" in msg
    )


async def _commit_report(db: AsyncSession, principal: Principal, report_date: date) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_duplicate_report(exc):
            # Lost a race with a concurrent create/update for the same day
            logger.warning("Duplicate report for sales person %s on %s", principal.id, report_date)
            raise ApiError.duplicate(DUPLICATE_DATE_MESSAGE)
        raise


async def _ensure_date_free(db: AsyncSession, sales_person_id: int, report_date: date) -> None:
    existing = (
        await db.execute(
            select(DailyReport.id).where(
                DailyReport.sales_person_id == sales_person_id,
                DailyReport.report_date == report_date,
            )
        )
    ).first()
    if existing:
        raise ApiError.duplicate(DUPLICATE_DATE_MESSAGE)


def _visit_rows(report_id: int, payload: ReportIn) -> list[VisitRecord]:
    return [
        VisitRecord(
            report_id=report_id,
            customer_id=v.customer_id,
            visit_time=parse_visit_time(v.visit_time),
            visit_purpose=v.visit_purpose,
            visit_content=v.visit_content,
            visit_result=v.visit_result,
        )
        for v in payload.visits
    ]


def to_report_saved(report: DailyReport) -> ReportSaved:
    status = ReportStatus(report.status)
    return ReportSaved(
        report_id=report.id,
        report_date=report.report_date,
        status=status,
        status_label=status.label,
        updated_at=report.updated_at,
    )


@router.get("")
async def list_reports(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    sales_person_id: Optional[int] = Query(None, gt=0),
    status: Optional[ReportStatus] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    sort: Literal["report_date", "created_at"] = Query("report_date"),
    order: Literal["asc", "desc"] = Query("desc"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    List reports visible to the caller.

    Sales persons see their own reports; managers see their own plus
    those of their direct subordinates.
    """
    filters = []
    if date_from:
        filters.append(DailyReport.report_date >= date_from)
    if date_to:
        filters.append(DailyReport.report_date <= date_to)
    if status:
        filters.append(DailyReport.status == status)

    visible_ids = [principal.id]
    if principal.is_manager:
        visible_ids += await direct_subordinate_ids(db, principal.id)

    if sales_person_id is not None:
        if sales_person_id not in visible_ids:
            raise ApiError(
                ErrorCode.FORBIDDEN_ACCESS,
                "You do not have permission to view this sales person's reports",
            )
        filters.append(DailyReport.sales_person_id == sales_person_id)
    else:
        filters.append(DailyReport.sales_person_id.in_(visible_ids))

    total = (await db.execute(select(func.count(DailyReport.id)).where(*filters))).scalar_one()
    pagination = calculate_pagination(total=total, page=page, per_page=per_page)

    visit_count = (
        select(func.count(VisitRecord.id))
        .where(VisitRecord.report_id == DailyReport.id)
        .correlate(DailyReport)
        .scalar_subquery()
    )
    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.report_id == DailyReport.id)
        .correlate(DailyReport)
        .scalar_subquery()
    )

    sort_col = DailyReport.report_date if sort == "report_date" else DailyReport.created_at
    sort_expr = sort_col.asc() if order == "asc" else sort_col.desc()

    rows = (
        await db.execute(
            select(
                DailyReport,
                SalesPerson.name.label("sales_person_name"),
                visit_count.label("visit_count"),
                comment_count.label("comment_count"),
            )
            .join(SalesPerson, SalesPerson.id == DailyReport.sales_person_id)
            .where(*filters)
            .order_by(sort_expr, DailyReport.id.desc())
            .offset(calculate_offset(pagination.current_page, per_page))
            .limit(per_page)
        )
    ).all()

    items = []
    for r in rows:
        report = r.DailyReport
        report_status = ReportStatus(report.status)
        items.append(
            ReportListItem(
                report_id=report.id,
                report_date=report.report_date,
                sales_person_id=report.sales_person_id,
                sales_person_name=r.sales_person_name,
                status=report_status,
                status_label=report_status.label,
                visit_count=r.visit_count,
                comment_count=r.comment_count,
                created_at=report.created_at,
                updated_at=report.updated_at,
            )
        )

    return paginated(items, pagination)


@router.post("", status_code=201)
async def create_report(
    payload: ReportIn,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Create the caller's report for a day, saved as draft or submitted."""
    await _ensure_date_free(db, principal.id, payload.report_date)
    await customer_names(db, (v.customer_id for v in payload.visits))

    report = DailyReport(
        sales_person_id=principal.id,
        report_date=payload.report_date,
        problem=payload.problem,
        plan=payload.plan,
        status=ReportStatus(payload.status),
    )
    db.add(report)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if is_duplicate_report(exc):
            logger.warning("Duplicate report for sales person %s on %s", principal.id, payload.report_date)
            raise ApiError.duplicate(DUPLICATE_DATE_MESSAGE)
        raise

    db.add_all(_visit_rows(report.id, payload))
    await _commit_report(db, principal, payload.report_date)
    await db.refresh(report)

    return success(to_report_saved(report), message="Report created")


@router.get("/{report_id}")
async def get_report(
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    subject = await get_report_subject(db, report_id)
    raise_for_denial(check_view_report(principal, subject), principal, f"view report {report_id}")

    row = (
        await db.execute(
            select(DailyReport, SalesPerson.name.label("sales_person_name"))
            .join(SalesPerson, SalesPerson.id == DailyReport.sales_person_id)
            .where(DailyReport.id == report_id)
        )
    ).one()
    report = row.DailyReport
    status = ReportStatus(report.status)

    return success(
        ReportDetail(
            report_id=report.id,
            report_date=report.report_date,
            sales_person_id=report.sales_person_id,
            sales_person_name=row.sales_person_name,
            status=status,
            status_label=status.label,
            problem=report.problem,
            plan=report.plan,
            visits=await load_visits(db, report_id),
            comments=await load_comments(db, report_id),
            created_at=report.created_at,
            updated_at=report.updated_at,
        )
    )


@router.put("/{report_id}")
async def update_report(
    payload: ReportIn,
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Replace a report's content and visit list in one transaction."""
    subject = await get_report_subject(db, report_id)
    target = f"edit report {report_id}"
    raise_for_denial(check_edit_report(principal, subject), principal, target, code=ErrorCode.FORBIDDEN_EDIT)

    result = transition(subject, payload.status, principal)
    raise_for_denial(result.denial, principal, target, code=ErrorCode.FORBIDDEN_EDIT)

    report = await db.get(DailyReport, report_id)
    if payload.report_date != report.report_date:
        await _ensure_date_free(db, principal.id, payload.report_date)
    await customer_names(db, (v.customer_id for v in payload.visits))

    await db.execute(delete(VisitRecord).where(VisitRecord.report_id == report_id))
    report.report_date = payload.report_date
    report.problem = payload.problem
    report.plan = payload.plan
    report.status = result.status
    db.add_all(_visit_rows(report_id, payload))

    await _commit_report(db, principal, payload.report_date)
    await db.refresh(report)
    return success(to_report_saved(report), message="Report updated")


@router.delete("/{report_id}")
async def delete_report(
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Delete a draft report; visits and comments go with it."""
    subject = await get_report_subject(db, report_id)
    raise_for_denial(
        check_delete_report(principal, subject),
        principal,
        f"delete report {report_id}",
        code=ErrorCode.FORBIDDEN_DELETE,
    )

    await db.execute(delete(DailyReport).where(DailyReport.id == report_id))
    await db.commit()
    return success({"report_id": report_id}, message="Report deleted")


@router.patch("/{report_id}/status")
async def update_report_status(
    payload: StatusUpdate,
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Submit (owner) or confirm (owner's direct manager) a report."""
    subject = await get_report_subject(db, report_id)
    result = transition(subject, payload.status, principal)
    raise_for_denial(result.denial, principal, f"set report {report_id} to {payload.status.value}")

    report = await db.get(DailyReport, report_id)
    report.status = result.status
    await db.commit()
    await db.refresh(report)

    logger.info("Report %s moved %s -> %s by %s", report_id, subject.status.value, result.status.value, principal.id)

    return success(
        {
            "report_id": report.id,
            "status": result.status,
            "status_label": result.status.label,
            "updated_at": report.updated_at,
        },
        message="Status updated",
    )
