from fastapi import APIRouter, Depends, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyreport.core.database import get_db
from dailyreport.core.errors import ApiError, ErrorCode
from dailyreport.core.responses import success
from dailyreport.models.customer import Customer
from dailyreport.models.visit_record import VisitRecord
from dailyreport.routers.auth import get_current_principal
from dailyreport.schemas.visits import VisitIn, VisitOut
from dailyreport.services.permissions import Principal, check_edit_report, check_view_report, raise_for_denial
from dailyreport.services.reports import customer_names, get_report_subject
from dailyreport.services.validators import format_visit_time, parse_visit_time

router = APIRouter()


def to_visit_out(v: VisitRecord, customer_name: str) -> VisitOut:
    return VisitOut(
        visit_id=v.id,
        report_id=v.report_id,
        customer_id=v.customer_id,
        customer_name=customer_name,
        visit_time=format_visit_time(v.visit_time),
        visit_purpose=v.visit_purpose,
        visit_content=v.visit_content,
        visit_result=v.visit_result,
        created_at=v.created_at,
        updated_at=v.updated_at,
    )


async def load_visits(db: AsyncSession, report_id: int) -> list[VisitOut]:
    rows = (
        await db.execute(
            select(VisitRecord, Customer.customer_name)
            .join(Customer, Customer.id == VisitRecord.customer_id)
            .where(VisitRecord.report_id == report_id)
            .order_by(VisitRecord.visit_time.asc(), VisitRecord.id.asc())
        )
    ).all()
    return [to_visit_out(r.VisitRecord, r.customer_name) for r in rows]


async def _get_visit(db: AsyncSession, visit_id: int) -> VisitRecord:
    visit = await db.get(VisitRecord, visit_id)
    if not visit:
        raise ApiError.not_found("Visit record not found")
    return visit


@router.get("/reports/{report_id}/visits")
async def list_report_visits(
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    subject = await get_report_subject(db, report_id)
    raise_for_denial(check_view_report(principal, subject), principal, f"view visits of report {report_id}")
    return success({"items": await load_visits(db, report_id)})


@router.post("/reports/{report_id}/visits", status_code=201)
async def create_visit(
    payload: VisitIn,
    report_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    subject = await get_report_subject(db, report_id)
    raise_for_denial(
        check_edit_report(principal, subject),
        principal,
        f"add visit to report {report_id}",
        code=ErrorCode.FORBIDDEN_EDIT,
    )
    names = await customer_names(db, [payload.customer_id], field="customer_id")

    visit = VisitRecord(
        report_id=report_id,
        customer_id=payload.customer_id,
        visit_time=parse_visit_time(payload.visit_time),
        visit_purpose=payload.visit_purpose,
        visit_content=payload.visit_content,
        visit_result=payload.visit_result,
    )
    db.add(visit)
    await db.commit()
    await db.refresh(visit)
    return success(to_visit_out(visit, names[payload.customer_id]), message="Visit record created")


@router.put("/visits/{visit_id}")
async def update_visit(
    payload: VisitIn,
    visit_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    visit = await _get_visit(db, visit_id)
    subject = await get_report_subject(db, visit.report_id)
    raise_for_denial(
        check_edit_report(principal, subject),
        principal,
        f"edit visit {visit_id}",
        code=ErrorCode.FORBIDDEN_EDIT,
    )
    names = await customer_names(db, [payload.customer_id], field="customer_id")

    visit.customer_id = payload.customer_id
    visit.visit_time = parse_visit_time(payload.visit_time)
    visit.visit_purpose = payload.visit_purpose
    visit.visit_content = payload.visit_content
    visit.visit_result = payload.visit_result
    await db.commit()
    await db.refresh(visit)
    return success(to_visit_out(visit, names[payload.customer_id]), message="Visit record updated")


@router.delete("/visits/{visit_id}")
async def delete_visit(
    visit_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    visit = await _get_visit(db, visit_id)
    subject = await get_report_subject(db, visit.report_id)
    raise_for_denial(
        check_edit_report(principal, subject),
        principal,
        f"delete visit {visit_id}",
        code=ErrorCode.FORBIDDEN_DELETE,
    )

    await db.delete(visit)
    await db.commit()
    return success({"visit_id": visit_id}, message="Visit record deleted")
