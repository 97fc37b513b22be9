from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from dailyreport.core.database import get_db
from dailyreport.core.errors import ApiError, ErrorCode
from dailyreport.core.responses import paginated, success
from dailyreport.models.daily_report import DailyReport
from dailyreport.models.sales_person import SalesPerson
from dailyreport.routers.auth import get_current_principal, get_password_hash
from dailyreport.schemas.sales_persons import SalesPersonCreate, SalesPersonOut, SalesPersonUpdate
from dailyreport.services.hierarchy import would_create_cycle
from dailyreport.services.pagination import calculate_offset, calculate_pagination
from dailyreport.services.permissions import Principal, check_manage_master_data, raise_for_denial

router = APIRouter()

Manager = aliased(SalesPerson)


def get_current_manager(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Sales-person master data is managers only."""
    raise_for_denial(check_manage_master_data(principal), principal, "manage sales persons")
    return principal


def to_sales_person_out(sp: SalesPerson, manager_name: Optional[str]) -> SalesPersonOut:
    return SalesPersonOut(
        sales_person_id=sp.id,
        name=sp.name,
        email=sp.email,
        department=sp.department,
        manager_id=sp.manager_id,
        manager_name=manager_name,
        is_manager=sp.is_manager,
        created_at=sp.created_at,
        updated_at=sp.updated_at,
    )


async def _load_out(db: AsyncSession, sales_person_id: int) -> SalesPersonOut:
    row = (
        await db.execute(
            select(SalesPerson, Manager.name.label("manager_name"))
            .outerjoin(Manager, Manager.id == SalesPerson.manager_id)
            .where(SalesPerson.id == sales_person_id)
        )
    ).first()
    if row is None:
        raise ApiError.not_found("Sales person not found")
    return to_sales_person_out(row.SalesPerson, row.manager_name)


async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(SalesPerson.id).where(SalesPerson.email == email)
    if exclude_id is not None:
        stmt = stmt.where(SalesPerson.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ApiError.duplicate("A sales person with this email already exists")


async def _ensure_manager_exists(db: AsyncSession, manager_id: Optional[int]) -> None:
    if manager_id is not None and await db.get(SalesPerson, manager_id) is None:
        raise ApiError.validation("Manager does not exist", field="manager_id")


@router.get("")
async def list_sales_persons(
    name: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    is_manager: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_manager),
):
    filters = []
    if name:
        filters.append(SalesPerson.name.icontains(name, autoescape=True))
    if department:
        filters.append(SalesPerson.department.icontains(department, autoescape=True))
    if is_manager is not None:
        filters.append(SalesPerson.is_manager == is_manager)

    total = (await db.execute(select(func.count(SalesPerson.id)).where(*filters))).scalar_one()
    pagination = calculate_pagination(total=total, page=page, per_page=per_page)

    rows = (
        await db.execute(
            select(SalesPerson, Manager.name.label("manager_name"))
            .outerjoin(Manager, Manager.id == SalesPerson.manager_id)
            .where(*filters)
            .order_by(SalesPerson.id.asc())
            .offset(calculate_offset(pagination.current_page, per_page))
            .limit(per_page)
        )
    ).all()

    return paginated(
        [to_sales_person_out(r.SalesPerson, r.manager_name) for r in rows],
        pagination,
    )


@router.post("", status_code=201)
async def create_sales_person(
    payload: SalesPersonCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_manager),
):
    email = str(payload.email).lower()
    await _ensure_email_free(db, email)
    await _ensure_manager_exists(db, payload.manager_id)

    sales_person = SalesPerson(
        name=payload.name,
        email=email,
        password_hash=get_password_hash(payload.password),
        department=payload.department,
        manager_id=payload.manager_id,
        is_manager=payload.is_manager,
    )
    db.add(sales_person)
    await db.commit()
    return success(await _load_out(db, sales_person.id), message="Sales person created")


@router.get("/{sales_person_id}")
async def get_sales_person(
    sales_person_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_manager),
):
    return success(await _load_out(db, sales_person_id))


@router.put("/{sales_person_id}")
async def update_sales_person(
    payload: SalesPersonUpdate,
    sales_person_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_manager),
):
    sales_person = await db.get(SalesPerson, sales_person_id)
    if not sales_person:
        raise ApiError.not_found("Sales person not found")

    email = str(payload.email).lower()
    if email != sales_person.email:
        await _ensure_email_free(db, email, exclude_id=sales_person_id)

    if payload.manager_id is not None:
        if payload.manager_id == sales_person_id:
            raise ApiError.validation("A sales person cannot be their own manager", field="manager_id")
        await _ensure_manager_exists(db, payload.manager_id)
        if await would_create_cycle(db, sales_person_id, payload.manager_id):
            raise ApiError.validation(
                "This manager reports to the sales person, directly or indirectly",
                field="manager_id",
            )

    sales_person.name = payload.name
    sales_person.email = email
    sales_person.department = payload.department
    sales_person.manager_id = payload.manager_id
    sales_person.is_manager = payload.is_manager
    if payload.password:
        sales_person.password_hash = get_password_hash(payload.password)

    await db.commit()
    await db.refresh(sales_person)
    return success(await _load_out(db, sales_person_id), message="Sales person updated")


@router.delete("/{sales_person_id}")
async def delete_sales_person(
    sales_person_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_manager),
):
    sales_person = await db.get(SalesPerson, sales_person_id)
    if not sales_person:
        raise ApiError.not_found("Sales person not found")

    if sales_person_id == principal.id:
        raise ApiError(ErrorCode.FORBIDDEN_DELETE, "You cannot delete yourself")

    report_count = (
        await db.execute(select(func.count(DailyReport.id)).where(DailyReport.sales_person_id == sales_person_id))
    ).scalar_one()
    if report_count > 0:
        raise ApiError.in_use("This sales person has daily reports and cannot be deleted")

    subordinate_count = (
        await db.execute(select(func.count(SalesPerson.id)).where(SalesPerson.manager_id == sales_person_id))
    ).scalar_one()
    if subordinate_count > 0:
        raise ApiError.in_use("This sales person manages other sales persons and cannot be deleted")

    await db.delete(sales_person)
    await db.commit()
    return success({"sales_person_id": sales_person_id}, message="Sales person deleted")
