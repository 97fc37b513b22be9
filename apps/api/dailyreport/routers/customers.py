import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dailyreport.core.database import get_db
from dailyreport.core.errors import ApiError
from dailyreport.core.responses import paginated, success
from dailyreport.models.customer import Customer
from dailyreport.models.visit_record import VisitRecord
from dailyreport.routers.auth import get_current_principal
from dailyreport.schemas.customers import CustomerIn, CustomerOut
from dailyreport.services.pagination import calculate_offset, calculate_pagination
from dailyreport.services.permissions import Principal

logger = logging.getLogger(__name__)

router = APIRouter()

IN_USE_MESSAGE = "This customer is referenced by visit records and cannot be deleted"


def to_customer_out(c: Customer) -> CustomerOut:
    return CustomerOut(
        customer_id=c.id,
        customer_name=c.customer_name,
        address=c.address,
        phone=c.phone,
        contact_person=c.contact_person,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def _get_customer(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise ApiError.not_found("Customer not found")
    return customer


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Customer.id).where(Customer.customer_name == name)
    if exclude_id is not None:
        stmt = stmt.where(Customer.id != exclude_id)
    if (await db.execute(stmt.limit(1))).first():
        raise ApiError.duplicate("A customer with this name already exists")


@router.get("")
async def list_customers(
    customer_name: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    sort: Literal["customer_name", "created_at"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    filters = []
    if customer_name:
        filters.append(Customer.customer_name.icontains(customer_name, autoescape=True))

    total = (await db.execute(select(func.count(Customer.id)).where(*filters))).scalar_one()
    pagination = calculate_pagination(total=total, page=page, per_page=per_page)

    sort_col = Customer.customer_name if sort == "customer_name" else Customer.created_at
    sort_expr = sort_col.asc() if order == "asc" else sort_col.desc()

    customers = (
        await db.execute(
            select(Customer)
            .where(*filters)
            .order_by(sort_expr, Customer.id.asc())
            .offset(calculate_offset(pagination.current_page, per_page))
            .limit(per_page)
        )
    ).scalars().all()

    return paginated(
        [to_customer_out(c) for c in customers],
        pagination,
    )


@router.post("", status_code=201)
async def create_customer(
    payload: CustomerIn,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    await _ensure_unique_name(db, payload.customer_name)

    customer = Customer(
        customer_name=payload.customer_name,
        address=payload.address,
        phone=payload.phone,
        contact_person=payload.contact_person,
    )
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return success(to_customer_out(customer), message="Customer created")


@router.get("/{customer_id}")
async def get_customer(
    customer_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return success(to_customer_out(await _get_customer(db, customer_id)))


@router.put("/{customer_id}")
async def update_customer(
    payload: CustomerIn,
    customer_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    customer = await _get_customer(db, customer_id)
    await _ensure_unique_name(db, payload.customer_name, exclude_id=customer_id)

    customer.customer_name = payload.customer_name
    customer.address = payload.address
    customer.phone = payload.phone
    customer.contact_person = payload.contact_person
    await db.commit()
    await db.refresh(customer)
    return success(to_customer_out(customer), message="Customer updated")


async def _visit_count(db: AsyncSession, customer_id: int) -> int:
    return (
        await db.execute(select(func.count(VisitRecord.id)).where(VisitRecord.customer_id == customer_id))
    ).scalar_one()


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int = Path(gt=0),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    customer = await _get_customer(db, customer_id)

    if await _visit_count(db, customer_id) > 0:
        raise ApiError.in_use(IN_USE_MESSAGE)

    await db.delete(customer)
    try:
        await db.commit()
    except IntegrityError:
        # RESTRICT: a visit for this customer landed after the count
        await db.rollback()
        logger.warning("Customer %s gained visit records while being deleted", customer_id)
        raise ApiError.in_use(IN_USE_MESSAGE)
    return success({"customer_id": customer_id}, message="Customer deleted")
