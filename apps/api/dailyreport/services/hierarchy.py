"""Checks on the sales_persons.manager_id self-reference."""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dailyreport.models.sales_person import SalesPerson


async def direct_subordinate_ids(db: AsyncSession, manager_id: int) -> list[int]:
    rows = await db.execute(select(SalesPerson.id).where(SalesPerson.manager_id == manager_id))
    return list(rows.scalars().all())


async def would_create_cycle(db: AsyncSession, sales_person_id: int, new_manager_id: Optional[int]) -> bool:
    """True if making ``new_manager_id`` the manager of ``sales_person_id``
    would put ``sales_person_id`` above itself in the chain.

    Walks up from the proposed manager; the walk is bounded by the set of
    ids already seen so a pre-existing loop cannot hang it.
    """
    if new_manager_id is None:
        return False

    seen: set[int] = set()
    current: Optional[int] = new_manager_id
    while current is not None and current not in seen:
        if current == sales_person_id:
            return True
        seen.add(current)
        current = (
            await db.execute(select(SalesPerson.manager_id).where(SalesPerson.id == current))
        ).scalar_one_or_none()
    return False
