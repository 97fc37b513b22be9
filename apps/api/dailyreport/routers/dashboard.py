from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dailyreport.core.database import get_session_factory
from dailyreport.core.responses import success
from dailyreport.routers.auth import get_current_principal
from dailyreport.services.dashboard import build_dashboard
from dailyreport.services.permissions import Principal

router = APIRouter()


def get_clock() -> Callable[[], datetime]:
    # Server local time; "this month" follows the server's calendar
    return datetime.now


@router.get("")
async def get_dashboard(
    principal: Principal = Depends(get_current_principal),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    return success(await build_dashboard(session_factory, principal, clock()))
