import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError, jwt
from passlib.context import CryptContext

from dailyreport.core.config import Settings
from dailyreport.core.database import get_db
from dailyreport.core.errors import ApiError, ErrorCode
from dailyreport.core.responses import success
from dailyreport.models.sales_person import SalesPerson
from dailyreport.services.permissions import Principal

logger = logging.getLogger(__name__)

router = APIRouter()
# auto_error=False so a missing header is a 401 in our envelope, not FastAPI's default
security = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_access_token(settings: Settings, data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(settings: Settings, token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        logger.warning("Rejected bearer token")
        raise ApiError.unauthorized("Invalid authentication credentials")


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Principal:
    """Resolve the signed-in sales person from the bearer token."""
    if credentials is None:
        raise ApiError.unauthorized()

    payload = decode_token(settings, credentials.credentials)
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise ApiError.unauthorized("Invalid authentication credentials")

    sales_person = await db.get(SalesPerson, int(subject))
    if sales_person is None:
        logger.warning("Token for unknown sales person %s", subject)
        raise ApiError.unauthorized("Sales person not found")

    return Principal(
        id=sales_person.id,
        is_manager=sales_person.is_manager,
        name=sales_person.name,
        email=sales_person.email,
    )


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    sales_person_id: int
    name: str
    email: str
    is_manager: bool


@router.post("/login")
async def login(
    req: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Login endpoint for sales persons."""
    stmt = select(SalesPerson).where(SalesPerson.email == req.email.lower())
    sales_person = (await db.execute(stmt)).scalar_one_or_none()

    # Same answer for unknown email and wrong password
    if not sales_person or not verify_password(req.password, sales_person.password_hash):
        logger.warning("Failed login for %s", req.email.lower())
        raise ApiError(ErrorCode.AUTH_INVALID_CREDENTIALS)

    access_token = create_access_token(
        settings,
        data={"sub": str(sales_person.id), "is_manager": sales_person.is_manager},
    )

    return success(
        LoginResponse(
            access_token=access_token,
            sales_person_id=sales_person.id,
            name=sales_person.name,
            email=sales_person.email,
            is_manager=sales_person.is_manager,
        )
    )


@router.get("/me")
async def get_current_user_info(principal: Principal = Depends(get_current_principal)):
    """Get current authenticated sales person info."""
    return success(
        {
            "sales_person_id": principal.id,
            "name": principal.name,
            "email": principal.email,
            "is_manager": principal.is_manager,
        }
    )
