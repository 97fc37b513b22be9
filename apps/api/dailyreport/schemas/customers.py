from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dailyreport.services.validators import validate_phone


class CustomerIn(BaseModel):
    customer_name: str = Field(min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = None
    contact_person: Optional[str] = Field(default=None, max_length=50)

    @field_validator("address", "phone", "contact_person", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and v.strip() == "":
            return None
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class CustomerOut(BaseModel):
    customer_id: int
    customer_name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    contact_person: Optional[str] = None
    created_at: datetime
    updated_at: datetime
