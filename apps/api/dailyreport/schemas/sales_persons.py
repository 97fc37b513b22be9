from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

class SalesPersonCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8)
    department: str = Field(min_length=1, max_length=100)
    manager_id: Optional[int] = Field(default=None, gt=0)
    is_manager: bool = False

class SalesPersonUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: Optional[str] = Field(default=None, min_length=8)  # unchanged when omitted
    department: str = Field(min_length=1, max_length=100)
    manager_id: Optional[int] = Field(default=None, gt=0)
    is_manager: bool = False

class SalesPersonOut(BaseModel):
    sales_person_id: int
    name: str
    email: str
    department: str
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None
    is_manager: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
