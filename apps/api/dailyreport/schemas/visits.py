from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

class VisitIn(BaseModel):
    customer_id: int = Field(gt=0)
    visit_time: Optional[str] = Field(default=None, pattern=r"^([01]\d|2[0-3]):([0-5]\d)$")  # HH:MM
    visit_purpose: Optional[str] = Field(default=None, max_length=100)
    visit_content: str = Field(min_length=1, max_length=1000)
    visit_result: Optional[str] = Field(default=None, max_length=200)

class VisitOut(BaseModel):
    visit_id: int
    report_id: int
    customer_id: int
    customer_name: str
    visit_time: Optional[str] = None
    visit_purpose: Optional[str] = None
    visit_content: str
    visit_result: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
