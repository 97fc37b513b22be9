from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from dailyreport.models.daily_report import ReportStatus
from dailyreport.schemas.comments import CommentOut
from dailyreport.schemas.visits import VisitIn, VisitOut
from dailyreport.services.validators import validate_report_date

# Owners only ever save or submit; confirming goes through PATCH /status.
EditableStatus = Literal["draft", "submitted"]


class ReportIn(BaseModel):
    report_date: date
    problem: Optional[str] = Field(default=None, max_length=2000)
    plan: Optional[str] = Field(default=None, max_length=2000)
    status: EditableStatus
    visits: list[VisitIn] = Field(default_factory=list)

    @field_validator("report_date")
    @classmethod
    def not_in_future(cls, v: date) -> date:
        validate_report_date(v)
        return v

    @model_validator(mode="after")
    def submitted_needs_visits(self):
        if self.status == "submitted" and not self.visits:
            raise ValueError("Add at least one visit record before submitting")
        return self


class StatusUpdate(BaseModel):
    status: ReportStatus


class ReportListItem(BaseModel):
    report_id: int
    report_date: date
    sales_person_id: int
    sales_person_name: str
    status: ReportStatus
    status_label: str
    visit_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime


class ReportDetail(BaseModel):
    report_id: int
    report_date: date
    sales_person_id: int
    sales_person_name: str
    status: ReportStatus
    status_label: str
    problem: Optional[str] = None
    plan: Optional[str] = None
    visits: list[VisitOut]
    comments: list[CommentOut]
    created_at: datetime
    updated_at: datetime


class ReportSaved(BaseModel):
    report_id: int
    report_date: date
    status: ReportStatus
    status_label: str
    updated_at: datetime
