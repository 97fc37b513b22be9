from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from dailyreport.models.daily_report import ReportStatus


class RecentReport(BaseModel):
    report_id: int
    report_date: date
    visit_count: int
    status: ReportStatus
    status_label: str


class RecentComment(BaseModel):
    comment_id: int
    report_id: int
    report_date: date
    commenter_name: str
    comment_text: str
    created_at: datetime


class DashboardData(BaseModel):
    monthly_visit_count: int
    # None for non-managers: "not applicable", distinct from 0 pending
    unconfirmed_report_count: Optional[int] = None
    recent_reports: list[RecentReport]
    recent_comments: list[RecentComment]
