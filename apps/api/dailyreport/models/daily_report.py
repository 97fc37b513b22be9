import enum

from sqlalchemy import Column, Integer, Date, Text, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from dailyreport.core.database import Base

class ReportStatus(str, enum.Enum):
    draft = "draft"
    submitted = "submitted"
    confirmed = "confirmed"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    ReportStatus.draft: "Draft",
    ReportStatus.submitted: "Submitted",
    ReportStatus.confirmed: "Confirmed",
}


class DailyReport(Base):
    __tablename__ = "daily_reports"
    __table_args__ = (
        UniqueConstraint("sales_person_id", "report_date", name="uq_daily_reports_sales_person_id_report_date"),
    )

    id = Column("report_id", Integer, primary_key=True, autoincrement=True)

    sales_person_id = Column(
        Integer,
        ForeignKey("sales_persons.sales_person_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    report_date = Column(Date, nullable=False)
    problem = Column(Text, nullable=True)
    plan = Column(Text, nullable=True)

    status = Column(Enum(ReportStatus, name="report_status"), nullable=False, default=ReportStatus.draft)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
