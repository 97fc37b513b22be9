from sqlalchemy import Column, Integer, String, Text, Time, DateTime, ForeignKey
from sqlalchemy.sql import func

from dailyreport.core.database import Base

class VisitRecord(Base):
    __tablename__ = "visit_records"

    id = Column("visit_id", Integer, primary_key=True, autoincrement=True)

    report_id = Column(
        Integer,
        ForeignKey("daily_reports.report_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # RESTRICT: a customer cannot be deleted while visits reference it
    customer_id = Column(
        Integer,
        ForeignKey("customers.customer_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    visit_time = Column(Time, nullable=True)
    visit_purpose = Column(String(100), nullable=True)
    visit_content = Column(Text, nullable=False)
    visit_result = Column(String(200), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
