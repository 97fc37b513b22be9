from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from dailyreport.core.database import Base

class Comment(Base):
    __tablename__ = "comments"

    id = Column("comment_id", Integer, primary_key=True, autoincrement=True)

    report_id = Column(
        Integer,
        ForeignKey("daily_reports.report_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # author
    sales_person_id = Column(
        Integer,
        ForeignKey("sales_persons.sales_person_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    comment_text = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
