from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from dailyreport.core.database import Base

class SalesPerson(Base):
    __tablename__ = "sales_persons"

    id = Column("sales_person_id", Integer, primary_key=True, autoincrement=True)

    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column("password", String(255), nullable=False)
    department = Column(String(100), nullable=False)

    is_manager = Column(Boolean, nullable=False, default=False)

    # Direct manager (one hop). NULL for the top of the org chart.
    manager_id = Column(
        Integer,
        ForeignKey("sales_persons.sales_person_id"),
        nullable=True,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
