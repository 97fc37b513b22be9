from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from dailyreport.core.database import Base

class Customer(Base):
    __tablename__ = "customers"

    id = Column("customer_id", Integer, primary_key=True, autoincrement=True)

    # Unique by convention only; checked on create/update, not by the DB
    customer_name = Column(String(100), nullable=False)
    address = Column(String(200), nullable=True)
    phone = Column(String(20), nullable=True)
    contact_person = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
