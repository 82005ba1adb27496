"""Company and per-user company order ORM models."""
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from invest_calendar.database import Base


class Company(Base):
    __tablename__ = "companies"

    company_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    ticker_symbol = Column(String(20), nullable=False, unique=True)
    company_name = Column(String(255), nullable=False)
    gics_sector = Column(String(100), nullable=False, default="")
    gics_subsector = Column(String(100), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserCompanyOrder(Base):
    """Position of a company row in one user's calendar."""

    __tablename__ = "user_company_order"
    __table_args__ = (UniqueConstraint("user_id", "company_id", name="uq_user_company_order"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    company_id = Column(String(36), ForeignKey("companies.company_id"), nullable=False)
    display_order = Column(Integer, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
