"""Company API routes — catalogue and per-user row order."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from invest_calendar.database import get_db
from invest_calendar.engine.types import Company
from invest_calendar.schemas.company import CompanyCreate, CompanyOrderUpdate
from invest_calendar.services import company_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=Company, status_code=status.HTTP_201_CREATED)
def create_company(payload: CompanyCreate, db: Session = Depends(get_db)):
    company = company_service.create_company(db, **payload.model_dump())
    return company_service.to_domain(company)


@router.get("/", response_model=list[Company])
def list_companies(user_id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Active companies in the user's row order (catalogue order without a user)."""
    return company_service.ordered_companies(db, user_id)


@router.put("/order", response_model=list[Company])
def update_company_order(payload: CompanyOrderUpdate, db: Session = Depends(get_db)):
    """Move one company to a new row index; returns the user's full order."""
    return company_service.reorder_company(db, payload.user_id, payload.company_id, payload.new_index)
