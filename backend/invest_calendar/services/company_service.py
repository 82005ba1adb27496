"""Company service — company catalogue and per-user row order."""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from invest_calendar.engine.company_order import move
from invest_calendar.engine.types import Company as CompanyView
from invest_calendar.models.company import Company, UserCompanyOrder
from invest_calendar.models.user import User

logger = logging.getLogger(__name__)


def to_domain(company: Company, display_order: int = 0) -> CompanyView:
    return CompanyView(
        id=company.company_id,
        ticker_symbol=company.ticker_symbol,
        company_name=company.company_name,
        gics_sector=company.gics_sector or "",
        gics_subsector=company.gics_subsector or "",
        display_order=display_order,
    )


def create_company(
    db: Session,
    ticker_symbol: str,
    company_name: str,
    gics_sector: str = "",
    gics_subsector: str = "",
) -> Company:
    company = Company(
        ticker_symbol=ticker_symbol.upper(),
        company_name=company_name,
        gics_sector=gics_sector,
        gics_subsector=gics_subsector,
    )
    db.add(company)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Ticker {ticker_symbol} already exists")
    db.refresh(company)
    logger.info("Created company %s (%s)", company.ticker_symbol, company.company_id)
    return company


def ordered_companies(db: Session, user_id: Optional[str] = None) -> list[CompanyView]:
    """Active companies in the user's row order, renumbered 0..n-1.

    Companies the user never positioned follow the positioned ones; ties break
    by company id.
    """
    companies = db.query(Company).filter(Company.is_active.is_(True)).all()
    stored: dict[str, int] = {}
    if user_id:
        rows = db.query(UserCompanyOrder).filter(UserCompanyOrder.user_id == user_id).all()
        stored = {row.company_id: row.display_order for row in rows}

    def sort_key(company: Company):
        if company.company_id in stored:
            return (0, stored[company.company_id], company.company_id)
        return (1, 0, company.company_id)

    ordered = sorted(companies, key=sort_key)
    return [to_domain(company, index) for index, company in enumerate(ordered)]


def reorder_company(db: Session, user_id: str, company_id: str, new_index: int) -> list[CompanyView]:
    """Move one company row and persist the whole order densely for the user."""
    if not db.query(User).filter(User.user_id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    current = [c.id for c in ordered_companies(db, user_id)]
    if company_id not in current:
        raise HTTPException(status_code=404, detail="Company not found")
    new_order = move(current, company_id, new_index)

    existing = {
        row.company_id: row
        for row in db.query(UserCompanyOrder).filter(UserCompanyOrder.user_id == user_id).all()
    }
    for index, cid in enumerate(new_order):
        row = existing.get(cid)
        if row is None:
            db.add(UserCompanyOrder(user_id=user_id, company_id=cid, display_order=index))
        else:
            row.display_order = index
    db.commit()
    logger.info("User %s moved company %s to position %d", user_id, company_id, new_order.index(company_id))
    return ordered_companies(db, user_id)
