"""Pydantic schemas for Companies and the per-user company order."""
from pydantic import BaseModel, Field


class CompanyCreate(BaseModel):
    ticker_symbol: str = Field(min_length=1, max_length=20)
    company_name: str
    gics_sector: str = ""
    gics_subsector: str = ""


class CompanyOrderUpdate(BaseModel):
    user_id: str
    company_id: str
    new_index: int
