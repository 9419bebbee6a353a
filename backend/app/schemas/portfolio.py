from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.holding import Holding


class PortfolioCreateRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)


class PortfolioSummary(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class PortfolioListResponse(BaseModel):
    portfolios: List[PortfolioSummary]


class CreatedResponse(BaseModel):
    id: str


class HoldingListResponse(BaseModel):
    holdings: List[Holding]


class EnrichedHoldingResponse(BaseModel):
    id: Optional[str] = None
    category: str
    name: str
    name_ar: Optional[str] = None
    ticker: str
    quantity: Optional[float] = None
    area: Optional[float] = None
    current_value: float
    purchase_value: float
    currency: str
    change: float
    change_percent: float


class ExcludedHoldingResponse(BaseModel):
    id: Optional[str] = None
    category: str
    reference: Optional[str] = None
    reason: str


class PortfolioTotalsResponse(BaseModel):
    total_purchase_value: float
    total_current_value: float
    total_change: float
    total_change_percent: float
    display_currency: str
    currencies: List[str]
    mixed_currencies: bool


class PortfolioValuationResponse(BaseModel):
    holdings: List[EnrichedHoldingResponse]
    excluded: List[ExcludedHoldingResponse]
    totals: PortfolioTotalsResponse


class PortfolioDetailResponse(PortfolioSummary):
    valuation: PortfolioValuationResponse
