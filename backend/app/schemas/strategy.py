from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StrategyRequest(BaseModel):
    """Client profile the strategy is generated for."""
    model_config = ConfigDict(allow_inf_nan=False)

    capital: float = Field(..., ge=1000, description="Capital to invest, in USD")
    categories: List[str] = Field(..., min_length=1, description="Standard or user-defined asset categories")
    risk_level: Literal["low", "medium", "high"]
    investment_goals: str = Field(..., min_length=1, max_length=1000)

    @field_validator("categories")
    @classmethod
    def strip_categories(cls, v: List[str]) -> List[str]:
        cleaned = [c.strip() for c in v if c and c.strip()]
        if not cleaned:
            raise ValueError("At least one category is required")
        return cleaned


class AssetAllocation(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    category: str
    percentage: float
    rationale: str


class StrategyRecommendation(BaseModel):
    ticker: str
    name: str
    justification: str


class InvestmentStrategy(BaseModel):
    strategy_title: str
    strategy_summary: str
    asset_allocation: List[AssetAllocation]
    recommendations: List[StrategyRecommendation]
    risk_analysis: str


class SavedStrategy(InvestmentStrategy):
    id: str
    created_at: datetime


class AllocationSummaryResponse(BaseModel):
    reported_total: float
    renormalized: bool


class GeneratedStrategyResponse(BaseModel):
    strategy: InvestmentStrategy
    allocation: AllocationSummaryResponse


class SaveStrategyResponse(BaseModel):
    id: str


class StrategyListResponse(BaseModel):
    strategies: List[SavedStrategy]
