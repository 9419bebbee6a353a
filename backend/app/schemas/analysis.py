from typing import List, Literal

from pydantic import BaseModel, Field


class AnalystRecommendation(BaseModel):
    decision: Literal["Buy", "Sell", "Hold"]
    confidence_score: int = Field(..., ge=1, le=10)
    justification: str


class MarketAnalysis(BaseModel):
    ticker: str
    company_name: str
    financial_analysis: str
    news_summary: str
    recommendation: AnalystRecommendation


class NewsDigest(BaseModel):
    """Model output for a news summary."""
    summary: str


class NewsSummary(BaseModel):
    ticker: str
    summary: str
    articles: List[str] = Field(default_factory=list)
