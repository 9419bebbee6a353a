from typing import List

from pydantic import BaseModel, Field, field_validator

from app.schemas.catalog import CatalogAsset


class WatchlistAddRequest(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=20)

    @field_validator('ticker')
    @classmethod
    def ticker_uppercase(cls, v: str) -> str:
        return v.strip().upper()


class WatchlistResponse(BaseModel):
    tickers: List[str]
    quotes: List[CatalogAsset]
