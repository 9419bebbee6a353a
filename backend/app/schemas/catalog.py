from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


AssetCategory = Literal[
    "Stocks", "RealEstate", "Gold", "Bonds", "SavingsCertificates", "Other"
]
Currency = Literal["SAR", "QAR", "AED", "USD"]
Country = Literal["SA", "AE", "QA", "Global"]


class CatalogAsset(BaseModel):
    """A priced instrument as last written by the market-data job."""
    model_config = ConfigDict(allow_inf_nan=False)

    ticker: str = Field(..., min_length=1, max_length=20)
    name: str
    name_ar: str
    category: AssetCategory
    country: Country
    currency: Currency
    price: float = Field(..., ge=0)
    change: float = Field(0.0, description="Absolute change since the previous tick")
    change_percent: float = Field(0.0, description="Percent change since the previous tick")
    annual_yield: Optional[float] = Field(None, ge=0, description="Yield for interest-bearing instruments, e.g. 0.05")
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def trend(self) -> Literal["up", "down", "stable"]:
        if self.change > 0:
            return "up"
        if self.change < 0:
            return "down"
        return "stable"


class CatalogCity(BaseModel):
    """Average residential price per square meter for a city."""
    model_config = ConfigDict(allow_inf_nan=False)

    city_key: str = Field(..., min_length=1, max_length=30)
    name: str
    name_ar: str
    country: Country
    price_per_sqm: float = Field(..., ge=0)
    currency: Currency
    updated_at: Optional[datetime] = None
