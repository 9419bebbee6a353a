"""
Portfolio holdings as a tagged union over the four valued categories.

Each variant carries only the fields its valuation needs, discriminated by
``category``. Amount fields accept zero here so that stored records always
load; ``validate_new_holding`` applies the stricter rules for user input.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


DEFAULT_SAVINGS_CERTIFICATE = "SAVINGS-CERT-SAR"


class HoldingBase(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    id: Optional[str] = None
    name: Optional[str] = Field(None, max_length=50)
    purchase_price: float = Field(..., ge=0, description="Total amount paid, not a unit price")
    created_at: Optional[datetime] = None


class StocksHolding(HoldingBase):
    category: Literal["Stocks"] = "Stocks"
    ticker: str = Field(..., min_length=1, max_length=20)
    quantity: float

    @field_validator("ticker")
    @classmethod
    def ticker_uppercase(cls, v: str) -> str:
        return v.strip().upper()


class RealEstateHolding(HoldingBase):
    category: Literal["RealEstate"] = "RealEstate"
    city_key: str = Field(..., min_length=1, max_length=30)
    area: float = Field(..., description="Square meters")

    @field_validator("city_key")
    @classmethod
    def city_key_uppercase(cls, v: str) -> str:
        return v.strip().upper()


class GoldHolding(HoldingBase):
    category: Literal["Gold"] = "Gold"
    purchase_market_price: Optional[float] = Field(
        None,
        gt=0,
        description="Gold spot price when the holding was bought, if known",
    )


class SavingsCertificatesHolding(HoldingBase):
    category: Literal["SavingsCertificates"] = "SavingsCertificates"
    ticker: str = Field(DEFAULT_SAVINGS_CERTIFICATE, min_length=1, max_length=30)

    @field_validator("ticker")
    @classmethod
    def ticker_uppercase(cls, v: str) -> str:
        return v.strip().upper()


Holding = Annotated[
    Union[StocksHolding, RealEstateHolding, GoldHolding, SavingsCertificatesHolding],
    Field(discriminator="category"),
]

HOLDING_ADAPTER: TypeAdapter = TypeAdapter(Holding)


def parse_holding(data: dict):
    """Build the matching holding variant from a plain mapping."""
    return HOLDING_ADAPTER.validate_python(data)


def validate_new_holding(holding) -> List[str]:
    """Return user-facing messages for a holding that may not be added."""
    errors = []
    if holding.purchase_price <= 0:
        errors.append("Purchase price must be greater than zero.")
    if isinstance(holding, StocksHolding) and holding.quantity <= 0:
        errors.append("Quantity must be greater than zero.")
    if isinstance(holding, RealEstateHolding) and holding.area <= 0:
        errors.append("Area must be greater than zero.")
    if holding.name is not None and len(holding.name.strip()) < 2:
        errors.append("Asset name must be at least 2 characters.")
    return errors
