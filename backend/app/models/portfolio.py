from pynamodb.models import Model
from pynamodb.attributes import (
    UnicodeAttribute,
    NumberAttribute,
    UTCDateTimeAttribute,
)
from datetime import datetime, timezone


class Portfolio(Model):
    class Meta:
        table_name = "portfolios"
        region = "us-east-1"

    user_id = UnicodeAttribute(hash_key=True)
    portfolio_id = UnicodeAttribute(range_key=True)
    name = UnicodeAttribute()
    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))
    updated_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))


def portfolio_key(user_id: str, portfolio_id: str) -> str:
    return f"{user_id}#{portfolio_id}"


class PortfolioHolding(Model):
    """One holding; only the attributes of its category are set."""
    class Meta:
        table_name = "portfolio_holdings"
        region = "us-east-1"

    portfolio_key = UnicodeAttribute(hash_key=True)  # {user_id}#{portfolio_id}
    holding_id = UnicodeAttribute(range_key=True)

    category = UnicodeAttribute()  # Stocks / RealEstate / Gold / SavingsCertificates
    name = UnicodeAttribute(null=True)
    ticker = UnicodeAttribute(null=True)
    city_key = UnicodeAttribute(null=True)
    quantity = NumberAttribute(null=True)
    area = NumberAttribute(null=True)
    purchase_price = NumberAttribute()
    purchase_market_price = NumberAttribute(null=True)
    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))
