from pynamodb.models import Model
from pynamodb.attributes import (
    UnicodeAttribute,
    NumberAttribute,
    UTCDateTimeAttribute,
)
from datetime import datetime, timezone


class Asset(Model):
    """
    Catalog instrument for DynamoDB.
    Written by the market-data job, read by valuation.
    """
    class Meta:
        table_name = "catalog_assets"
        region = "us-east-1"

    ticker = UnicodeAttribute(hash_key=True)

    name = UnicodeAttribute()
    name_ar = UnicodeAttribute()
    category = UnicodeAttribute()
    country = UnicodeAttribute()
    currency = UnicodeAttribute()
    price = NumberAttribute()
    change = NumberAttribute(default=0)
    change_percent = NumberAttribute(default=0)
    annual_yield = NumberAttribute(null=True)

    updated_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<Asset(ticker='{self.ticker}', price={self.price})>"


class RealEstateCity(Model):
    """
    Average residential price per square meter, keyed by upper-case city key.
    """
    class Meta:
        table_name = "real_estate_cities"
        region = "us-east-1"

    city_key = UnicodeAttribute(hash_key=True)

    name = UnicodeAttribute()
    name_ar = UnicodeAttribute()
    country = UnicodeAttribute()
    price_per_sqm = NumberAttribute()
    currency = UnicodeAttribute()

    updated_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<RealEstateCity(city_key='{self.city_key}', price_per_sqm={self.price_per_sqm})>"
