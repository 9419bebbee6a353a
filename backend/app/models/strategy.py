from pynamodb.models import Model
from pynamodb.attributes import (
    UnicodeAttribute,
    NumberAttribute,
    UTCDateTimeAttribute,
    ListAttribute,
    MapAttribute,
)
from datetime import datetime, timezone


class AllocationMap(MapAttribute):
    category = UnicodeAttribute()
    percentage = NumberAttribute()
    rationale = UnicodeAttribute()


class RecommendationMap(MapAttribute):
    ticker = UnicodeAttribute()
    name = UnicodeAttribute()
    justification = UnicodeAttribute()


class Strategy(Model):
    class Meta:
        table_name = "strategies"
        region = "us-east-1"

    user_id = UnicodeAttribute(hash_key=True)
    strategy_key = UnicodeAttribute(range_key=True)  # {created_at ISO}#{strategy_id}

    strategy_id = UnicodeAttribute()
    strategy_title = UnicodeAttribute()
    strategy_summary = UnicodeAttribute()
    asset_allocation = ListAttribute(of=AllocationMap, default=list)
    recommendations = ListAttribute(of=RecommendationMap, default=list)
    risk_analysis = UnicodeAttribute()
    created_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))
