from pynamodb.models import Model
from pynamodb.attributes import UnicodeAttribute, ListAttribute, UTCDateTimeAttribute
from datetime import datetime, timezone


class Watchlist(Model):
    class Meta:
        table_name = "watchlists"
        region = "us-east-1"

    user_id = UnicodeAttribute(hash_key=True)
    tickers = ListAttribute(default=list)  # ordered, unique
    updated_at = UTCDateTimeAttribute(default=lambda: datetime.now(timezone.utc))
