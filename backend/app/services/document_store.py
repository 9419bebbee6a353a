"""
DynamoDB-backed store for catalog, watchlists, portfolios, holdings and strategies.

The application entry point builds one ``DocumentStore`` and hands it to the
routers through a dependency; nothing here is initialised at import time.
Every write publishes a fresh snapshot of the affected collection through the
store's ``SnapshotHub``.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pynamodb.exceptions import DoesNotExist, UpdateError

from app.core.config import Settings
from app.core.logging_config import get_logger
from app.models.catalog import Asset, RealEstateCity
from app.models.portfolio import Portfolio, PortfolioHolding, portfolio_key
from app.models.strategy import AllocationMap, RecommendationMap, Strategy
from app.models.watchlist import Watchlist
from app.schemas.catalog import CatalogAsset, CatalogCity
from app.schemas.holding import parse_holding
from app.schemas.portfolio import PortfolioSummary
from app.schemas.strategy import InvestmentStrategy, SavedStrategy
from app.services.catalog_service import CatalogSnapshot
from app.services.subscriptions import SnapshotHub, Unsubscribe

logger = get_logger(__name__)

ALL_MODELS = (Asset, RealEstateCity, Portfolio, PortfolioHolding, Strategy, Watchlist)

# Attributes copied between holding variants and PortfolioHolding records
HOLDING_FIELDS = (
    "category", "name", "ticker", "city_key", "quantity",
    "area", "purchase_price", "purchase_market_price",
)


class PortfolioNotFound(Exception):
    pass


class HoldingNotFound(Exception):
    pass


def configure_models(region: str, host: Optional[str] = None, table_prefix: str = "") -> None:
    """Point every model at the configured region, endpoint and table names."""
    for model in ALL_MODELS:
        base_name = getattr(model.Meta, "base_table_name", None) or model.Meta.table_name
        model.Meta.base_table_name = base_name
        model.Meta.table_name = f"{table_prefix}{base_name}"
        model.Meta.region = region
        model.Meta.host = host
        # Drop any cached connection so the new settings take effect
        model._connection = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class DocumentStore:
    def __init__(self, hub: Optional[SnapshotHub] = None):
        self.hub = hub or SnapshotHub()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore":
        configure_models(
            region=settings.AWS_REGION,
            host=settings.DYNAMODB_ENDPOINT,
            table_prefix=settings.TABLE_PREFIX,
        )
        return cls()

    def create_tables(self) -> None:
        """Create missing tables (local development and tests)."""
        for model in ALL_MODELS:
            if not model.exists():
                model.create_table(read_capacity_units=1, write_capacity_units=1, wait=True)
                logger.info("Created table", extra={"table": model.Meta.table_name})

    def close(self) -> None:
        self.hub.close()

    # ==================== Catalog ====================

    @staticmethod
    def _asset_from_record(record: Asset) -> CatalogAsset:
        return CatalogAsset(
            ticker=record.ticker,
            name=record.name,
            name_ar=record.name_ar,
            category=record.category,
            country=record.country,
            currency=record.currency,
            price=float(record.price),
            change=float(record.change or 0),
            change_percent=float(record.change_percent or 0),
            annual_yield=float(record.annual_yield) if record.annual_yield is not None else None,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _city_from_record(record: RealEstateCity) -> CatalogCity:
        return CatalogCity(
            city_key=record.city_key,
            name=record.name,
            name_ar=record.name_ar,
            country=record.country,
            price_per_sqm=float(record.price_per_sqm),
            currency=record.currency,
            updated_at=record.updated_at,
        )

    def list_assets(self) -> List[CatalogAsset]:
        return [self._asset_from_record(r) for r in Asset.scan()]

    def get_asset(self, ticker: str) -> Optional[CatalogAsset]:
        try:
            return self._asset_from_record(Asset.get(ticker.strip().upper()))
        except DoesNotExist:
            return None

    def save_asset(self, asset: CatalogAsset) -> None:
        Asset(
            ticker=asset.ticker.upper(),
            name=asset.name,
            name_ar=asset.name_ar,
            category=asset.category,
            country=asset.country,
            currency=asset.currency,
            price=asset.price,
            change=asset.change,
            change_percent=asset.change_percent,
            annual_yield=asset.annual_yield,
            updated_at=_now(),
        ).save()

    def list_cities(self) -> List[CatalogCity]:
        return [self._city_from_record(r) for r in RealEstateCity.scan()]

    def get_city(self, city_key: str) -> Optional[CatalogCity]:
        try:
            return self._city_from_record(RealEstateCity.get(city_key.strip().upper()))
        except DoesNotExist:
            return None

    def save_city(self, city: CatalogCity) -> None:
        RealEstateCity(
            city_key=city.city_key.upper(),
            name=city.name,
            name_ar=city.name_ar,
            country=city.country,
            price_per_sqm=city.price_per_sqm,
            currency=city.currency,
            updated_at=_now(),
        ).save()

    def load_catalog(self) -> CatalogSnapshot:
        return CatalogSnapshot.build(self.list_assets(), self.list_cities())

    # ==================== Watchlist ====================

    def get_watchlist(self, user_id: str) -> List[str]:
        try:
            return list(Watchlist.get(user_id).tickers or [])
        except DoesNotExist:
            return []

    def _save_watchlist(self, user_id: str, tickers: List[str]) -> None:
        Watchlist(user_id=user_id, tickers=tickers, updated_at=_now()).save()
        self.hub.publish(("watchlist", user_id))

    def add_to_watchlist(self, user_id: str, ticker: str) -> List[str]:
        ticker = ticker.strip().upper()
        tickers = self.get_watchlist(user_id)
        if ticker not in tickers:
            tickers.append(ticker)
            self._save_watchlist(user_id, tickers)
        return tickers

    def remove_from_watchlist(self, user_id: str, ticker: str) -> List[str]:
        ticker = ticker.strip().upper()
        tickers = self.get_watchlist(user_id)
        if ticker in tickers:
            tickers.remove(ticker)
            self._save_watchlist(user_id, tickers)
        return tickers

    def subscribe_watchlist(self, user_id: str, callback: Callable) -> Unsubscribe:
        return self.hub.subscribe(("watchlist", user_id), lambda: self.get_watchlist(user_id), callback)

    # ==================== Portfolios ====================

    @staticmethod
    def _portfolio_from_record(record: Portfolio) -> PortfolioSummary:
        return PortfolioSummary(
            id=record.portfolio_id,
            name=record.name,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def create_portfolio(self, user_id: str, name: str) -> str:
        portfolio_id = _new_id()
        now = _now()
        Portfolio(
            user_id=user_id,
            portfolio_id=portfolio_id,
            name=name.strip(),
            created_at=now,
            updated_at=now,
        ).save()
        self.hub.publish(("portfolios", user_id))
        return portfolio_id

    def get_portfolio(self, user_id: str, portfolio_id: str) -> Optional[PortfolioSummary]:
        try:
            return self._portfolio_from_record(Portfolio.get(user_id, portfolio_id))
        except DoesNotExist:
            return None

    def list_portfolios(self, user_id: str) -> List[PortfolioSummary]:
        portfolios = [self._portfolio_from_record(r) for r in Portfolio.query(user_id)]
        portfolios.sort(key=lambda p: p.created_at, reverse=True)
        return portfolios

    def delete_portfolio(self, user_id: str, portfolio_id: str) -> None:
        """Delete a portfolio together with all of its holdings."""
        try:
            portfolio = Portfolio.get(user_id, portfolio_id)
        except DoesNotExist:
            raise PortfolioNotFound(portfolio_id)

        key = portfolio_key(user_id, portfolio_id)
        with PortfolioHolding.batch_write() as batch:
            for record in PortfolioHolding.query(key):
                batch.delete(record)
        portfolio.delete()

        self.hub.publish(("holdings", user_id, portfolio_id))
        self.hub.publish(("portfolios", user_id))

    def _touch_portfolio(self, user_id: str, portfolio_id: str) -> None:
        try:
            Portfolio(user_id=user_id, portfolio_id=portfolio_id).update(
                actions=[Portfolio.updated_at.set(_now())],
                condition=Portfolio.portfolio_id.exists(),
            )
        except UpdateError as e:
            logger.warning("Portfolio vanished before updated_at bump: %s", e, extra={"portfolio_id": portfolio_id})
            return
        self.hub.publish(("portfolios", user_id))

    def subscribe_portfolios(self, user_id: str, callback: Callable) -> Unsubscribe:
        return self.hub.subscribe(("portfolios", user_id), lambda: self.list_portfolios(user_id), callback)

    # ==================== Holdings ====================

    @staticmethod
    def _holding_from_record(record: PortfolioHolding):
        data = {
            name: getattr(record, name)
            for name in HOLDING_FIELDS
            if getattr(record, name) is not None
        }
        data["id"] = record.holding_id
        data["created_at"] = record.created_at
        return parse_holding(data)

    def list_holdings(self, user_id: str, portfolio_id: str) -> list:
        records = PortfolioHolding.query(portfolio_key(user_id, portfolio_id))
        holdings = [self._holding_from_record(r) for r in records]
        holdings.sort(key=lambda h: h.created_at)
        return holdings

    def add_holding(self, user_id: str, portfolio_id: str, holding) -> str:
        if self.get_portfolio(user_id, portfolio_id) is None:
            raise PortfolioNotFound(portfolio_id)

        holding_id = _new_id()
        fields = holding.model_dump(include=set(HOLDING_FIELDS))
        PortfolioHolding(
            portfolio_key=portfolio_key(user_id, portfolio_id),
            holding_id=holding_id,
            created_at=_now(),
            **{k: v for k, v in fields.items() if v is not None},
        ).save()

        self.hub.publish(("holdings", user_id, portfolio_id))
        self._touch_portfolio(user_id, portfolio_id)
        return holding_id

    def remove_holding(self, user_id: str, portfolio_id: str, holding_id: str) -> None:
        try:
            record = PortfolioHolding.get(portfolio_key(user_id, portfolio_id), holding_id)
        except DoesNotExist:
            raise HoldingNotFound(holding_id)
        record.delete()

        self.hub.publish(("holdings", user_id, portfolio_id))
        self._touch_portfolio(user_id, portfolio_id)

    def subscribe_holdings(self, user_id: str, portfolio_id: str, callback: Callable) -> Unsubscribe:
        return self.hub.subscribe(
            ("holdings", user_id, portfolio_id),
            lambda: self.list_holdings(user_id, portfolio_id),
            callback,
        )

    # ==================== Strategies ====================

    @staticmethod
    def _strategy_from_record(record: Strategy) -> SavedStrategy:
        return SavedStrategy(
            id=record.strategy_id,
            created_at=record.created_at,
            strategy_title=record.strategy_title,
            strategy_summary=record.strategy_summary,
            asset_allocation=[
                {"category": a.category, "percentage": float(a.percentage), "rationale": a.rationale}
                for a in record.asset_allocation or []
            ],
            recommendations=[
                {"ticker": r.ticker, "name": r.name, "justification": r.justification}
                for r in record.recommendations or []
            ],
            risk_analysis=record.risk_analysis,
        )

    def save_strategy(self, user_id: str, strategy: InvestmentStrategy) -> str:
        strategy_id = _new_id()
        created_at = _now()
        Strategy(
            user_id=user_id,
            strategy_key=f"{created_at.isoformat()}#{strategy_id}",
            strategy_id=strategy_id,
            strategy_title=strategy.strategy_title,
            strategy_summary=strategy.strategy_summary,
            asset_allocation=[AllocationMap(**a.model_dump()) for a in strategy.asset_allocation],
            recommendations=[RecommendationMap(**r.model_dump()) for r in strategy.recommendations],
            risk_analysis=strategy.risk_analysis,
            created_at=created_at,
        ).save()
        self.hub.publish(("strategies", user_id))
        return strategy_id

    def list_strategies(self, user_id: str, limit: int = 100) -> List[SavedStrategy]:
        """Saved strategies, newest first."""
        return [
            self._strategy_from_record(r)
            for r in Strategy.query(user_id, scan_index_forward=False, limit=limit)
        ]

    def subscribe_strategies(self, user_id: str, callback: Callable) -> Unsubscribe:
        return self.hub.subscribe(("strategies", user_id), lambda: self.list_strategies(user_id), callback)
