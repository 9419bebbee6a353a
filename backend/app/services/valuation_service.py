from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from app.core.logging_config import get_logger
from app.schemas.holding import (
    GoldHolding,
    RealEstateHolding,
    SavingsCertificatesHolding,
    StocksHolding,
)
from app.services.catalog_service import CatalogSnapshot

logger = get_logger(__name__)

GOLD_TICKER = "GOLD"
DISPLAY_CURRENCY = "SAR"


@dataclass
class EnrichedHolding:
    id: Optional[str]
    category: str
    name: str
    name_ar: Optional[str]
    ticker: str  # catalog ticker, or city key for real estate
    current_value: float
    purchase_value: float
    currency: str
    change: float
    change_percent: float
    quantity: Optional[float] = None
    area: Optional[float] = None


@dataclass
class ExcludedHolding:
    id: Optional[str]
    category: str
    reference: Optional[str]
    reason: str


@dataclass
class PortfolioTotals:
    total_purchase_value: float
    total_current_value: float
    total_change: float
    total_change_percent: float
    display_currency: str = DISPLAY_CURRENCY
    currencies: List[str] = field(default_factory=list)
    mixed_currencies: bool = False


@dataclass
class PortfolioValuation:
    holdings: List[EnrichedHolding]
    excluded: List[ExcludedHolding]
    totals: PortfolioTotals


class HoldingNotValued(Exception):
    """The holding cannot be priced against the current catalog."""

    def __init__(self, reason: str, reference: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.reference = reference


def change_percent(change: float, purchase_value: float) -> float:
    return change / purchase_value * 100 if purchase_value > 0 else 0.0


def _enriched(holding, *, name, name_ar, ticker, current_value, currency) -> EnrichedHolding:
    purchase_value = float(holding.purchase_price)
    change = current_value - purchase_value
    return EnrichedHolding(
        id=holding.id,
        category=holding.category,
        name=name,
        name_ar=name_ar,
        ticker=ticker,
        current_value=current_value,
        purchase_value=purchase_value,
        currency=currency,
        change=change,
        change_percent=change_percent(change, purchase_value),
        quantity=getattr(holding, "quantity", None),
        area=getattr(holding, "area", None),
    )


def _value_stocks(holding: StocksHolding, catalog: CatalogSnapshot) -> EnrichedHolding:
    asset = catalog.get_asset(holding.ticker)
    if asset is None:
        raise HoldingNotValued("unknown_ticker", holding.ticker)
    if holding.quantity is None or holding.quantity <= 0:
        raise HoldingNotValued("non_positive_quantity", holding.ticker)
    return _enriched(
        holding,
        name=asset.name,
        name_ar=asset.name_ar,
        ticker=asset.ticker,
        current_value=holding.quantity * asset.price,
        currency=asset.currency,
    )


def _value_real_estate(holding: RealEstateHolding, catalog: CatalogSnapshot) -> EnrichedHolding:
    city = catalog.get_city(holding.city_key)
    if city is None:
        raise HoldingNotValued("unknown_city", holding.city_key)
    if holding.area is None or holding.area <= 0:
        raise HoldingNotValued("non_positive_area", holding.city_key)
    return _enriched(
        holding,
        name=holding.name or city.name,
        name_ar=city.name_ar,
        ticker=city.city_key,
        current_value=holding.area * city.price_per_sqm,
        currency=city.currency,
    )


def _value_gold(holding: GoldHolding, catalog: CatalogSnapshot) -> EnrichedHolding:
    gold = catalog.get_asset(GOLD_TICKER)
    if gold is None:
        raise HoldingNotValued("missing_catalog_asset", GOLD_TICKER)

    if holding.purchase_market_price:
        purchase_time_price = holding.purchase_market_price
    else:
        # Approximation: treats the latest tick's change as the whole holding period.
        purchase_time_price = gold.price - gold.change
    if purchase_time_price <= 0:
        raise HoldingNotValued("invalid_gold_price", GOLD_TICKER)

    return _enriched(
        holding,
        name=holding.name or gold.name,
        name_ar=gold.name_ar,
        ticker=gold.ticker,
        current_value=holding.purchase_price * (gold.price / purchase_time_price),
        currency=gold.currency,
    )


def _value_savings_certificate(holding: SavingsCertificatesHolding, catalog: CatalogSnapshot) -> EnrichedHolding:
    certificate = catalog.get_asset(holding.ticker)
    if certificate is None:
        raise HoldingNotValued("missing_catalog_asset", holding.ticker)
    # Flat one-year accrual regardless of how long the certificate has been held.
    annual_yield = certificate.annual_yield or 0.0
    return _enriched(
        holding,
        name=holding.name or certificate.name,
        name_ar=certificate.name_ar,
        ticker=certificate.ticker,
        current_value=holding.purchase_price * (1 + annual_yield),
        currency=certificate.currency,
    )


_VALUERS = {
    "Stocks": _value_stocks,
    "RealEstate": _value_real_estate,
    "Gold": _value_gold,
    "SavingsCertificates": _value_savings_certificate,
}


def value_holding(holding, catalog: CatalogSnapshot) -> EnrichedHolding:
    """Price one holding; raises HoldingNotValued when the catalog cannot resolve it."""
    valuer = _VALUERS.get(holding.category)
    if valuer is None:
        raise HoldingNotValued("unsupported_category", holding.category)
    return valuer(holding, catalog)


def enrich_holdings(holdings, catalog: CatalogSnapshot) -> Tuple[List[EnrichedHolding], List[ExcludedHolding]]:
    """Value every holding, setting aside the ones the catalog cannot resolve."""
    enriched = []
    excluded = []
    for holding in holdings:
        try:
            enriched.append(value_holding(holding, catalog))
        except HoldingNotValued as e:
            logger.warning(
                "Holding excluded from valuation",
                extra={"holding_id": holding.id, "category": holding.category, "reason": e.reason},
            )
            excluded.append(ExcludedHolding(
                id=holding.id,
                category=holding.category,
                reference=e.reference,
                reason=e.reason,
            ))
    return enriched, excluded


def aggregate_naive_same_currency(enriched: List[EnrichedHolding]) -> PortfolioTotals:
    """Sum values as if every holding were priced in the display currency.

    No FX conversion happens: SAR, AED, QAR and USD amounts are added as-is.
    ``mixed_currencies`` tells the caller when that makes the totals inexact.
    """
    total_purchase = sum(h.purchase_value for h in enriched)
    total_current = sum(h.current_value for h in enriched)
    total_change = total_current - total_purchase
    currencies = sorted({h.currency for h in enriched})
    return PortfolioTotals(
        total_purchase_value=total_purchase,
        total_current_value=total_current,
        total_change=total_change,
        total_change_percent=change_percent(total_change, total_purchase),
        display_currency=DISPLAY_CURRENCY,
        currencies=currencies,
        mixed_currencies=any(c != DISPLAY_CURRENCY for c in currencies),
    )


def value_portfolio(
    holdings,
    catalog: CatalogSnapshot,
    aggregate: Callable[[List[EnrichedHolding]], PortfolioTotals] = aggregate_naive_same_currency,
) -> PortfolioValuation:
    enriched, excluded = enrich_holdings(holdings, catalog)
    return PortfolioValuation(
        holdings=enriched,
        excluded=excluded,
        totals=aggregate(enriched),
    )
