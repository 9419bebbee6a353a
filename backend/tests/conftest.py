"""Shared fixtures: mocked AWS, a DynamoDB-backed store, catalog and a fake AI provider."""

import asyncio
import json
from typing import List, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from app.core.config import Settings
from app.core.dependencies import get_current_active_user
from app.main import create_app
from app.schemas.analysis import MarketAnalysis, NewsDigest
from app.schemas.catalog import CatalogAsset, CatalogCity
from app.schemas.strategy import InvestmentStrategy, StrategyRequest
from app.services.catalog_service import CatalogSnapshot
from app.services.document_store import DocumentStore, configure_models
from app.services.strategy.provider import StrategyProvider


STRATEGY_JSON = {
    "strategy_title": "استراتيجية النمو المتوازن",
    "strategy_summary": "توزيع متوازن بين الأسهم الخليجية والذهب.",
    "asset_allocation": [
        {"category": "Stocks", "percentage": 60, "rationale": "نمو طويل الأجل"},
        {"category": "Gold", "percentage": 40, "rationale": "تحوط من التضخم"},
    ],
    "recommendations": [
        {"ticker": "2222", "name": "أرامكو السعودية", "justification": "توزيعات أرباح مستقرة"},
        {"ticker": "GLD", "name": "SPDR Gold Shares", "justification": "تعرض مباشر للذهب"},
    ],
    "risk_analysis": "مخاطر متوسطة تناسب الأهداف المذكورة.",
}


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("SECRETS_NAME", raising=False)


@pytest.fixture
def store():
    """DocumentStore backed by moto DynamoDB with every table created."""
    with mock_aws():
        configure_models(region="us-east-1", table_prefix="test_")
        document_store = DocumentStore()
        document_store.create_tables()
        yield document_store
        document_store.close()


@pytest.fixture
def assets() -> List[CatalogAsset]:
    return [
        CatalogAsset(
            ticker="2222", name="Saudi Arabian Oil Company", name_ar="أرامكو السعودية",
            category="Stocks", country="SA", currency="SAR", price=28.50, change=0.15, change_percent=0.53,
        ),
        CatalogAsset(
            ticker="EMAAR", name="Emaar Properties PJSC", name_ar="إعمار العقارية",
            category="Stocks", country="AE", currency="AED", price=7.80, change=-0.05, change_percent=-0.64,
        ),
        CatalogAsset(
            ticker="GOLD", name="Gold", name_ar="الذهب",
            category="Gold", country="Global", currency="USD", price=2330.0, change=1.25, change_percent=0.70,
        ),
        CatalogAsset(
            ticker="SAVINGS-CERT-SAR", name="SAR Savings Certificate", name_ar="شهادة ادخار بالريال السعودي",
            category="SavingsCertificates", country="SA", currency="SAR", price=1.0, annual_yield=0.05,
        ),
    ]


@pytest.fixture
def cities() -> List[CatalogCity]:
    return [
        CatalogCity(city_key="RIYADH", name="Riyadh", name_ar="الرياض", country="SA",
                    price_per_sqm=8000, currency="SAR"),
        CatalogCity(city_key="DUBAI", name="Dubai", name_ar="دبي", country="AE",
                    price_per_sqm=12000, currency="AED"),
    ]


@pytest.fixture
def catalog(assets, cities) -> CatalogSnapshot:
    return CatalogSnapshot.build(assets, cities)


@pytest.fixture
def seeded_store(store, assets, cities):
    for asset in assets:
        store.save_asset(asset)
    for city in cities:
        store.save_city(city)
    return store


@pytest.fixture
def strategy_request() -> StrategyRequest:
    return StrategyRequest(
        capital=50000,
        categories=["Stocks", "Gold"],
        risk_level="medium",
        investment_goals="نمو رأس المال على المدى الطويل",
    )


@pytest.fixture
def strategy() -> InvestmentStrategy:
    return InvestmentStrategy.model_validate(STRATEGY_JSON)


class FakeStrategyProvider(StrategyProvider):
    """Provider double. ``gate`` holds every fragment after the first until it is set."""

    def __init__(
        self,
        fragments: Optional[List[str]] = None,
        strategy: Optional[InvestmentStrategy] = None,
        analysis: Optional[MarketAnalysis] = None,
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        text = json.dumps(STRATEGY_JSON, ensure_ascii=False)
        self.fragments = fragments if fragments is not None else [text[:40], text[40:]]
        self.strategy = strategy or InvestmentStrategy.model_validate(STRATEGY_JSON)
        self.analysis = analysis
        self.error = error
        self.gate = gate
        self.analyze_calls = []
        self.news_calls = []

    async def generate_strategy(self, request):
        if self.error:
            raise self.error
        return self.strategy

    async def stream_strategy(self, request):
        for i, fragment in enumerate(self.fragments):
            if i > 0 and self.gate is not None:
                await self.gate.wait()
            yield fragment
        if self.error:
            raise self.error

    async def analyze_ticker(self, ticker, company_name):
        self.analyze_calls.append((ticker, company_name))
        if self.error:
            raise self.error
        return self.analysis

    async def summarize_news(self, ticker, articles):
        self.news_calls.append((ticker, list(articles)))
        if self.error:
            raise self.error
        return NewsDigest(summary=f"ملخص أخبار {ticker}")


@pytest.fixture
def fake_provider() -> FakeStrategyProvider:
    return FakeStrategyProvider()


@pytest.fixture
def app(seeded_store, fake_provider):
    """API wired to the moto store and the fake provider, authenticated as user-1."""
    application = create_app(
        settings=Settings(RATE_LIMIT_PER_MINUTE=1000, LOG_JSON=False),
        store=seeded_store,
        provider=fake_provider,
        token_verifier=MagicMock(),
    )
    application.dependency_overrides[get_current_active_user] = lambda: {
        "user_id": "user-1",
        "email": "user@example.com",
        "username": "user1",
    }
    return application


@pytest.fixture
def client(app):
    return TestClient(app)
