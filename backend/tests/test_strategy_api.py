import json
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.schemas.analysis import AnalystRecommendation, MarketAnalysis
from app.services.strategy.provider import AnalysisError, StrategyGenerationError
from conftest import STRATEGY_JSON

API = "/api/v1"

REQUEST = {
    "capital": 50000,
    "categories": ["Stocks", "Gold", " Art "],
    "risk_level": "medium",
    "investment_goals": "تنمية الثروة",
}


def test_generate_strategy(client):
    response = client.post(f"{API}/strategies/generate", json=REQUEST)

    assert response.status_code == 200
    body = response.json()
    assert body["strategy"]["strategy_title"] == STRATEGY_JSON["strategy_title"]
    assert body["allocation"] == {"reported_total": 100, "renormalized": False}


def test_generate_strategy_is_not_saved(client):
    client.post(f"{API}/strategies/generate", json=REQUEST)

    assert client.get(f"{API}/strategies").json() == {"strategies": []}


def test_generate_strategy_validates_request(client):
    assert client.post(f"{API}/strategies/generate", json=dict(REQUEST, capital=10)).status_code == 422
    assert client.post(f"{API}/strategies/generate", json=dict(REQUEST, categories=[])).status_code == 422
    assert client.post(f"{API}/strategies/generate", json=dict(REQUEST, risk_level="extreme")).status_code == 422


def test_generate_strategy_upstream_failure(client, fake_provider):
    fake_provider.error = StrategyGenerationError("The strategy could not be generated. Please try again.")

    response = client.post(f"{API}/strategies/generate", json=REQUEST)

    assert response.status_code == 502
    assert response.json() == {
        "detail": "The strategy could not be generated. Please try again.",
        "error_code": "UPSTREAM_ERROR",
    }


def test_stream_strategy_ndjson(client):
    response = client.post(f"{API}/strategies/stream", json=REQUEST)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    events = [json.loads(line) for line in response.text.splitlines() if line]
    assert [e["type"] for e in events] == ["chunk", "chunk", "complete"]
    assert events[-1]["strategy"]["risk_analysis"] == STRATEGY_JSON["risk_analysis"]


def test_stream_strategy_error_event(client, fake_provider):
    fake_provider.fragments = ["not json"]

    response = client.post(f"{API}/strategies/stream", json=REQUEST)

    events = [json.loads(line) for line in response.text.splitlines() if line]
    assert events[-1]["type"] == "error"


def test_save_and_list_strategies(client):
    response = client.post(f"{API}/strategies", json=STRATEGY_JSON)

    assert response.status_code == 201
    strategy_id = response.json()["id"]

    strategies = client.get(f"{API}/strategies").json()["strategies"]
    assert [s["id"] for s in strategies] == [strategy_id]
    assert strategies[0]["asset_allocation"][1]["category"] == "Gold"
    assert "created_at" in strategies[0]


def test_saved_allocation_is_renormalized(client):
    strategy = dict(STRATEGY_JSON, asset_allocation=[
        {"category": "Stocks", "percentage": 200, "rationale": "نمو"},
        {"category": "Gold", "percentage": -50, "rationale": "تحوط"},
    ])

    assert client.post(f"{API}/strategies", json=strategy).status_code == 201

    saved = client.get(f"{API}/strategies").json()["strategies"][0]
    percentages = [a["percentage"] for a in saved["asset_allocation"]]
    assert percentages == [100, 0]
    assert sum(percentages) == 100


def test_save_rejects_allocation_that_cannot_be_renormalized(client):
    strategy = dict(STRATEGY_JSON, asset_allocation=[
        {"category": "Stocks", "percentage": -10, "rationale": "نمو"},
    ])

    response = client.post(f"{API}/strategies", json=strategy)

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"
    assert client.get(f"{API}/strategies").json() == {"strategies": []}


def test_save_without_renormalization_rejects_bad_totals(seeded_store, fake_provider, app):
    strict = create_app(
        settings=Settings(ALLOCATION_RENORMALIZE=False, RATE_LIMIT_PER_MINUTE=1000, LOG_JSON=False),
        store=seeded_store,
        provider=fake_provider,
        token_verifier=MagicMock(),
    )
    strict.dependency_overrides.update(app.dependency_overrides)
    client = TestClient(strict)
    strategy = dict(STRATEGY_JSON, asset_allocation=[
        {"category": "Stocks", "percentage": 70, "rationale": "نمو"},
        {"category": "Gold", "percentage": 40, "rationale": "تحوط"},
    ])

    response = client.post(f"{API}/strategies", json=strategy)

    assert response.status_code == 422
    assert "must add up to 100" in response.json()["detail"]


def test_analysis_uses_catalog_identity(client, fake_provider):
    fake_provider.analysis = MarketAnalysis(
        ticker="2222",
        company_name="أرامكو السعودية",
        financial_analysis="...",
        news_summary="...",
        recommendation=AnalystRecommendation(decision="Hold", confidence_score=6, justification="..."),
    )

    response = client.get(f"{API}/analysis/2222")

    assert response.status_code == 200
    assert response.json()["recommendation"]["decision"] == "Hold"
    assert fake_provider.analyze_calls == [("2222", "أرامكو السعودية")]


def test_analysis_unknown_ticker(client, fake_provider):
    response = client.get(f"{API}/analysis/NOPE")

    assert response.status_code == 404
    assert fake_provider.analyze_calls == []


def test_analysis_upstream_failure(client, fake_provider):
    fake_provider.error = AnalysisError("Failed to get an analysis.")

    response = client.get(f"{API}/analysis/2222")

    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to get an analysis."


def test_news_summary_for_covered_ticker(client, fake_provider):
    response = client.get(f"{API}/analysis/2222/news")

    assert response.status_code == 200
    body = response.json()
    assert body["ticker"] == "2222"
    assert body["summary"] == "ملخص أخبار 2222"
    assert len(body["articles"]) == 2
    assert fake_provider.news_calls == [("2222", body["articles"])]


def test_news_summary_without_coverage_skips_the_model(client, fake_provider):
    response = client.get(f"{API}/analysis/gold/news")

    assert response.status_code == 200
    assert response.json() == {"ticker": "GOLD", "summary": "لا توجد أخبار متاحة لهذا السهم.", "articles": []}
    assert fake_provider.news_calls == []


def test_news_summary_unknown_ticker(client):
    assert client.get(f"{API}/analysis/NOPE/news").status_code == 404


def test_news_summary_upstream_failure(client, fake_provider):
    fake_provider.error = AnalysisError("Failed to summarize the news. Please try again.")

    response = client.get(f"{API}/analysis/EMAAR/news")

    assert response.status_code == 502
    assert response.json()["error_code"] == "UPSTREAM_ERROR"
