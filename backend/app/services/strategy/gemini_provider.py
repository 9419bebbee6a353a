from typing import AsyncIterator, List

from google import genai
from google.genai import types

from app.core.logging_config import get_logger
from app.schemas.analysis import MarketAnalysis, NewsDigest
from app.schemas.strategy import InvestmentStrategy, StrategyRequest
from app.services.strategy.provider import (
    AnalysisError,
    StrategyGenerationError,
    StrategyProvider,
    parse_model_json,
    parse_strategy,
)

logger = get_logger(__name__)


STRATEGY_SYSTEM_PROMPT = """You are an investment advisor covering the GCC markets
(Saudi Arabia, the UAE, Qatar). Build a personalised investment strategy for the
client profile you are given.

Respond with a JSON object containing:
- strategy_title: a short, memorable title
- strategy_summary: one paragraph describing the approach for this risk level and these goals
- asset_allocation: one entry per requested category with category, percentage and rationale;
  the percentages MUST add up to exactly 100
- recommendations: 3 to 5 entries with ticker, name and justification. Use exchange tickers
  for Gulf equities (e.g. 2222 for Saudi Aramco), common ETFs for gold and commodities
  (e.g. GLD), and a descriptive pseudo-ticker for markets without one
  (e.g. REAL-DUBAI for residential property in Dubai, ART-MODERN for modern art)
- risk_analysis: the main risks and how they fit the stated risk tolerance

Rules:
- Cover any user-defined category (art, collectibles, ...) as seriously as the standard ones
- Keep advice high level and informational
- Every text value MUST be written in Arabic; keep the JSON keys in English
- Always respond with valid JSON only, no other text
"""

ANALYST_SYSTEM_PROMPT = """You are "Tharawat", a financial analyst for the Gulf stock markets.
Analyse the company you are given from general market knowledge.

Respond with a JSON object containing:
- ticker and company_name, exactly as given
- financial_analysis: a short paragraph on the company's financial standing, market position
  and recent performance trends
- news_summary: a short paragraph on the sentiment of recent major news for the company or sector
- recommendation: decision ("Buy", "Sell" or "Hold"), confidence_score (integer 1-10)
  and a one-sentence justification

Rules:
- Every text value except decision MUST be written in Arabic
- Always respond with valid JSON only, no other text
"""

NEWS_SYSTEM_PROMPT = """You are an expert financial analyst. Summarize the news about a single
stock and pick out the points most likely to move its share price.

Respond with a JSON object containing:
- summary: a concise summary written in Arabic, easy for a retail investor to follow, that
  focuses on the likely positive or negative impact on the company and its share price

Rules:
- Always respond with valid JSON only, no other text
"""


def build_strategy_prompt(request: StrategyRequest) -> str:
    return (
        f"Investment capital: ${request.capital:,.0f} USD\n"
        f"Asset categories of interest: {', '.join(request.categories)}\n"
        f"Risk tolerance: {request.risk_level}\n"
        f"Investment goals: {request.investment_goals}\n\n"
        f"Generate the investment strategy for this client."
    )


class GeminiStrategyProvider(StrategyProvider):
    def __init__(self, api_key: str, model: str = "gemini-2.0-flash"):
        self._api_key = api_key
        self._model = model
        self._client = None

    @property
    def client(self) -> genai.Client:
        # Built on first use so the app starts without GEMINI_API_KEY
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    @staticmethod
    def _json_config(system_prompt: str, schema) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=system_prompt,
            response_mime_type="application/json",
            response_schema=schema,
        )

    async def generate_strategy(self, request: StrategyRequest) -> InvestmentStrategy:
        try:
            response = await self.client.aio.models.generate_content(
                model=self._model,
                contents=build_strategy_prompt(request),
                config=self._json_config(STRATEGY_SYSTEM_PROMPT, InvestmentStrategy),
            )
        except Exception as e:
            logger.error("Gemini strategy generation error: %s", e)
            raise StrategyGenerationError("The strategy could not be generated. Please try again.") from e

        try:
            return parse_strategy(response.text)
        except StrategyGenerationError:
            logger.error("Failed to parse Gemini strategy: %s", (response.text or "")[:500])
            raise

    async def stream_strategy(self, request: StrategyRequest) -> AsyncIterator[str]:
        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self._model,
                contents=build_strategy_prompt(request),
                config=self._json_config(STRATEGY_SYSTEM_PROMPT, InvestmentStrategy),
            )
            async for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except Exception as e:
            logger.error("Gemini strategy stream error: %s", e)
            raise StrategyGenerationError("The strategy stream was interrupted. Please try again.") from e

    async def analyze_ticker(self, ticker: str, company_name: str) -> MarketAnalysis:
        prompt = (
            f"Ticker: {ticker}\n"
            f"Company name: {company_name}\n\n"
            f"Analyse this stock."
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=self._json_config(ANALYST_SYSTEM_PROMPT, MarketAnalysis),
            )
        except Exception as e:
            logger.error("Gemini analysis error for %s: %s", ticker, e)
            raise AnalysisError(
                "Failed to get an analysis. The service may be busy or the ticker is not supported."
            ) from e

        try:
            analysis = parse_model_json(response.text, MarketAnalysis, AnalysisError)
        except AnalysisError:
            logger.error("Failed to parse Gemini analysis: %s", (response.text or "")[:500])
            raise

        # Keep the identity we asked about rather than whatever the model echoed back
        return analysis.model_copy(update={"ticker": ticker, "company_name": company_name})

    async def summarize_news(self, ticker: str, articles: List[str]) -> NewsDigest:
        prompt = f"Stock: {ticker}\nNews articles:\n" + "\n".join(f"- {url}" for url in articles)
        try:
            response = await self.client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=self._json_config(NEWS_SYSTEM_PROMPT, NewsDigest),
            )
        except Exception as e:
            logger.error("Gemini news summary error for %s: %s", ticker, e)
            raise AnalysisError("Failed to summarize the news. Please try again.") from e

        try:
            return parse_model_json(response.text, NewsDigest, AnalysisError)
        except AnalysisError:
            logger.error("Failed to parse Gemini news summary: %s", (response.text or "")[:500])
            raise
