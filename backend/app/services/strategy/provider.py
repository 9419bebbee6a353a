import json
import re
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.schemas.analysis import MarketAnalysis, NewsDigest
from app.schemas.strategy import InvestmentStrategy, StrategyRequest

T = TypeVar("T", bound=BaseModel)


class StrategyGenerationError(Exception):
    """The model call failed or returned something that is not a strategy."""


class AnalysisError(Exception):
    """The model call failed or returned something that is not an analysis."""


def parse_model_json(text: str, model: Type[T], error: Type[Exception]) -> T:
    """Parse a JSON model response, tolerating markdown code fences."""
    if not text or not text.strip():
        raise error("The model returned an empty response.")
    # Strip markdown code fences if present (e.g. ```json\n{...}\n```)
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    try:
        return model.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise error("The model returned data in an unexpected format.") from e


def parse_strategy(text: str) -> InvestmentStrategy:
    return parse_model_json(text, InvestmentStrategy, StrategyGenerationError)


class StrategyProvider(ABC):
    @abstractmethod
    async def generate_strategy(self, request: StrategyRequest) -> InvestmentStrategy:
        """Generate a complete strategy in one call."""

    @abstractmethod
    def stream_strategy(self, request: StrategyRequest) -> AsyncIterator[str]:
        """Yield raw JSON text fragments of a strategy as the model produces them."""

    @abstractmethod
    async def analyze_ticker(self, ticker: str, company_name: str) -> MarketAnalysis:
        """Produce an analyst view of a single listed company."""

    @abstractmethod
    async def summarize_news(self, ticker: str, articles: List[str]) -> NewsDigest:
        """Summarize recent coverage of a ticker, in Arabic."""
