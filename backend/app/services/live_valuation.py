import asyncio
from dataclasses import asdict
from typing import AsyncIterator

from app.schemas.portfolio import PortfolioValuationResponse
from app.services.document_store import DocumentStore
from app.services.valuation_service import PortfolioValuation, value_portfolio


def valuation_response(valuation: PortfolioValuation) -> PortfolioValuationResponse:
    return PortfolioValuationResponse.model_validate(asdict(valuation))


async def valuation_updates(
    store: DocumentStore,
    user_id: str,
    portfolio_id: str,
) -> AsyncIterator[PortfolioValuationResponse]:
    """Revalue the portfolio from scratch on every holdings snapshot.

    The subscription is opened on first iteration and closed when the
    consumer stops iterating.
    """
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = store.subscribe_holdings(user_id, portfolio_id, queue.put_nowait)
    try:
        while True:
            holdings = await queue.get()
            yield valuation_response(value_portfolio(holdings, store.load_catalog()))
    finally:
        unsubscribe()
