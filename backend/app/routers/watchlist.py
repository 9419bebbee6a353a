from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from app.core.dependencies import get_current_active_user, get_store
from app.core.logging_config import get_logger
from app.schemas.common import ERROR_RESPONSES
from app.schemas.watchlist import WatchlistAddRequest, WatchlistResponse
from app.services.document_store import DocumentStore

logger = get_logger(__name__)

router = APIRouter(
    prefix="/watchlist",
    tags=["Watchlist"],
    responses=ERROR_RESPONSES,
)


def _with_quotes(store: DocumentStore, tickers: List[str]) -> WatchlistResponse:
    # Tickers without a catalog record stay listed but carry no quote
    catalog = store.load_catalog()
    quotes = [catalog.get_asset(t) for t in tickers]
    return WatchlistResponse(tickers=tickers, quotes=[q for q in quotes if q is not None])


@router.get("", response_model=WatchlistResponse)
async def get_watchlist(
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        return _with_quotes(store, store.get_watchlist(user_id))
    except Exception as e:
        logger.error("Error fetching watchlist: %s", e, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while fetching the watchlist",
        )


@router.post("", response_model=WatchlistResponse)
async def add_to_watchlist(
    request: WatchlistAddRequest,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        tickers = store.add_to_watchlist(user_id, request.ticker)
        return _with_quotes(store, tickers)
    except Exception as e:
        logger.error("Error adding %s to watchlist: %s", request.ticker, e, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while updating the watchlist",
        )


@router.delete("/{ticker}", response_model=WatchlistResponse)
async def remove_from_watchlist(
    ticker: str = Path(..., min_length=1, max_length=20),
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        tickers = store.remove_from_watchlist(user_id, ticker)
        return _with_quotes(store, tickers)
    except Exception as e:
        logger.error("Error removing %s from watchlist: %s", ticker, e, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while updating the watchlist",
        )
