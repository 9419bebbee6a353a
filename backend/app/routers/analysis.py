from fastapi import APIRouter, Depends, HTTPException, Path, status

from app.core.dependencies import get_current_active_user, get_store, get_strategy_provider
from app.core.logging_config import get_logger
from app.schemas.analysis import MarketAnalysis, NewsSummary
from app.schemas.catalog import CatalogAsset
from app.schemas.common import ERROR_RESPONSES, ErrorResponse
from app.services.catalog_data import NEWS_ARTICLES
from app.services.document_store import DocumentStore
from app.services.strategy.provider import AnalysisError, StrategyProvider

logger = get_logger(__name__)

router = APIRouter(
    prefix="/analysis",
    tags=["Analysis"],
    responses={
        **ERROR_RESPONSES,
        502: {"model": ErrorResponse, "description": "Analysis failed"},
    },
)


NO_NEWS_SUMMARY = "لا توجد أخبار متاحة لهذا السهم."


def _require_asset(store: DocumentStore, ticker: str) -> CatalogAsset:
    try:
        asset = store.get_asset(ticker)
    except Exception as e:
        logger.error("Error fetching asset %s: %s", ticker, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while fetching the asset",
        )
    if asset is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Asset {ticker.upper()} not found",
        )
    return asset


@router.get("/{ticker}", response_model=MarketAnalysis)
async def analyze_ticker(
    ticker: str = Path(..., min_length=1, max_length=20, description="Catalog ticker"),
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
    provider: StrategyProvider = Depends(get_strategy_provider),
):
    asset = _require_asset(store, ticker)
    try:
        return await provider.analyze_ticker(asset.ticker, asset.name_ar)
    except AnalysisError as e:
        logger.warning("Analysis failed for %s: %s", asset.ticker, e, extra={"user_id": current_user["user_id"]})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )


@router.get("/{ticker}/news", response_model=NewsSummary)
async def summarize_news(
    ticker: str = Path(..., min_length=1, max_length=20, description="Catalog ticker"),
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
    provider: StrategyProvider = Depends(get_strategy_provider),
):
    """Arabic summary of the curated news coverage for a catalog asset."""
    asset = _require_asset(store, ticker)
    articles = NEWS_ARTICLES.get(asset.ticker, [])
    if not articles:
        return NewsSummary(ticker=asset.ticker, summary=NO_NEWS_SUMMARY)

    try:
        digest = await provider.summarize_news(asset.ticker, articles)
    except AnalysisError as e:
        logger.warning("News summary failed for %s: %s", asset.ticker, e, extra={"user_id": current_user["user_id"]})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )
    return NewsSummary(ticker=asset.ticker, summary=digest.summary, articles=articles)
