from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.core.dependencies import get_current_active_user, get_store
from app.core.logging_config import get_logger
from app.schemas.catalog import AssetCategory, CatalogAsset, CatalogCity, Country
from app.schemas.common import ERROR_RESPONSES
from app.services.document_store import DocumentStore

logger = get_logger(__name__)

router = APIRouter(
    prefix="/catalog",
    tags=["Catalog"],
    responses=ERROR_RESPONSES,
)


@router.get(
    "/assets",
    response_model=List[CatalogAsset],
    summary="List catalog assets",
    description="Priced instruments, optionally filtered by category and country",
)
async def list_assets(
    category: Optional[AssetCategory] = Query(None),
    country: Optional[Country] = Query(None),
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    try:
        catalog = store.load_catalog()
    except Exception as e:
        logger.error("Error listing catalog assets: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while listing assets",
        )
    assets = catalog.assets_in(category=category, country=country)
    return sorted(assets, key=lambda a: (a.category, a.ticker))


@router.get(
    "/assets/{ticker}",
    response_model=CatalogAsset,
    summary="Get catalog asset",
)
async def get_asset(
    ticker: str = Path(..., min_length=1, max_length=20, description="Asset ticker"),
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
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


@router.get(
    "/cities",
    response_model=List[CatalogCity],
    summary="List real estate cities",
)
async def list_cities(
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    try:
        return store.list_cities()
    except Exception as e:
        logger.error("Error listing cities: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while listing cities",
        )
