from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import StreamingResponse

from app.core.dependencies import get_current_active_user, get_store
from app.core.logging_config import get_logger
from app.schemas.common import ERROR_RESPONSES
from app.schemas.holding import Holding, validate_new_holding
from app.schemas.portfolio import (
    CreatedResponse,
    HoldingListResponse,
    PortfolioCreateRequest,
    PortfolioDetailResponse,
    PortfolioListResponse,
    PortfolioSummary,
    PortfolioValuationResponse,
)
from app.services.document_store import DocumentStore, HoldingNotFound, PortfolioNotFound
from app.services.live_valuation import valuation_response, valuation_updates
from app.services.valuation_service import value_portfolio

logger = get_logger(__name__)

router = APIRouter(
    prefix="/portfolios",
    tags=["Portfolios"],
    responses=ERROR_RESPONSES,
)


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Portfolio not found",
    )


def _store_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An error occurred while {action}",
    )


def _require_portfolio(store: DocumentStore, user_id: str, portfolio_id: str) -> PortfolioSummary:
    try:
        portfolio = store.get_portfolio(user_id, portfolio_id)
    except Exception as e:
        logger.error("Error fetching portfolio: %s", e, extra={"user_id": user_id, "portfolio_id": portfolio_id})
        raise _store_error("fetching portfolio")
    if portfolio is None:
        raise _not_found()
    return portfolio


def _value(store: DocumentStore, user_id: str, portfolio_id: str) -> PortfolioValuationResponse:
    try:
        holdings = store.list_holdings(user_id, portfolio_id)
        catalog = store.load_catalog()
    except Exception as e:
        logger.error("Error loading holdings: %s", e, extra={"user_id": user_id, "portfolio_id": portfolio_id})
        raise _store_error("valuing portfolio")
    return valuation_response(value_portfolio(holdings, catalog))


@router.get("", response_model=PortfolioListResponse)
async def list_portfolios(
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        return PortfolioListResponse(portfolios=store.list_portfolios(user_id))
    except Exception as e:
        logger.error("Error listing portfolios: %s", e, extra={"user_id": user_id})
        raise _store_error("listing portfolios")


@router.post("", response_model=CreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    request: PortfolioCreateRequest,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        portfolio_id = store.create_portfolio(user_id, request.name)
    except Exception as e:
        logger.error("Error creating portfolio: %s", e, extra={"user_id": user_id})
        raise _store_error("creating portfolio")
    logger.info("Portfolio created", extra={"user_id": user_id, "portfolio_id": portfolio_id})
    return CreatedResponse(id=portfolio_id)


@router.get("/{portfolio_id}", response_model=PortfolioDetailResponse)
async def get_portfolio(
    portfolio_id: str,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    portfolio = _require_portfolio(store, user_id, portfolio_id)
    return PortfolioDetailResponse(
        **portfolio.model_dump(),
        valuation=_value(store, user_id, portfolio_id),
    )


@router.delete("/{portfolio_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_portfolio(
    portfolio_id: str,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        store.delete_portfolio(user_id, portfolio_id)
    except PortfolioNotFound:
        raise _not_found()
    except Exception as e:
        logger.error("Error deleting portfolio: %s", e, extra={"user_id": user_id, "portfolio_id": portfolio_id})
        raise _store_error("deleting portfolio")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{portfolio_id}/holdings", response_model=HoldingListResponse)
async def list_holdings(
    portfolio_id: str,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    _require_portfolio(store, user_id, portfolio_id)
    try:
        return HoldingListResponse(holdings=store.list_holdings(user_id, portfolio_id))
    except Exception as e:
        logger.error("Error listing holdings: %s", e, extra={"user_id": user_id, "portfolio_id": portfolio_id})
        raise _store_error("listing holdings")


@router.post(
    "/{portfolio_id}/holdings",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_holding(
    portfolio_id: str,
    holding: Holding,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]

    errors = validate_new_holding(holding)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=" ".join(errors),
        )

    try:
        holding_id = store.add_holding(user_id, portfolio_id, holding)
    except PortfolioNotFound:
        raise _not_found()
    except Exception as e:
        logger.error("Error adding holding: %s", e, extra={"user_id": user_id, "portfolio_id": portfolio_id})
        raise _store_error("adding holding")
    return CreatedResponse(id=holding_id)


@router.delete("/{portfolio_id}/holdings/{holding_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_holding(
    portfolio_id: str,
    holding_id: str,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        store.remove_holding(user_id, portfolio_id, holding_id)
    except HoldingNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Holding not found",
        )
    except Exception as e:
        logger.error("Error removing holding: %s", e, extra={"user_id": user_id, "portfolio_id": portfolio_id})
        raise _store_error("removing holding")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{portfolio_id}/valuation", response_model=PortfolioValuationResponse)
async def get_valuation(
    portfolio_id: str,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    _require_portfolio(store, user_id, portfolio_id)
    return _value(store, user_id, portfolio_id)


@router.get("/{portfolio_id}/valuation/stream")
async def stream_valuation(
    portfolio_id: str,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    """One NDJSON line per holdings snapshot until the client disconnects."""
    user_id = current_user["user_id"]
    _require_portfolio(store, user_id, portfolio_id)

    async def lines():
        async for valuation in valuation_updates(store, user_id, portfolio_id):
            yield valuation.model_dump_json() + "\n"

    return StreamingResponse(lines(), media_type="application/x-ndjson")
