import json

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from app.core.dependencies import (
    get_current_active_user,
    get_generation_service,
    get_store,
)
from app.core.logging_config import get_logger
from app.schemas.common import ERROR_RESPONSES, ErrorResponse
from app.schemas.strategy import (
    AllocationSummaryResponse,
    GeneratedStrategyResponse,
    InvestmentStrategy,
    SaveStrategyResponse,
    StrategyListResponse,
    StrategyRequest,
)
from app.services.allocation_service import InvalidAllocation
from app.services.document_store import DocumentStore
from app.services.strategy.generation_service import StrategyGenerationService
from app.services.strategy.provider import StrategyGenerationError

logger = get_logger(__name__)

router = APIRouter(
    prefix="/strategies",
    tags=["Strategies"],
    responses={
        **ERROR_RESPONSES,
        502: {"model": ErrorResponse, "description": "Strategy generation failed"},
    },
)


@router.post("/generate", response_model=GeneratedStrategyResponse)
async def generate_strategy(
    request: StrategyRequest,
    current_user: dict = Depends(get_current_active_user),
    service: StrategyGenerationService = Depends(get_generation_service),
):
    """Generate a strategy in one call. The result is not saved."""
    user_id = current_user["user_id"]
    try:
        strategy, summary = await service.generate(request)
    except StrategyGenerationError as e:
        logger.warning("Strategy generation failed: %s", e, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )

    if summary.renormalized:
        logger.info(
            "Renormalized strategy allocation",
            extra={"user_id": user_id, "reported_total": summary.reported_total},
        )
    return GeneratedStrategyResponse(
        strategy=strategy,
        allocation=AllocationSummaryResponse(
            reported_total=summary.reported_total,
            renormalized=summary.renormalized,
        ),
    )


@router.post("/stream")
async def stream_strategy(
    request: StrategyRequest,
    current_user: dict = Depends(get_current_active_user),
    service: StrategyGenerationService = Depends(get_generation_service),
):
    """Stream generation as NDJSON events.

    Each line is a JSON object whose ``type`` is ``chunk`` (accumulated text so
    far), ``complete``, ``error`` or ``superseded``. Starting a new stream for
    the same user supersedes the previous one.
    """
    user_id = current_user["user_id"]

    async def lines():
        async for event in service.stream(user_id, request):
            yield json.dumps(event, ensure_ascii=False) + "\n"

    return StreamingResponse(lines(), media_type="application/x-ndjson")


@router.get("", response_model=StrategyListResponse)
async def list_strategies(
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
):
    user_id = current_user["user_id"]
    try:
        return StrategyListResponse(strategies=store.list_strategies(user_id))
    except Exception as e:
        logger.error("Error listing strategies: %s", e, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while listing strategies",
        )


@router.post("", response_model=SaveStrategyResponse, status_code=status.HTTP_201_CREATED)
async def save_strategy(
    strategy: InvestmentStrategy,
    current_user: dict = Depends(get_current_active_user),
    store: DocumentStore = Depends(get_store),
    service: StrategyGenerationService = Depends(get_generation_service),
):
    """Save a strategy. Its allocation is finalized the same way as a generated one."""
    user_id = current_user["user_id"]
    try:
        strategy, summary = service.prepare_for_save(strategy)
    except InvalidAllocation as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    if summary.renormalized:
        logger.info(
            "Renormalized saved strategy allocation",
            extra={"user_id": user_id, "reported_total": summary.reported_total},
        )

    try:
        strategy_id = store.save_strategy(user_id, strategy)
    except Exception as e:
        logger.error("Error saving strategy: %s", e, extra={"user_id": user_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while saving the strategy",
        )
    logger.info("Strategy saved", extra={"user_id": user_id, "strategy_id": strategy_id})
    return SaveStrategyResponse(id=strategy_id)
