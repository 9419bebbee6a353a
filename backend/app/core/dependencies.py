from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from app.core.config import Settings
from app.core.security import TokenVerifier
from app.services.document_store import DocumentStore
from app.services.strategy.generation_service import StrategyGenerationService
from app.services.strategy.provider import StrategyProvider


security = HTTPBearer()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_strategy_provider(request: Request) -> StrategyProvider:
    return request.app.state.strategy_provider


def get_generation_service(request: Request) -> StrategyGenerationService:
    return request.app.state.generation_service


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Returns:
        dict: User data from token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = verifier.decode_token(credentials.credentials)

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "user_id": user_id,
        "email": payload.get("email"),
        "username": payload.get("username")
    }


async def get_current_active_user(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """
    Dependency to get current active user.
    Account status is managed by Clerk, so every verified user is active.
    """
    return current_user
