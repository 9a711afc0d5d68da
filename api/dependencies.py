"""
FastAPI dependencies for caller identity and engine access.
"""

from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from engine import FlashArbitrageEngine

from .auth import token_service

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_engine(request: Request) -> FlashArbitrageEngine:
    """Engine attached to the running app"""
    return request.app.state.engine


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """
    Identity behind the bearer token.

    Returns None if no valid token is found.
    """
    if not credentials:
        return None

    token_data = token_service.verify_token(credentials.credentials)
    if not token_data:
        return None

    return token_data.subject


async def get_authenticated_caller(
    caller: Optional[str] = Depends(get_caller),
) -> str:
    """
    Identity of an authenticated caller (required).

    Raises 401 if not authenticated.
    """
    if not caller:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return caller
