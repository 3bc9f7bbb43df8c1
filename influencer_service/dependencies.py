"""
FastAPI dependencies for authentication, cache scoping and services
"""
import httpx
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging

from .cache import GLOBAL_SCOPE, SearchCache, get_cache
from .config import settings
from .database import Database, get_db
from .provider_client import ProviderClient, get_provider_client
from .repositories import InfluencerRepository
from .schemas import User
from .service import InfluencerService

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def verify_token_with_auth_service(token: str) -> Optional[dict]:
    """
    Verify JWT token with Auth Service

    Args:
        token: JWT access token

    Returns:
        User data if token is valid, None otherwise
    """
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.get(
                f"{settings.AUTH_SERVICE_URL}/api/v1/auth/me",
                headers={"Authorization": f"Bearer {token}"},
            )

            if response.status_code == 200:
                return response.json()
            else:
                logger.warning(f"Token verification failed: {response.status_code}")
                return None

    except httpx.TimeoutException:
        logger.error("Auth service timeout during token verification")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is temporarily unavailable",
        )
    except httpx.HTTPError as e:
        logger.error(f"Failed to reach auth service: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service is unavailable",
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    """
    Get current authenticated user

    Raises:
        HTTPException: If token is invalid or user is inactive
    """
    user_data = await verify_token_with_auth_service(credentials.credentials)

    if not user_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = User(**user_data)
    except (TypeError, ValueError) as e:
        logger.error(f"Error parsing user data: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user data",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(
        HTTPBearer(auto_error=False)
    ),
) -> Optional[User]:
    """Get current user if authenticated, None otherwise"""
    if not credentials:
        return None

    try:
        return await get_current_user(credentials)
    except HTTPException:
        return None


def resolve_cache_scope(user: Optional[User], session_id: Optional[str]) -> Optional[str]:
    """
    Pick the search cache scope for a caller

    In "global" mode every caller shares one slot, so a creation may pick up
    tags from another caller's search. In "caller" mode the session header
    wins over the user id; callers with neither are not cached.
    """
    if settings.SEARCH_CACHE_SCOPE == "global":
        return GLOBAL_SCOPE
    if session_id and session_id.strip():
        return f"session:{session_id.strip()}"
    if user is not None:
        return f"user:{user.id}"
    return None


async def get_search_scope(
    user: Optional[User] = Depends(get_optional_user),
    x_session_id: Optional[str] = Header(None),
) -> Optional[str]:
    """Cache scope for a request where authentication is optional"""
    return resolve_cache_scope(user, x_session_id)


def get_influencer_service(
    db: Database = Depends(get_db),
    provider: ProviderClient = Depends(get_provider_client),
    cache: SearchCache = Depends(get_cache),
) -> InfluencerService:
    """Get InfluencerService instance with dependencies"""
    return InfluencerService(InfluencerRepository(db), provider, cache)
