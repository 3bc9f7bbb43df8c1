"""
FastAPI application for Influencer Service
"""
from fastapi import FastAPI, Depends, Header, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging

from .config import settings
from .database import db
from .cache import cache
from .provider_client import provider_client
from .dependencies import (
    get_current_user,
    get_influencer_service,
    get_search_scope,
    resolve_cache_scope,
)
from .exceptions import ServiceException
from .service import InfluencerService
from .schemas import (
    User,
    InfluencerCreate,
    InfluencerIdResponse,
    InfluencerListResponse,
    InfluencerOut,
    InfluencerResponse,
    SearchResponse,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting Influencer Service...")

    await db.connect()
    logger.info("Database connected")

    await cache.connect()
    logger.info("Search cache initialized")

    await provider_client.start()

    logger.info(f"Influencer Service started successfully on port {settings.PORT}")

    yield

    # Shutdown
    logger.info("Shutting down Influencer Service...")
    await provider_client.stop()
    await cache.disconnect()
    await db.disconnect()
    logger.info("Influencer Service shut down successfully")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Influencer catalog search over the local store and the statistics provider",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceException)
async def service_exception_handler(request: Request, exc: ServiceException):
    if exc.status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status,
        content={"code": exc.code, "message": exc.message},
    )


def _search_params(
    q: Optional[str],
    min_users_count: Optional[str],
    max_users_count: Optional[str],
    category: Optional[str] = None,
) -> dict:
    return {
        "q": q,
        "minUsersCount": min_users_count,
        "maxUsersCount": max_users_count,
        "category": category,
    }


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": settings.APP_NAME}


@app.get(
    "/api/v1/influencers",
    response_model=InfluencerListResponse,
    tags=["Influencers"],
    summary="List influencers from the local catalog",
)
async def list_influencers(
    q: Optional[str] = Query(None, description="Name or screen name, partial match"),
    min_users_count: Optional[str] = Query(None, alias="minUsersCount"),
    max_users_count: Optional[str] = Query(None, alias="maxUsersCount"),
    category: Optional[str] = Query(None),
    service: InfluencerService = Depends(get_influencer_service),
):
    """
    List influencers stored locally, best score first

    - **q**: case-insensitive partial match on name or screen name
    - **minUsersCount** / **maxUsersCount**: follower bounds
    - **category**: only influencers in this category
    """
    influencers = await service.list_local(
        _search_params(q, min_users_count, max_users_count, category)
    )
    return InfluencerListResponse(influencers=[InfluencerOut.from_record(i) for i in influencers])


@app.get(
    "/api/v1/influencers/search",
    response_model=SearchResponse,
    tags=["Search"],
    summary="Search the local catalog and the statistics provider",
)
async def search_influencers(
    q: Optional[str] = Query(None, description="Name or screen name, partial match"),
    min_users_count: Optional[str] = Query(None, alias="minUsersCount"),
    max_users_count: Optional[str] = Query(None, alias="maxUsersCount"),
    category: Optional[str] = Query(None),
    scope: Optional[str] = Depends(get_search_scope),
    service: InfluencerService = Depends(get_influencer_service),
):
    """
    Search influencers

    Local results come first, followed by provider results not already
    present locally. When the provider is unavailable the response holds the
    local results only and `degraded` is true.
    """
    result = await service.search(
        _search_params(q, min_users_count, max_users_count, category), scope=scope
    )
    return SearchResponse(
        influencers=[InfluencerOut.from_record(i) for i in result.influencers],
        degraded=result.degraded,
    )


@app.get(
    "/api/v1/influencers/category/{category}",
    response_model=SearchResponse,
    tags=["Search"],
    summary="Search influencers within a category",
)
async def search_category(
    category: str,
    q: Optional[str] = Query(None),
    min_users_count: Optional[str] = Query(None, alias="minUsersCount"),
    max_users_count: Optional[str] = Query(None, alias="maxUsersCount"),
    service: InfluencerService = Depends(get_influencer_service),
):
    """Search influencers within a category (results are not cached)"""
    result = await service.search_by_category(
        category, _search_params(q, min_users_count, max_users_count)
    )
    return SearchResponse(
        influencers=[InfluencerOut.from_record(i) for i in result.influencers],
        degraded=result.degraded,
    )


@app.post(
    "/api/v1/influencers",
    response_model=InfluencerResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Influencers"],
    summary="Create an influencer profile",
)
async def create_influencer(
    influencer_data: InfluencerCreate,
    x_session_id: Optional[str] = Header(None),
    current_user: User = Depends(get_current_user),
    service: InfluencerService = Depends(get_influencer_service),
):
    """
    Create an influencer profile

    If the caller recently searched and the provider returned tags for the
    same cid, those tags are stored as the profile's categories.
    """
    scope = resolve_cache_scope(current_user, x_session_id)
    influencer = await service.create_profile(influencer_data.model_dump(), scope=scope)
    return InfluencerResponse(influencer=InfluencerOut.from_record(influencer))


@app.get(
    "/api/v1/influencers/id/{influencer_id}",
    response_model=InfluencerResponse,
    tags=["Influencers"],
    summary="Get an influencer by id",
)
async def get_influencer(
    influencer_id: int,
    service: InfluencerService = Depends(get_influencer_service),
):
    """Get an influencer with its categories"""
    influencer = await service.get_profile(influencer_id)
    return InfluencerResponse(influencer=InfluencerOut.from_record(influencer))


@app.get(
    "/api/v1/influencers/cid/{cid}",
    response_model=InfluencerIdResponse,
    tags=["Influencers"],
    summary="Resolve a cid to the internal id",
)
async def get_influencer_id(
    cid: str,
    service: InfluencerService = Depends(get_influencer_service),
):
    """Get the internal id of the influencer with this cid"""
    influencer_id = await service.get_profile_id(cid)
    return InfluencerIdResponse(influencer_id=influencer_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "influencer_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
