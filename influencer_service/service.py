"""
Influencer Service business logic

Search aggregation: the local store and the statistics provider are queried
concurrently with the same filter, merged local-first, and the merged tags
are cached so that a later profile creation can reuse them.
"""
import asyncio
from typing import Any, Dict, List, Mapping, Optional
import logging

from .cache import SearchCache
from .domain.models import Filter, ProfileRecord, SearchResult
from .domain.repositories import IInfluencerRepository
from .exceptions import (
    DuplicateProfileError,
    ExternalProviderError,
    NotFoundError,
    StoreConflictError,
    StoreError,
)
from .filters import CATEGORY_PARAM, normalize_filter
from .merge import merge
from .provider_client import ProviderClient

logger = logging.getLogger(__name__)


class InfluencerService:
    """Business logic for influencer search and creation"""

    def __init__(
        self,
        repository: IInfluencerRepository,
        provider: ProviderClient,
        cache: SearchCache,
    ):
        self.repository = repository
        self.provider = provider
        self.cache = cache

    async def _lookup_external(self, search_filter: Filter) -> Optional[List[ProfileRecord]]:
        """Provider candidates, or None when the provider is unavailable"""
        try:
            return await self.provider.lookup(search_filter)
        except ExternalProviderError as e:
            logger.warning(f"Provider lookup failed, returning local results only: {e.message}")
            return None

    async def search(
        self,
        raw_filter: Optional[Mapping[str, Any]],
        scope: Optional[str] = None,
        remember: bool = True,
    ) -> SearchResult:
        """
        Search the local catalog and the provider, merged local-first

        Args:
            raw_filter: Query parameters (minUsersCount, maxUsersCount, q, category)
            scope: Cache scope to store the merged tags under; None skips caching
            remember: Whether to write the merged result into the cache

        Returns:
            SearchResult, degraded when the provider could not be consulted

        Raises:
            InvalidFilterError: If the filter is malformed; nothing is queried
            StoreError: If the local query fails
        """
        search_filter = normalize_filter(raw_filter)

        external_task = asyncio.create_task(self._lookup_external(search_filter))
        try:
            local = await self.repository.search(search_filter)
        except BaseException:
            external_task.cancel()
            await asyncio.gather(external_task, return_exceptions=True)
            raise
        external = await external_task

        degraded = external is None
        influencers = merge(local, external or [])

        if remember and scope is not None:
            await self.cache.remember(scope, influencers)

        logger.info(
            f"Search returned {len(influencers)} influencers "
            f"({len(local)} local, degraded={degraded})"
        )
        return SearchResult(influencers=influencers, degraded=degraded)

    async def search_by_category(
        self, category: str, raw_filter: Optional[Mapping[str, Any]] = None
    ) -> SearchResult:
        """Search within one category; results are not cached"""
        params = dict(raw_filter or {})
        params[CATEGORY_PARAM] = category
        return await self.search(params, remember=False)

    async def list_local(self, raw_filter: Optional[Mapping[str, Any]] = None) -> List[ProfileRecord]:
        """Search the local catalog only"""
        return await self.repository.search(normalize_filter(raw_filter))

    async def _cached_tags(self, scope: Optional[str], cid: str) -> List[str]:
        if scope is None:
            return []
        tags = await self.cache.lookup_tags(scope, cid)
        return tags or []

    async def create_profile(
        self, data: Dict[str, Any], scope: Optional[str] = None
    ) -> ProfileRecord:
        """
        Create a profile, adding categories from tags seen in a recent search

        Tags are taken from the cache entry with the same cid in ``scope``.
        Failing to attach them never fails the creation.

        Raises:
            DuplicateProfileError: If a profile with this cid already exists
            StoreError: If the insert fails
        """
        cid = data["cid"]
        tags = await self._cached_tags(scope, cid)

        try:
            async with self.repository.transaction() as conn:
                if await self.repository.find_by_cid(cid, conn=conn):
                    raise DuplicateProfileError(f"Duplicate influencer: {cid}")

                influencer = await self.repository.create(data, conn=conn)

                if tags:
                    try:
                        async with self.repository.transaction(conn) as savepoint:
                            influencer.categories = await self.repository.add_categories(
                                influencer.id, tags, conn=savepoint
                            )
                    except StoreError as e:
                        logger.warning(f"Could not attach categories to {cid}: {e.message}")
                        influencer.categories = []
        except StoreConflictError:
            raise DuplicateProfileError(f"Duplicate influencer: {cid}")

        logger.info(f"Created influencer {cid} with {len(influencer.categories)} categories")
        return influencer

    async def get_profile(self, influencer_id: int) -> ProfileRecord:
        """Get a profile by internal id"""
        influencer = await self.repository.find_by_id(influencer_id)
        if not influencer:
            raise NotFoundError(f"No influencer with id: {influencer_id}")
        return influencer

    async def get_profile_id(self, cid: str) -> int:
        """Resolve a cid to the internal id"""
        influencer = await self.repository.find_by_cid(cid)
        if not influencer:
            raise NotFoundError(f"No influencer with cid: {cid}")
        return influencer.id
