"""
Shared fixtures and in-memory doubles for the influencer service tests
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import fakeredis
import pytest

from influencer_service.cache import SearchCache
from influencer_service.domain.models import Filter, ProfileRecord
from influencer_service.domain.repositories import IInfluencerRepository
from influencer_service.exceptions import StoreError
from influencer_service.service import InfluencerService


def profile(external_id: str, **fields) -> ProfileRecord:
    return ProfileRecord(external_id=external_id, **fields)


class FakeRepository(IInfluencerRepository):
    """In-memory repository recording every call"""

    def __init__(self, search_results: Optional[List[ProfileRecord]] = None):
        self.search_results = search_results or []
        self.search_error: Optional[Exception] = None
        self.category_error: Optional[Exception] = None
        self.searches: List[Filter] = []
        self.profiles: Dict[str, ProfileRecord] = {}
        self.categories: Dict[int, List[str]] = {}
        self.transactions = 0
        self._next_id = 1

    @asynccontextmanager
    async def transaction(self, conn: Any = None):
        self.transactions += 1
        snapshot = (dict(self.profiles), dict(self.categories))
        try:
            yield conn or "conn"
        except BaseException:
            self.profiles, self.categories = snapshot
            raise

    async def search(self, search_filter: Filter) -> List[ProfileRecord]:
        self.searches.append(search_filter)
        await asyncio.sleep(0)
        if self.search_error:
            raise self.search_error
        return list(self.search_results)

    async def find_by_cid(self, cid: str, conn: Any = None) -> Optional[ProfileRecord]:
        return self.profiles.get(cid)

    async def find_by_id(self, influencer_id: int) -> Optional[ProfileRecord]:
        for record in self.profiles.values():
            if record.id == influencer_id:
                record.categories = list(self.categories.get(influencer_id, []))
                return record
        return None

    async def create(self, data: Dict[str, Any], conn: Any = None) -> ProfileRecord:
        record = ProfileRecord(
            id=self._next_id,
            external_id=data["cid"],
            display_name=data.get("name"),
            screen_name=data.get("screen_name"),
            popularity_count=data.get("users_count"),
        )
        self._next_id += 1
        self.profiles[record.external_id] = record
        return record

    async def add_categories(
        self, influencer_id: int, categories: List[str], conn: Any = None
    ) -> List[str]:
        if self.category_error:
            raise self.category_error
        self.categories[influencer_id] = list(categories)
        return list(categories)


class FakeProvider:
    """Provider double returning canned candidates or raising"""

    def __init__(self, results: Optional[List[ProfileRecord]] = None):
        self.results = results or []
        self.error: Optional[Exception] = None
        self.delay = 0.0
        self.calls: List[Filter] = []
        self.cancelled = False

    async def lookup(self, search_filter: Filter) -> List[ProfileRecord]:
        self.calls.append(search_filter)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error:
            raise self.error
        return list(self.results)


@pytest.fixture
def redis_client():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def search_cache(redis_client):
    return SearchCache(redis_client)


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def service(repository, provider, search_cache):
    return InfluencerService(repository, provider, search_cache)


@pytest.fixture
def store_error():
    return StoreError("connection refused")
