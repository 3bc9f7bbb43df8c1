"""Tests for the search orchestrator and profile creation."""

import asyncio

import pytest
from conftest import profile

from influencer_service.domain.models import Filter
from influencer_service.exceptions import (
    DuplicateProfileError,
    ExternalProviderError,
    InvalidFilterError,
    NotFoundError,
    StoreError,
)


def ids(records):
    return [r.external_id for r in records]


class TestSearch:
    async def test_merges_local_then_provider(self, service, repository, provider):
        repository.search_results = [profile("a", score=0.9), profile("b", score=0.5)]
        provider.results = [profile("b"), profile("c")]

        result = await service.search({"q": "fit"})

        assert ids(result.influencers) == ["a", "b", "c"]
        assert result.degraded is False
        assert repository.searches == [Filter(text_query="fit")]
        assert provider.calls == [Filter(text_query="fit")]

    async def test_invalid_filter_issues_no_io(self, service, repository, provider):
        with pytest.raises(InvalidFilterError):
            await service.search({"minUsersCount": "1000", "maxUsersCount": "100"})

        assert repository.searches == []
        assert provider.calls == []

    async def test_provider_failure_degrades_to_local(self, service, repository, provider):
        local = [profile("a"), profile("b")]
        repository.search_results = local
        provider.error = ExternalProviderError("Provider returned HTTP 500")

        result = await service.search({})

        assert result.influencers == local
        assert result.degraded is True

    async def test_store_failure_aborts_and_cancels_lookup(
        self, service, repository, provider, store_error
    ):
        repository.search_error = store_error
        provider.delay = 5

        with pytest.raises(StoreError):
            await service.search({})

        assert provider.cancelled is True

    async def test_store_failure_wins_over_failed_lookup(
        self, service, repository, provider, store_error
    ):
        repository.search_error = store_error
        provider.error = RuntimeError("client closed")

        with pytest.raises(StoreError):
            await service.search({})

        assert len(provider.calls) == 1

    async def test_lookups_run_concurrently(self, service, repository, provider):
        local_started = asyncio.Event()
        provider_started = asyncio.Event()

        async def local_search(search_filter):
            local_started.set()
            await provider_started.wait()
            return [profile("a")]

        async def lookup(search_filter):
            provider_started.set()
            await local_started.wait()
            return [profile("b")]

        repository.search = local_search
        provider.lookup = lookup

        result = await asyncio.wait_for(service.search({}), timeout=2)

        assert ids(result.influencers) == ["a", "b"]

    async def test_result_is_cached_for_the_scope(self, service, search_cache, repository, provider):
        repository.search_results = [profile("a")]
        provider.results = [profile("x", tags=["fitness", "travel"])]

        await service.search({}, scope="user:1")

        assert await search_cache.lookup_tags("user:1", "x") == ["fitness", "travel"]
        assert await search_cache.lookup_tags("user:2", "x") is None

    async def test_no_scope_means_no_caching(self, service, search_cache, provider):
        provider.results = [profile("x", tags=["t"])]

        await service.search({}, scope=None)

        assert await search_cache.lookup_tags("global", "x") is None

    async def test_degraded_search_still_replaces_cache(self, service, search_cache, provider):
        await search_cache.remember("s", [profile("x", tags=["stale"])])
        provider.error = ExternalProviderError("timeout")

        await service.search({}, scope="s")

        assert await search_cache.lookup_tags("s", "x") is None

    async def test_category_search_is_not_cached(self, service, search_cache, repository, provider):
        provider.results = [profile("x", tags=["t"])]

        result = await service.search_by_category("travel", {"q": "anna"})

        assert ids(result.influencers) == ["x"]
        assert repository.searches == [Filter(text_query="anna", category="travel")]
        assert await search_cache.lookup_tags("global", "x") is None

    async def test_list_local_skips_provider(self, service, repository, provider):
        repository.search_results = [profile("a")]

        influencers = await service.list_local({"category": "food"})

        assert ids(influencers) == ["a"]
        assert provider.calls == []


class TestCreateProfile:
    async def test_cached_tags_become_categories(self, service, search_cache, repository):
        await search_cache.remember("user:1", [profile("x", tags=["fitness", "travel"])])

        created = await service.create_profile({"cid": "x", "name": "X"}, scope="user:1")

        assert created.categories == ["fitness", "travel"]
        assert repository.categories[created.id] == ["fitness", "travel"]

    async def test_no_matching_entry_means_no_categories(self, service, search_cache, repository):
        await search_cache.remember("user:1", [profile("x", tags=["fitness", "travel"])])

        created = await service.create_profile({"cid": "y", "name": "Y"}, scope="user:1")

        assert created.categories == []
        assert created.id not in repository.categories

    async def test_other_scopes_are_not_consulted(self, service, search_cache):
        await search_cache.remember("user:2", [profile("x", tags=["fitness"])])

        created = await service.create_profile({"cid": "x"}, scope="user:1")

        assert created.categories == []

    async def test_category_failure_does_not_abort_creation(
        self, service, search_cache, repository, store_error
    ):
        await search_cache.remember("s", [profile("x", tags=["t"])])
        repository.category_error = store_error

        created = await service.create_profile({"cid": "x"}, scope="s")

        assert created.categories == []
        assert "x" in repository.profiles

    async def test_duplicate_cid_is_rejected(self, service, repository):
        await service.create_profile({"cid": "x"})

        with pytest.raises(DuplicateProfileError) as exc_info:
            await service.create_profile({"cid": "x"})
        assert exc_info.value.status == 400
        assert len(repository.profiles) == 1

    async def test_creation_runs_in_a_transaction(self, service, repository):
        await service.create_profile({"cid": "x"})
        assert repository.transactions == 1


class TestLookups:
    async def test_get_profile(self, service, repository):
        created = await service.create_profile({"cid": "x"})

        found = await service.get_profile(created.id)

        assert found.external_id == "x"

    async def test_get_profile_missing(self, service):
        with pytest.raises(NotFoundError):
            await service.get_profile(42)

    async def test_get_profile_id(self, service):
        created = await service.create_profile({"cid": "x"})
        assert await service.get_profile_id("x") == created.id

    async def test_get_profile_id_missing(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_profile_id("nope")
        assert exc_info.value.status == 404
