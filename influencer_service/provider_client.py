"""
HTTP client for the external influencer statistics provider
"""
import asyncio
import httpx
from typing import Optional, List, Dict, Any
import logging

from .config import settings
from .domain.models import Filter, ProfileRecord
from .exceptions import ExternalProviderError

logger = logging.getLogger(__name__)

PAGE = "1"
SORT_BY_POPULARITY = "-usersCount"


def build_params(search_filter: Filter) -> Dict[str, str]:
    """Translate a filter into the provider's query parameters"""
    params = {
        "page": PAGE,
        "perPage": str(settings.SEARCH_PAGE_SIZE),
        "sort": SORT_BY_POPULARITY,
        "q": search_filter.text_query,
        "tags": search_filter.category,
        "socialTypes": settings.PROVIDER_SOCIAL_TYPE,
        "minUsersCount": search_filter.min_popularity,
        "maxUsersCount": search_filter.max_popularity,
        "trackTotal": "true",
    }
    return {key: str(value) for key, value in params.items() if value is not None}


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item]


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


def parse_candidate(item: Any) -> Optional[ProfileRecord]:
    """Map one provider record onto a ProfileRecord, None if it has no cid"""
    if not isinstance(item, dict) or not item.get("cid"):
        return None
    return ProfileRecord(
        external_id=str(item["cid"]),
        display_name=_optional_str(item.get("name")),
        screen_name=_optional_str(item.get("screenName")),
        image_url=_optional_str(item.get("image")),
        description=_optional_str(item.get("description")),
        popularity_count=_optional_int(item.get("usersCount")),
        tags=_string_list(item.get("tags")),
        social_type=_optional_str(item.get("socialType")),
        group_id=_optional_str(item.get("groupId")),
        url=_optional_str(item.get("url")),
    )


class ProviderClient:
    """Client for the statistics provider search endpoint"""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.timeout = httpx.Timeout(settings.PROVIDER_TIMEOUT_SECONDS)
        self.client = client

    async def start(self):
        """Initialize HTTP client"""
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout)
        logger.info("Provider client initialized")

    async def stop(self):
        """Close HTTP client"""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Provider client closed")

    def _headers(self) -> Dict[str, str]:
        return {
            "X-RapidAPI-Key": settings.PROVIDER_API_KEY,
            "X-RapidAPI-Host": settings.PROVIDER_HOST,
        }

    async def _get(self, params: Dict[str, str]) -> Any:
        response = await self.client.get(
            settings.PROVIDER_URL, params=params, headers=self._headers()
        )
        response.raise_for_status()
        return response.json()

    async def lookup(self, search_filter: Filter) -> List[ProfileRecord]:
        """
        Search the provider with the given filter

        Returns:
            Candidates in the provider's rank order

        Raises:
            ExternalProviderError: on network failure, timeout, non-success
                status or an unexpected payload
        """
        if not self.client:
            raise ExternalProviderError("Provider client not initialized")

        params = build_params(search_filter)
        try:
            payload = await asyncio.wait_for(
                self._get(params), timeout=settings.PROVIDER_TIMEOUT_SECONDS
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ExternalProviderError("Provider request timed out") from e
        except httpx.HTTPStatusError as e:
            raise ExternalProviderError(
                f"Provider returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalProviderError(f"Provider request failed: {e}") from e
        except ValueError as e:
            raise ExternalProviderError("Provider returned invalid JSON") from e
        except (httpx.InvalidURL, RuntimeError) as e:
            raise ExternalProviderError(f"Provider request could not be sent: {e}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise ExternalProviderError("Provider payload has no data array")

        candidates = []
        for item in data:
            candidate = parse_candidate(item)
            if candidate is None:
                logger.warning("Skipping provider record without cid")
                continue
            candidates.append(candidate)

        logger.info(f"Provider returned {len(candidates)} candidates")
        return candidates


# Global provider client instance
provider_client = ProviderClient()


async def get_provider_client() -> ProviderClient:
    """Dependency for getting provider client instance"""
    return provider_client
