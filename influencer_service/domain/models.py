"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field
from typing import Optional, List

from ..exceptions import InvalidFilterError


@dataclass(frozen=True)
class Filter:
    """Normalized search criteria shared by the local and provider lookups"""
    min_popularity: Optional[int] = None
    max_popularity: Optional[int] = None
    text_query: Optional[str] = None
    category: Optional[str] = None

    def validate(self) -> "Filter":
        """Raise InvalidFilterError when the popularity bounds are inverted"""
        if (
            self.min_popularity is not None
            and self.max_popularity is not None
            and self.min_popularity > self.max_popularity
        ):
            raise InvalidFilterError("Min usersCount cannot be greater than max")
        return self


@dataclass
class ProfileRecord:
    """Influencer profile, whether read from the store or from the provider"""
    external_id: str
    display_name: Optional[str] = None
    screen_name: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    popularity_count: Optional[int] = None
    score: Optional[float] = None
    credibility_score: Optional[float] = None
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)  # provider payload only
    id: Optional[int] = None  # internal id, local rows only
    social_type: Optional[str] = None
    group_id: Optional[str] = None
    url: Optional[str] = None


@dataclass
class SearchResult:
    """Merged search result; degraded when provider data is missing"""
    influencers: List[ProfileRecord]
    degraded: bool = False
