"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, Field
from typing import Optional, List

from .domain.models import ProfileRecord


class User(BaseModel):
    """Authenticated user as returned by the Auth Service"""

    id: int
    username: str
    is_active: bool = True


# Request Schemas
class InfluencerCreate(BaseModel):
    """Request to create an influencer profile"""

    cid: str = Field(..., min_length=1, max_length=100)
    social_type: Optional[str] = Field(None, alias="socialType")
    group_id: Optional[str] = Field(None, alias="groupId")
    url: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    screen_name: Optional[str] = Field(None, alias="screenName")
    users_count: Optional[int] = Field(None, alias="usersCount", ge=0)

    class Config:
        populate_by_name = True


# Response Schemas
class InfluencerOut(BaseModel):
    """Influencer profile as returned to clients"""

    id: Optional[int] = None
    cid: str
    social_type: Optional[str] = Field(None, alias="socialType")
    group_id: Optional[str] = Field(None, alias="groupId")
    url: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    screen_name: Optional[str] = Field(None, alias="screenName")
    users_count: Optional[int] = Field(None, alias="usersCount")
    score: Optional[float] = None
    credibility_score: Optional[float] = Field(None, alias="credibilityScore")
    categories: List[str] = []
    tags: List[str] = []

    class Config:
        populate_by_name = True

    @classmethod
    def from_record(cls, record: ProfileRecord) -> "InfluencerOut":
        return cls(
            id=record.id,
            cid=record.external_id,
            social_type=record.social_type,
            group_id=record.group_id,
            url=record.url,
            name=record.display_name,
            image=record.image_url,
            description=record.description,
            screen_name=record.screen_name,
            users_count=record.popularity_count,
            score=record.score,
            credibility_score=record.credibility_score,
            categories=record.categories,
            tags=record.tags,
        )


class InfluencerResponse(BaseModel):
    """Single influencer response"""

    influencer: InfluencerOut


class InfluencerListResponse(BaseModel):
    """Local catalog listing"""

    influencers: List[InfluencerOut]


class SearchResponse(BaseModel):
    """Merged search response"""

    influencers: List[InfluencerOut]
    degraded: bool = Field(False, description="True when provider results are missing")


class InfluencerIdResponse(BaseModel):
    """Internal id lookup response"""

    influencer_id: int = Field(..., alias="influencerId")

    class Config:
        populate_by_name = True
