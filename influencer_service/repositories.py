"""
Repository implementations - Data access layer
"""
from typing import Any, Dict, List, Optional
import logging

from .database import Database
from .domain.models import Filter, ProfileRecord
from .domain.repositories import IInfluencerRepository
from .query_builder import build_search_query

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = """
    id, cid, social_type, group_id, url, name, image, description,
    screen_name, users_count, score, credibility_score
"""


def row_to_profile(row: Optional[Dict[str, Any]]) -> Optional[ProfileRecord]:
    """Convert database row to ProfileRecord"""
    if not row:
        return None
    return ProfileRecord(
        id=row["id"],
        external_id=row["cid"],
        social_type=row.get("social_type"),
        group_id=str(row["group_id"]) if row.get("group_id") is not None else None,
        url=row.get("url"),
        display_name=row.get("name"),
        image_url=row.get("image"),
        description=row.get("description"),
        screen_name=row.get("screen_name"),
        popularity_count=row.get("users_count"),
        score=float(row["score"]) if row.get("score") is not None else None,
        credibility_score=(
            float(row["credibility_score"]) if row.get("credibility_score") is not None else None
        ),
        categories=list(row.get("categories") or []),
    )


class InfluencerRepository(IInfluencerRepository):
    """Influencer repository implementation using PostgreSQL"""

    def __init__(self, db: Database):
        self.db = db

    def transaction(self, conn: Any = None):
        return self.db.transaction(conn)

    async def search(self, search_filter: Filter) -> List[ProfileRecord]:
        """Find profiles matching a filter, best score first"""
        query, params = build_search_query(search_filter)
        rows = await self.db.fetch_all(query, *params)
        return [row_to_profile(row) for row in rows]

    async def find_by_cid(self, cid: str, conn: Any = None) -> Optional[ProfileRecord]:
        """Find a profile by its external id"""
        row = await self.db.fetch_one(
            f"SELECT {PROFILE_COLUMNS} FROM influencers WHERE cid = $1",
            cid,
            conn=conn,
        )
        return row_to_profile(row)

    async def find_by_id(self, influencer_id: int) -> Optional[ProfileRecord]:
        """Find a profile by internal id, with its categories"""
        row = await self.db.fetch_one(
            f"SELECT {PROFILE_COLUMNS} FROM influencers WHERE id = $1",
            influencer_id,
        )
        profile = row_to_profile(row)
        if profile is None:
            return None

        categories = await self.db.fetch_all(
            """
            SELECT category
            FROM influencers_categories
            WHERE influencer_id = $1
            ORDER BY category
            """,
            influencer_id,
        )
        profile.categories = [r["category"] for r in categories]
        return profile

    async def create(self, data: Dict[str, Any], conn: Any = None) -> ProfileRecord:
        """Insert a new profile"""
        row = await self.db.fetch_one(
            f"""
            INSERT INTO influencers
                (cid, social_type, group_id, url, name, image,
                 description, screen_name, users_count)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING {PROFILE_COLUMNS}
            """,
            data["cid"],
            data.get("social_type"),
            data.get("group_id"),
            data.get("url"),
            data.get("name"),
            data.get("image"),
            data.get("description"),
            data.get("screen_name"),
            data.get("users_count"),
            conn=conn,
        )
        return row_to_profile(row)

    async def add_categories(
        self, influencer_id: int, categories: List[str], conn: Any = None
    ) -> List[str]:
        """Associate categories with a profile, creating unknown categories"""
        names = list(dict.fromkeys(categories))
        if not names:
            return []

        await self.db.execute_many(
            "INSERT INTO categories (category) VALUES ($1) ON CONFLICT DO NOTHING",
            [(name,) for name in names],
            conn=conn,
        )
        await self.db.execute_many(
            """
            INSERT INTO influencers_categories (category, influencer_id)
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
            """,
            [(name, influencer_id) for name in names],
            conn=conn,
        )
        logger.debug(f"Added {len(names)} categories to influencer {influencer_id}")
        return names
