"""
Repository interfaces - Define contracts for data access
"""
from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, List, Optional

from .models import Filter, ProfileRecord


class IInfluencerRepository(ABC):
    """Influencer repository interface

    Methods taking ``conn`` run on that connection when given, which lets the
    service group several calls into one transaction.
    """

    @abstractmethod
    def transaction(self, conn: Any = None) -> AsyncContextManager[Any]:
        """Open a transaction (or a savepoint inside ``conn``)"""
        pass

    @abstractmethod
    async def search(self, search_filter: Filter) -> List[ProfileRecord]:
        """Find profiles matching a filter, best score first"""
        pass

    @abstractmethod
    async def find_by_cid(self, cid: str, conn: Any = None) -> Optional[ProfileRecord]:
        """Find a profile by its external id"""
        pass

    @abstractmethod
    async def find_by_id(self, influencer_id: int) -> Optional[ProfileRecord]:
        """Find a profile by internal id, with its categories"""
        pass

    @abstractmethod
    async def create(self, data: Dict[str, Any], conn: Any = None) -> ProfileRecord:
        """Insert a new profile"""
        pass

    @abstractmethod
    async def add_categories(
        self, influencer_id: int, categories: List[str], conn: Any = None
    ) -> List[str]:
        """Associate categories with a profile, returning the stored names"""
        pass
