"""
Local search query construction

Each optional filter field becomes a Predicate. Predicates render their own
SQL fragment around a positional placeholder and are joined with AND; values
are always bound as parameters.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Tuple

from .config import settings
from .domain.models import Filter

SEARCH_SELECT = """
    SELECT i.id,
           i.cid,
           i.social_type,
           i.group_id,
           i.url,
           i.name,
           i.image,
           i.description,
           i.screen_name,
           i.users_count,
           i.score,
           i.credibility_score,
           COALESCE(
               array_agg(ic.category ORDER BY ic.category)
                   FILTER (WHERE ic.category IS NOT NULL),
               '{}'
           ) AS categories
    FROM influencers AS i
    LEFT JOIN influencers_categories AS ic
    ON i.id = ic.influencer_id
"""


class PredicateKind(str, Enum):
    """Filter field a predicate was built from"""
    MIN_POPULARITY = "min_popularity"
    MAX_POPULARITY = "max_popularity"
    TEXT = "text"
    CATEGORY = "category"


def escape_like(text: str) -> str:
    """Escape LIKE metacharacters so text matches literally"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Predicate:
    """A single WHERE condition and the value bound to it"""
    kind: PredicateKind
    value: Any

    def render(self, placeholder: str) -> str:
        if self.kind is PredicateKind.MIN_POPULARITY:
            return f"i.users_count >= {placeholder}"
        if self.kind is PredicateKind.MAX_POPULARITY:
            return f"i.users_count <= {placeholder}"
        if self.kind is PredicateKind.TEXT:
            return f"(i.name ILIKE {placeholder} OR i.screen_name ILIKE {placeholder})"
        if self.kind is PredicateKind.CATEGORY:
            return (
                "EXISTS (SELECT 1 FROM influencers_categories AS fc "
                f"WHERE fc.influencer_id = i.id AND fc.category = {placeholder})"
            )
        raise ValueError(f"Unknown predicate kind: {self.kind}")


def predicates_for(search_filter: Filter) -> List[Predicate]:
    """
    Turn the present fields of a filter into predicates

    Raises:
        InvalidFilterError: if min_popularity > max_popularity
    """
    search_filter.validate()

    predicates = []
    if search_filter.min_popularity is not None:
        predicates.append(Predicate(PredicateKind.MIN_POPULARITY, search_filter.min_popularity))
    if search_filter.max_popularity is not None:
        predicates.append(Predicate(PredicateKind.MAX_POPULARITY, search_filter.max_popularity))
    if search_filter.text_query:
        predicates.append(Predicate(PredicateKind.TEXT, f"%{escape_like(search_filter.text_query)}%"))
    if search_filter.category is not None:
        predicates.append(Predicate(PredicateKind.CATEGORY, search_filter.category))
    return predicates


def build_search_query(search_filter: Filter) -> Tuple[str, List[Any]]:
    """
    Build the parameterized local search query

    Returns:
        Tuple of (sql, params) where params line up with $1..$n
    """
    predicates = predicates_for(search_filter)

    where_expressions = []
    params: List[Any] = []
    for predicate in predicates:
        params.append(predicate.value)
        where_expressions.append(predicate.render(f"${len(params)}"))

    query = SEARCH_SELECT
    if where_expressions:
        query += "    WHERE " + " AND ".join(where_expressions) + "\n"

    params.append(settings.SEARCH_PAGE_SIZE)
    query += f"    GROUP BY i.id\n    ORDER BY i.score DESC NULLS LAST\n    LIMIT ${len(params)}\n"
    return query, params
