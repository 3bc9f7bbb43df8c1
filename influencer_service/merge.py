"""
Merging of local and provider search results
"""
from typing import List, Sequence

from .domain.models import ProfileRecord


def merge(local: Sequence[ProfileRecord], external: Sequence[ProfileRecord]) -> List[ProfileRecord]:
    """
    Combine local and provider results into one list

    Local records come first in their original order, followed by provider
    records whose external_id has not been emitted yet, in provider order.
    No sorting happens here; each input keeps its own source's ranking.
    """
    merged = list(local)
    seen = {record.external_id for record in local}

    for record in external:
        if record.external_id in seen:
            continue
        seen.add(record.external_id)
        merged.append(record)

    return merged
