"""Search one query across several MSP entity types at once."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .errors import upstream_message

logger = logging.getLogger(__name__)

SEARCH_ENDPOINTS = {
    "devices": "/devices",
    "alarms": "/alarms",
    "flows": "/flows",
    "boxes": "/boxes",
}
SEARCHABLE_TYPES = tuple(SEARCH_ENDPOINTS)
DEFAULT_SEARCH_LIMIT = 10


@dataclass
class EntitySearchResult:
    """Outcome of searching one entity type: results or an error, never both."""

    entity_type: str
    results: list[Any] = field(default_factory=list)
    count: int = 0
    next_cursor: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_payload(cls, entity_type: str, payload: Any) -> "EntitySearchResult":
        if isinstance(payload, dict) and isinstance(payload.get("results"), list):
            results = payload["results"]
            count = payload.get("count")
            return cls(
                entity_type,
                results=results,
                count=count if isinstance(count, int) and not isinstance(count, bool) else len(results),
                next_cursor=payload.get("next_cursor") or None,
            )
        if isinstance(payload, list):
            return cls(entity_type, results=payload, count=len(payload))
        if payload is None:
            return cls(entity_type)
        return cls(entity_type, results=[payload], count=1)

    @classmethod
    def failed(cls, entity_type: str, reason: str) -> "EntitySearchResult":
        return cls(entity_type, error=f"Failed to search {entity_type}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        if not self.ok:
            return {"error": self.error}
        section: dict[str, Any] = {"results": self.results, "count": self.count}
        if self.next_cursor:
            section["next_cursor"] = self.next_cursor
        return section


async def _search_one(
    client, entity_type: str, params: dict[str, Any]
) -> EntitySearchResult:
    try:
        payload = await client.get(SEARCH_ENDPOINTS[entity_type], params=params)
    except Exception as e:
        logger.warning(f"Search for {entity_type} failed: {e}")
        return EntitySearchResult.failed(entity_type, upstream_message(e))
    return EntitySearchResult.from_payload(entity_type, payload)


async def search_entities(
    client,
    query: str,
    types: Iterable[str] | None = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
    cursor: str | None = None,
) -> dict[str, Any]:
    """Run ``query`` against each entity type concurrently.

    A failing entity type gets an ``{"error": ...}`` slot and is left out of
    ``total_count``; the other types are unaffected.
    """
    entity_types = list(dict.fromkeys(types or SEARCHABLE_TYPES))
    params: dict[str, Any] = {"query": query, "limit": limit}
    if cursor:
        params["cursor"] = cursor

    searchable = [t for t in entity_types if t in SEARCH_ENDPOINTS]
    outcomes = await asyncio.gather(*(_search_one(client, t, dict(params)) for t in searchable))
    by_type = {outcome.entity_type: outcome for outcome in outcomes}
    for entity_type in entity_types:
        if entity_type not in by_type:
            by_type[entity_type] = EntitySearchResult.failed(entity_type, "type is not searchable")

    return {
        "query": query,
        "results": {t: by_type[t].to_dict() for t in entity_types},
        "total_count": sum(by_type[t].count for t in entity_types if by_type[t].ok),
    }
