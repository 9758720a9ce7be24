"""Fan a query out to every index and merge the answers.

Each QueryCoordinator owns a monotonically increasing generation counter. A
search commits its per-source matches into fixed slots and only publishes the
merged list if no newer search (or clear) started while it was waiting, so
results of a superseded query never reach the renderer.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from constants import REGION_CODES, TESTING_CATEGORY_LABEL
from models import MatchKind, MatchResult, RegionMatch, ResourceMatch
from search_engine import SearchIndex

logger = logging.getLogger("coordinator")

SOURCE_PRIORITY = {MatchKind.STATE: 0, MatchKind.DISTRICT: 1, MatchKind.RESOURCE: 2}

DISTRICT_RESULTS = 3
RESOURCE_RESULTS = 5


def category_label(category: str) -> str:
    if "Testing" in category:
        return TESTING_CATEGORY_LABEL
    return category


def normalize_state(record: Mapping[str, str]) -> RegionMatch:
    return RegionMatch(kind=MatchKind.STATE, label=record["name"], route_key=record["code"], region=record["name"])


def normalize_district(record: Mapping[str, str]) -> Optional[RegionMatch]:
    region = record.get("state", "")
    route_key = REGION_CODES.get(region)
    if route_key is None:
        # no page to link to
        logger.warning("Dropping district %r: unknown region %r", record.get("district"), region)
        return None
    return RegionMatch(kind=MatchKind.DISTRICT, label=record["district"], route_key=route_key, region=region)


def normalize_resource(record: Mapping[str, str]) -> ResourceMatch:
    category = record.get("category", "")
    return ResourceMatch(
        label=record.get("organisation_name", ""),
        category=category,
        category_label=category_label(category),
        website=record.get("contact", ""),
        description=record.get("description", ""),
        city=record.get("city", ""),
        state=record.get("state", ""),
        phone=record.get("phone_number", ""),
    )


@dataclass
class Source:
    kind: MatchKind
    index: SearchIndex
    normalize: Callable[[Mapping[str, str]], Optional[MatchResult]]
    truncate: Optional[int] = None

    def to_results(self, records: Sequence[Mapping[str, str]]) -> List[MatchResult]:
        if self.truncate is not None:
            records = records[: self.truncate]
        results = []
        for record in records:
            match = self.normalize(record)
            if match is not None:
                results.append(match)
        return results


def build_sources(indexes: Mapping[str, SearchIndex]) -> List[Source]:
    """Wire the region, district and resource indexes to their result shapes."""
    return [
        Source(MatchKind.STATE, indexes["states"], normalize_state),
        Source(MatchKind.DISTRICT, indexes["districts"], normalize_district, truncate=DISTRICT_RESULTS),
        Source(MatchKind.RESOURCE, indexes["resources"], normalize_resource, truncate=RESOURCE_RESULTS),
    ]


class QueryCoordinator:
    """Runs one query generation at a time against a fixed set of sources.

    `renderer` is optional; when given it must provide
    ``async render(generation, query, results)`` and ``async clear(generation)``.
    """

    def __init__(self, sources: Iterable[Source], renderer=None):
        self.sources = sorted(sources, key=lambda s: SOURCE_PRIORITY[s.kind])
        self.renderer = renderer
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _collect(self, source: Source, query: str) -> List[MatchResult]:
        try:
            records = await source.index.query(query, source.index.limit)
        except Exception:
            logger.exception("Index %s failed for query %r", source.index.name, query)
            return []
        return source.to_results(records)

    async def search(self, query: Optional[str]) -> Optional[List[MatchResult]]:
        """Search every source and publish the merged list.

        Returns the list, or None when a newer query superseded this one
        before all sources answered.
        """
        query = (query or "").strip()
        if not query:
            await self.clear()
            return []

        self._generation += 1
        generation = self._generation

        slots: Dict[int, List[MatchResult]] = {}

        async def fill(position: int, source: Source) -> None:
            slots[position] = await self._collect(source, query)

        await asyncio.gather(*(fill(i, s) for i, s in enumerate(self.sources)))

        if not self.is_current(generation):
            logger.debug("Discarding stale results for %r (generation %d, current %d)", query, generation, self._generation)
            return None

        results = [match for position in range(len(self.sources)) for match in slots.get(position, [])]
        if self.renderer is not None:
            await self.renderer.render(generation, query, results)
        return results

    async def clear(self) -> None:
        self._generation += 1
        if self.renderer is not None:
            await self.renderer.clear(self._generation)
