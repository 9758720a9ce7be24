import asyncio
import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Dict, List, Any, Iterable, Mapping, Optional, Sequence, Set

logger = logging.getLogger("search_engine")

Record = Mapping[str, str]


def tokenize(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return text.lower().split()


class SearchIndex:
    """A tiny in-memory prefix index over one dataset.

    - build(records): indexes every prefix of every token in `fields`
    - search(query): returns records containing every query token as a prefix,
      in indexing order
    Records are frozen on build; queries never mutate the index.
    """

    def __init__(self, name: str, fields: Sequence[str], limit: Optional[int] = None):
        if isinstance(fields, str):
            fields = [fields]
        if not fields:
            raise ValueError("an index needs at least one field")
        self.name = name
        self.fields = tuple(fields)
        self.limit = limit
        self.index: Dict[str, Set[int]] = defaultdict(set)
        self.records: List[Record] = []

    @property
    def ready(self) -> bool:
        return True

    def _tokens_for(self, record: Mapping[str, Any]) -> Set[str]:
        tokens = set()
        for field in self.fields:
            value = record.get(field)
            if isinstance(value, str):
                tokens.update(tokenize(value))
        return tokens

    def build(self, records: Iterable[Mapping[str, Any]]) -> None:
        self.index.clear()
        self.records = []
        for record in records:
            record_id = len(self.records)
            self.records.append(MappingProxyType(dict(record)))
            for token in self._tokens_for(record):
                for end in range(1, len(token) + 1):
                    self.index[token[:end]].add(record_id)
        logger.debug("Built index %s: %d records, %d prefixes", self.name, len(self.records), len(self.index))

    def search(self, query: str, limit: Optional[int] = None) -> List[Record]:
        """Return records matching every token of `query` as a prefix.

        A `limit` of None or 0 returns every match and leaves truncation to
        the caller.
        """
        q_tokens = tokenize(query)
        if not q_tokens or not self.records:
            return []

        candidate_ids: Optional[Set[int]] = None
        for t in q_tokens:
            ids = self.index.get(t, set())
            # intersection: every query token must match
            candidate_ids = set(ids) if candidate_ids is None else candidate_ids & ids
            if not candidate_ids:
                return []

        ordered_ids = sorted(candidate_ids)
        if limit:
            ordered_ids = ordered_ids[:limit]
        return [self.records[i] for i in ordered_ids]

    async def query(self, query: str, limit: Optional[int] = None) -> List[Record]:
        return self.search(query, limit)

    def __len__(self) -> int:
        return len(self.records)


class StaticIndex(SearchIndex):
    """Index over a fixed in-memory dataset, built once at construction."""

    def __init__(self, name: str, records: Iterable[Mapping[str, Any]], fields: Sequence[str], limit: Optional[int] = None):
        super().__init__(name, fields, limit=limit)
        self.build(records)


class RemoteIndex(SearchIndex):
    """Index whose records come from a RemoteLoader.

    Until the first load completes the index answers every query with an
    empty list and starts loading in the background; later queries see the
    loaded records.
    """

    def __init__(self, name: str, fields: Sequence[str], loader, limit: Optional[int] = None):
        super().__init__(name, fields, limit=limit)
        self.loader = loader
        self._ready = False
        self._task: Optional[asyncio.Task] = None

    @property
    def ready(self) -> bool:
        return self._ready

    async def load(self) -> bool:
        records = await self.loader.load()
        if not self.loader.loaded:
            # keep whatever we had; a failed fetch leaves the index empty or stale
            return False
        self.build(records)
        self._ready = True
        logger.info("Loaded %d records into index %s", len(self.records), self.name)
        return True

    def start_loading(self) -> Optional[asyncio.Task]:
        if self._ready or self.loader.attempted:
            return None
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.load())
        return self._task

    async def reload(self) -> bool:
        self.loader.reset()
        return await self.load()

    async def query(self, query: str, limit: Optional[int] = None) -> List[Record]:
        if not self._ready:
            self.start_loading()
            return []
        return self.search(query, limit)
