from collections import OrderedDict
from typing import Any, Callable, Optional


def cache_key(kind: str, key: str) -> str:
    return f"{kind}/{key}"


def split_key(ckey: str) -> tuple[str, str]:
    kind, _, key = ckey.partition("/")
    return kind, key


class EntityCache:
    """Two-tier entity cache.

    The exact tier holds recently read or written entities and evicts the
    least recently used entry once ``capacity`` is reached. The predictive
    tier holds entities the prefetcher loaded ahead of demand; a hit there
    promotes the entity into the exact tier.
    """

    def __init__(self, capacity: int = 1000) -> None:
        self.capacity = max(1, capacity)
        self._exact: OrderedDict[str, Any] = OrderedDict()
        self._predicted: dict[str, Any] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get_exact(self, ckey: str) -> Optional[Any]:
        if ckey in self._exact:
            self._exact.move_to_end(ckey)
            self.hits += 1
            return self._exact[ckey]
        return None

    def get_predicted(self, ckey: str) -> Optional[Any]:
        entity = self._predicted.pop(ckey, None)
        if entity is not None:
            self.hits += 1
            self.put(ckey, entity)
        return entity

    def put(self, ckey: str, entity: Any) -> None:
        self._exact[ckey] = entity
        self._exact.move_to_end(ckey)
        self._predicted.pop(ckey, None)
        while len(self._exact) > self.capacity:
            self._exact.popitem(last=False)
            self.evictions += 1

    def peek(self, ckey: str) -> Optional[Any]:
        """Exact-tier lookup that leaves hit counters and LRU order alone."""
        return self._exact.get(ckey)

    def put_predicted(self, ckey: str, entity: Any) -> None:
        if ckey not in self._exact:
            self._predicted[ckey] = entity

    def discard(self, ckey: str) -> None:
        self._exact.pop(ckey, None)
        self._predicted.pop(ckey, None)

    def discard_predicted(self, predicate: Callable[[str], bool]) -> int:
        stale = [k for k in self._predicted if predicate(k)]
        for ckey in stale:
            del self._predicted[ckey]
        return len(stale)

    def record_miss(self) -> None:
        self.misses += 1

    def clear(self) -> None:
        self._exact.clear()
        self._predicted.clear()

    @property
    def predicted_size(self) -> int:
        return len(self._predicted)

    def __contains__(self, ckey: str) -> bool:
        return ckey in self._exact

    def __len__(self) -> int:
        return len(self._exact)
