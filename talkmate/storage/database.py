"""The storage facade: record store + cache + access prediction + managers.

One ``Database`` is built at process start and handed to whatever needs it;
tests build their own against a temporary directory.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ValidationError

from ..config import StorageConfig
from .aggregator import Aggregator
from .backup import BackupManager
from .cache import EntityCache, cache_key, split_key
from .conversations import ConversationManager
from .errors import CorruptRecord, InvalidKey
from .favorites import FavoriteManager
from .index import EntityIndex
from .models import Conversation, Favorite, Ticket, User, now_ms
from .outbox import Outbox
from .predictor import AccessTracker, Predictor, Prefetcher
from .record_store import RecordStore, check_key
from .search import SearchService
from .tickets import TicketManager
from .users import UserManager

logger = logging.getLogger(__name__)

ENTITY_MODELS: dict[str, type[BaseModel]] = {
    "users": User,
    "conversations": Conversation,
    "favorites": Favorite,
    "tickets": Ticket,
}

INDEX_FILE = "indexes.json"


class Database:
    def __init__(
        self,
        base_dir: Path,
        config: Optional[StorageConfig] = None,
        backups_dir: Optional[Path] = None,
    ) -> None:
        self.config = config or StorageConfig()
        self.base_dir = Path(base_dir)
        self.started_at = now_ms()

        self.store = RecordStore(self.base_dir)
        self.store.ensure_directories()
        self.index = EntityIndex(self.base_dir / INDEX_FILE)
        self.index.load()

        self.cache = EntityCache(self.config.cache_capacity)
        self.tracker = AccessTracker(self.config.access_history)
        self.predictor = Predictor(
            self.tracker,
            min_accesses=self.config.min_accesses,
            confidence_cap=self.config.confidence_cap,
        )
        self.prefetcher = Prefetcher(
            self.predictor,
            self.load_predicted,
            window_ms=self.config.prefetch_window_ms,
            min_confidence=self.config.prefetch_confidence,
        )

        self.users = UserManager(self)
        self.conversations = ConversationManager(self)
        self.favorites = FavoriteManager(self)
        self.tickets = TicketManager(self)
        self.aggregator = Aggregator(self)
        self.search = SearchService(self)
        self.outbox = Outbox(self.base_dir / "outbox.json")
        self.backups = BackupManager(
            self, Path(backups_dir) if backups_dir else self.base_dir.parent / "backups"
        )
        logger.info("Database ready at %s", self.base_dir)

    # ---- Read / write path ----

    def _parse(self, kind: str, key: str, data: dict) -> Optional[BaseModel]:
        try:
            return ENTITY_MODELS[kind].model_validate(data)
        except ValidationError as e:
            logger.error("Record %s/%s does not match its schema: %s", kind, key, e)
            return None

    def get(self, kind: str, key: str) -> Optional[BaseModel]:
        """Exact cache, then predictive cache, then disk.

        None if absent. A key that cannot name a record (path separators,
        ``..``) is absent too; writes with such a key raise ``InvalidKey``.
        """
        ckey = cache_key(kind, key)

        entity = self.cache.get_exact(ckey)
        if entity is None:
            entity = self.cache.get_predicted(ckey)
        if entity is None:
            self.cache.record_miss()
            try:
                data = self.store.read(kind, key)
            except CorruptRecord as e:
                logger.error("Corrupt record treated as missing: %s", e)
                return None
            except InvalidKey as e:
                logger.warning("Lookup with invalid key: %s", e)
                return None
            if data is None:
                return None
            entity = self._parse(kind, key, data)
            if entity is None:
                return None
            self.cache.put(ckey, entity)

        self.tracker.record(ckey)
        return entity

    def put(self, kind: str, key: str, entity: BaseModel, index_id: Optional[str] = None) -> None:
        """Write-through: disk first, then cache and index."""
        self.store.write(kind, key, entity.model_dump(mode="json"))
        self.cache.put(cache_key(kind, key), entity)
        self.index.touch(kind, index_id or key, now_ms())

    def delete(self, kind: str, key: str, index_id: Optional[str] = None) -> bool:
        try:
            check_key(kind, key)
        except InvalidKey:
            return False
        self.cache.discard(cache_key(kind, key))
        self.index.remove(kind, index_id or key)
        return self.store.delete(kind, key)

    def scan(self, kind: str, prefix: str = "") -> list:
        """Parse every record of a kind straight from disk (bypasses the cache)."""
        out = []
        for key, data in self.store.iter_records(kind, prefix):
            entity = self._parse(kind, key, data)
            if entity is not None:
                out.append(entity)
        return out

    def load_predicted(self, ckey: str) -> Optional[BaseModel]:
        """Prefetch hook: warm the predictive tier for ``ckey``."""
        if ckey in self.cache:
            return self.cache.peek(ckey)
        kind, key = split_key(ckey)
        if kind not in ENTITY_MODELS:
            return None
        data = self.store.read(kind, key)
        if data is None:
            return None
        entity = self._parse(kind, key, data)
        if entity is not None:
            self.cache.put_predicted(ckey, entity)
        return entity

    # ---- Background work ----

    def run_prediction_cycle(self, at_ms: Optional[int] = None) -> list[str]:
        self.predictor.run()
        return self.prefetcher.run(at_ms)

    def cleanup(self, at_ms: Optional[int] = None) -> int:
        now = at_ms if at_ms is not None else now_ms()
        cutoff = now - self.config.stale_after_seconds * 1000
        dropped = self.tracker.forget_stale(cutoff)
        self.predictor.forget_stale()
        evicted = self.cache.discard_predicted(lambda ckey: ckey not in self.tracker)
        if evicted:
            logger.debug("Dropped %d stale prefetched record(s)", evicted)
        self.index.save()
        if dropped:
            logger.info("Dropped %d stale access pattern(s)", dropped)
        return dropped

    def close(self) -> None:
        self.index.save()
        logger.info("Database closed")
