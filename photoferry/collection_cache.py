"""Cache of collections (albums, tags) whose new members are saved in batches."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

SaveFn = Callable[[T, list[str]], T]

_log = logging.getLogger(__name__)


class Collection(Generic[T]):
    """A collection object with the ids it holds and those not yet saved."""

    def __init__(
        self,
        collection: T,
        max_cache_size: int,
        save_fn: SaveFn,
        initial_ids: list[str] | None = None,
        new_ids: list[str] | None = None,
    ) -> None:
        self.collection = collection
        self._items: dict[str, None] = dict.fromkeys(initial_ids or [])
        self._new_items: dict[str, None] = dict.fromkeys(new_ids or [])
        self._save_fn = save_fn
        self._max_cache_size = max_cache_size

    def items(self) -> list[str]:
        return list(self._items)

    def new_items(self) -> list[str]:
        return list(self._new_items)

    def _save(self) -> None:
        try:
            self.collection = self._save_fn(self.collection, list(self._new_items))
        except Exception as exc:  # the saver reports its own failures
            _log.debug("saving collection failed: %s", exc)

    def _add_id(self, item_id: str) -> bool:
        if item_id in self._items:
            return False
        self._items[item_id] = None
        self._new_items[item_id] = None
        if len(self._new_items) >= self._max_cache_size:
            self._save()
            # start afresh even if the save failed, to avoid retrying the same ids
            self._new_items = {}
        return True

    def _close(self) -> None:
        self._save()


class CollectionCache(Generic[T]):
    """Keeps collections by key and flushes new ids through `save_fn` in batches."""

    def __init__(self, max_cache_size: int, save_fn: SaveFn) -> None:
        self._max_cache_size = max_cache_size
        self._save_fn = save_fn
        self._collections: dict[str, Collection[T]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> CollectionCache[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("collection cache is closed")

    def new_collection(self, key: str, coll: T, ids: list[str] | None) -> None:
        """Register a collection with its known ids, or add the ids to an existing one."""
        with self._lock:
            self._check_open()
            existing = self._collections.get(key)
            if existing is None:
                self._collections[key] = Collection(
                    coll, self._max_cache_size, self._save_fn, list(ids or [])
                )
            else:
                for item_id in ids or []:
                    existing._add_id(item_id)

    def add_id_to_collection(self, key: str, coll: T, item_id: str) -> bool:
        """Add an id to a collection, creating it if needed; True if the id is new."""
        with self._lock:
            self._check_open()
            c = self._collections.get(key)
            if c is None:
                c = Collection(coll, self._max_cache_size, self._save_fn)
                self._collections[key] = c
            return c._add_id(item_id)

    def get_collections(self) -> dict[str, Collection[T]]:
        with self._lock:
            return dict(self._collections)

    def get_collection(self, key: str) -> tuple[T, list[str]] | None:
        """Return the collection object and its ids, or None when the key is unknown."""
        with self._lock:
            c = self._collections.get(key)
            if c is None:
                return None
            return c.collection, c.items()

    def close(self) -> None:
        """Save every collection's pending ids; the cache accepts no more changes."""
        with self._lock:
            if self._closed:
                return
            for c in self._collections.values():
                c._close()
            self._closed = True