"""
Tests for the cache stores and the @cacheable / @cache_evict decorators.
"""

import time

import pytest
from pydantic import BaseModel

from bookapi.services.cache import (
    MemoryCacheStore,
    NullCacheStore,
    cache_evict,
    cacheable,
    get_cache_store,
    make_cache_key,
    scope_ttl,
)


class Item(BaseModel):
    id: int
    name: str


class Catalogue:
    """Toy service counting how often the underlying lookup runs."""

    def __init__(self):
        self.calls = 0
        self.items = {1: "one", 2: "two"}

    @cacheable("items", key="{item_id}", model=Item)
    def find(self, item_id: int):
        self.calls += 1
        name = self.items.get(item_id)
        return Item(id=item_id, name=name) if name else None

    @cache_evict("items")
    def rename(self, item_id: int, name: str) -> None:
        self.items[item_id] = name

    @cache_evict("items")
    def fail(self) -> None:
        raise RuntimeError("boom")


class TestMemoryCacheStore:
    def test_set_get_delete(self):
        store = MemoryCacheStore()
        store.set("book:1", "payload", ttl=60)

        assert store.get("book:1") == "payload"
        assert store.delete("book:1") is True
        assert store.get("book:1") is None

    def test_entries_expire(self):
        store = MemoryCacheStore()
        store.set("book:1", "payload", ttl=1)

        time.sleep(1.1)

        assert store.get("book:1") is None

    def test_delete_scope_leaves_other_scopes(self):
        store = MemoryCacheStore()
        store.set("book:1", "a", ttl=60)
        store.set("book:2", "b", ttl=60)
        store.set("books:0-20-title,asc", "c", ttl=60)

        assert store.delete_scope("book") == 2
        assert store.get("books:0-20-title,asc") == "c"

    def test_stats(self):
        store = MemoryCacheStore()
        store.set("k:1", "v", ttl=60)
        store.get("k:1")
        store.get("k:2")

        stats = store.stats()
        assert stats["backend"] == "memory"
        assert (stats["hits"], stats["misses"], stats["keys"]) == (1, 1, 1)


def test_null_store_always_misses():
    store = NullCacheStore()
    store.set("k", "v", ttl=60)

    assert store.get("k") is None


def test_make_cache_key():
    assert make_cache_key("book", 1) == "book:1"
    assert make_cache_key("books", page=0, size=20) == "books:page=0:size=20"


def test_scope_ttls():
    assert scope_ttl("books") == 7200
    assert scope_ttl("book") == 3600
    assert scope_ttl("booksByCategory") == 900


class TestDecorators:
    def test_second_call_is_a_hit(self):
        catalogue = Catalogue()

        first = catalogue.find(1)
        second = catalogue.find(1)

        assert first == second == Item(id=1, name="one")
        assert catalogue.calls == 1

    def test_none_is_not_cached(self):
        catalogue = Catalogue()

        assert catalogue.find(3) is None
        assert catalogue.find(3) is None
        assert catalogue.calls == 2
        assert get_cache_store().get("items:3") is None

    def test_evict_after_success(self):
        catalogue = Catalogue()
        catalogue.find(1)

        catalogue.rename(1, "uno")

        assert catalogue.find(1).name == "uno"
        assert catalogue.calls == 2

    def test_no_evict_on_failure(self):
        catalogue = Catalogue()
        catalogue.find(1)

        with pytest.raises(RuntimeError):
            catalogue.fail()

        assert get_cache_store().get("items:1") is not None
