"""Tests for ExpansionCache — LRU bound, fingerprint checks and pruning."""

import pytest

from tzserver.core.domain_types import ExpansionKey
from tzserver.core.expansion_cache import ExpansionCache

NY_2020 = ExpansionKey("America/New_York", "2020-01-01T00:00:00Z", "2021-01-01T00:00:00Z")
NY_2021 = ExpansionKey("America/New_York", "2021-01-01T00:00:00Z", "2022-01-01T00:00:00Z")
LONDON_2020 = ExpansionKey("Europe/London", "2020-01-01T00:00:00Z", "2021-01-01T00:00:00Z")


def test_get_missing_returns_none():
    assert ExpansionCache().get(NY_2020) is None


def test_put_then_get():
    cache = ExpansionCache()
    cache.put(NY_2020, ["2020-03-08"], "fp1")
    assert cache.get(NY_2020, "fp1") == ["2020-03-08"]


def test_put_overwrites():
    cache = ExpansionCache()
    cache.put(NY_2020, "old", "fp1")
    cache.put(NY_2020, "new", "fp1")
    assert cache.get(NY_2020, "fp1") == "new"
    assert len(cache) == 1


def test_mismatched_fingerprint_evicts_entry():
    cache = ExpansionCache()
    cache.put(NY_2020, "value", "fp1")
    assert cache.get(NY_2020, "fp2") is None
    assert len(cache) == 0


def test_get_without_fingerprint_skips_check():
    cache = ExpansionCache()
    cache.put(NY_2020, "value", "fp1")
    assert cache.get(NY_2020) == "value"


def test_lru_bound_evicts_least_recently_used():
    cache = ExpansionCache(max_entries=2)
    cache.put(NY_2020, "a")
    cache.put(NY_2021, "b")
    cache.get(NY_2020)
    cache.put(LONDON_2020, "c")
    assert len(cache) == 2
    assert cache.get(NY_2021) is None
    assert cache.get(NY_2020) == "a"
    assert cache.get(LONDON_2020) == "c"


def test_rejects_non_positive_bound():
    with pytest.raises(ValueError):
        ExpansionCache(max_entries=0)


def test_prune_drops_removed_and_changed_identifiers():
    cache = ExpansionCache()
    cache.put(NY_2020, "a", "ny-old")
    cache.put(NY_2021, "b", "ny-old")
    cache.put(LONDON_2020, "c", "london")
    pruned = cache.prune({"America/New_York": "ny-new"})
    assert pruned == 3
    assert len(cache) == 0


def test_prune_keeps_unchanged_definitions():
    cache = ExpansionCache()
    cache.put(NY_2020, "a", "ny")
    cache.put(LONDON_2020, "c", "london-old")
    pruned = cache.prune({"America/New_York": "ny", "Europe/London": "london-new"})
    assert pruned == 1
    assert cache.get(NY_2020, "ny") == "a"


def test_clear():
    cache = ExpansionCache()
    cache.put(NY_2020, "a")
    cache.clear()
    assert len(cache) == 0
