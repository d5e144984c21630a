import pytest

from dumpnote.domain.cache import IdentityCache


def test_lookup_by_id_and_key():
    c = IdentityCache(4)
    c.put(0, "g0", "user0")
    assert c.get(0) == "user0"
    assert c.get_by_key("g0") == "user0"
    assert c.get(1) is None
    assert c.get_by_key("nope") is None


def test_lru_eviction_drops_both_indexes():
    c = IdentityCache(2)
    c.put(0, "g0", "a")
    c.put(1, "g1", "b")
    c.get(0)  # 1 is now least recently used
    c.put(2, "g2", "c")
    assert len(c) == 2
    assert c.get(1) is None
    assert c.get_by_key("g1") is None
    assert c.get_by_key("g0") == "a"


def test_invalidate_drops_both_indexes():
    c = IdentityCache(2)
    c.put(5, "g5", "x")
    c.invalidate(5)
    assert c.get(5) is None
    assert c.get_by_key("g5") is None
    c.invalidate(5)  # absent ids are fine


def test_rekeying_replaces_old_entries():
    c = IdentityCache(4)
    c.put(1, "old", "v1")
    c.put(1, "new", "v2")
    assert c.get_by_key("old") is None
    assert c.get_by_key("new") == "v2"
    c.put(2, "new", "v3")
    assert c.get(1) is None
    assert c.get_by_key("new") == "v3"


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        IdentityCache(0)


def test_put_after_invalidation_is_skipped():
    c = IdentityCache(4)
    gen = c.generation
    c.invalidate(7)  # a write lands while the row is being read
    assert c.put(7, "g7", "stale", gen) is False
    assert c.get(7) is None
    assert c.get_by_key("g7") is None
    assert c.put(7, "g7", "fresh", c.generation) is True
    assert c.get(7) == "fresh"
