"""Tests for the audio cache."""

from readaloud.cache import AudioCache, cache_key


def test_key_deterministic():
    assert cache_key("Hello", "v", 1.0, 1.0) == cache_key("Hello", "v", 1.0, 1.0)


def test_key_ignores_surrounding_whitespace():
    assert cache_key("  Hello \n", "v", 1.0, 1.0) == cache_key("Hello", "v", 1.0, 1.0)


def test_key_varies_with_each_parameter():
    base = cache_key("Hello", "v", 1.0, 1.0)
    assert cache_key("Hullo", "v", 1.0, 1.0) != base
    assert cache_key("Hello", "w", 1.0, 1.0) != base
    assert cache_key("Hello", "v", 1.5, 1.0) != base
    assert cache_key("Hello", "v", 1.0, 0.9) != base


def test_put_get():
    cache = AudioCache()
    cache.put("k", b"audio")
    assert cache.get("k") == b"audio"
    assert "k" in cache
    assert cache.get("missing") is None


def test_first_writer_wins():
    cache = AudioCache()
    cache.put("k", b"first")
    cache.put("k", b"second")
    assert cache.get("k") == b"first"
    assert len(cache) == 1


def test_evicts_oldest_beyond_capacity():
    cache = AudioCache(capacity=3)
    for i in range(4):
        cache.put(str(i), bytes([i]))
    assert len(cache) == 3
    assert "0" not in cache
    assert all(str(i) in cache for i in (1, 2, 3))


def test_get_does_not_refresh_order():
    cache = AudioCache(capacity=2)
    cache.put("a", b"a")
    cache.put("b", b"b")
    cache.get("a")
    cache.put("c", b"c")
    assert "a" not in cache


def test_default_capacity():
    assert AudioCache().capacity == 200


def test_clear():
    cache = AudioCache()
    cache.put("k", b"audio")
    cache.clear()
    assert len(cache) == 0
