from concurrent.futures import ThreadPoolExecutor

from autowire.cache import ComputeCache


def test_value_is_computed_once():
    cache = ComputeCache()
    calls = []

    def compute(key):
        calls.append(key)
        return key.upper()

    assert cache.get_or_compute("a", compute) == "A"
    assert cache.get_or_compute("a", compute) == "A"
    assert cache.get_or_compute("b", compute) == "B"
    assert calls == ["a", "b"]


def test_first_stored_value_wins():
    cache = ComputeCache()

    def outer(key):
        cache.get_or_compute(key, lambda _: "inner")
        return "outer"

    assert cache.get_or_compute("k", outer) == "inner"
    assert cache.get_or_compute("k", lambda _: "later") == "inner"


def test_concurrent_callers_observe_the_same_value():
    cache = ComputeCache()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda i: cache.get_or_compute("k", lambda _: object()), range(200)))

    assert all(r is results[0] for r in results)
