from adaptive_cache.common.cache import ExpirationIndex
from adaptive_cache.common.cache.expiration_index import DEFAULT_INDEX_NAME


def test_default_name(store):
    assert ExpirationIndex(store).name == DEFAULT_INDEX_NAME == "expirationTimes"


def test_one_record_per_key(store):
    index = ExpirationIndex(store)
    index.upsert("a", 100)
    index.upsert("a", 250)

    assert index.count() == 1
    assert index.score("a") == 250


def test_range_is_earliest_first(store):
    index = ExpirationIndex(store)
    index.upsert("late", 300)
    index.upsert("early", 100)
    index.upsert("middle", 200)

    assert index.range_by_score() == ["early", "middle", "late"]
    assert index.range_by_score(150, 300, with_scores=True) == [("middle", 200.0), ("late", 300.0)]


def test_range_is_a_snapshot(store):
    index = ExpirationIndex(store)
    for i in range(5):
        index.upsert(f"k{i}", i)

    snapshot = index.range_by_score()
    for key in snapshot:
        index.remove(key)

    assert snapshot == ["k0", "k1", "k2", "k3", "k4"]
    assert index.count() == 0


def test_remove_range_by_score(store):
    index = ExpirationIndex(store, "custom")
    for i in range(5):
        index.upsert(f"k{i}", i * 10)

    assert index.remove_range_by_score(float("-inf"), 20) == 3
    assert index.range_by_score() == ["k3", "k4"]
    assert store.index_count("custom") == 2
