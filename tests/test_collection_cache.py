import threading

import pytest

from photoferry.collection_cache import CollectionCache


def mock_save_fn(coll, ids):
    if not ids:
        raise ValueError("no new items")
    return coll + "|" + ",".join(ids)


def test_new_collection():
    cc = CollectionCache(5, mock_save_fn)
    cc.new_collection("key1", "coll1", ["id1", "id2"])
    c = cc.get_collections()["key1"]
    assert c.collection == "coll1"
    assert len(c.items()) == 2
    cc.close()


def test_add_items_by_repeated_calls():
    calls = []

    def wrapped(coll, ids):
        calls.append(list(ids))
        return mock_save_fn(coll, ids)

    cc = CollectionCache(2, wrapped)
    cc.new_collection("key1", "coll1", None)
    assert cc.add_id_to_collection("key1", "coll1", "id1") is True
    assert cc.add_id_to_collection("key1", "coll1", "id2") is True
    assert cc.add_id_to_collection("key1", "coll1", "id3") is True
    cc.close()
    assert calls
    assert calls[0] == ["id1", "id2"]
    assert cc.get_collection("key1")[1] == ["id1", "id2", "id3"]


def test_multiple_collections_exceeding_cache_size():
    count = {}

    def wrapped(coll, ids):
        count[coll] = count.get(coll, 0) + 1
        return coll

    cc = CollectionCache(2, wrapped)
    cc.new_collection("key1", "coll1", ["id1", "id2"])
    cc.new_collection("key2", "coll2", ["id3", "id4"])

    cc.add_id_to_collection("key1", "coll1", "id5")
    assert count.get("coll1", 0) == 0
    cc.add_id_to_collection("key1", "coll1", "id6")
    assert count.get("coll1", 0) == 1
    cc.add_id_to_collection("key1", "coll1", "id7")
    assert count.get("coll1", 0) == 1
    cc.add_id_to_collection("key2", "coll2", "id8")
    assert count.get("coll2", 0) == 0
    cc.close()

    coll1, ids1 = cc.get_collection("key1")
    assert coll1 == "coll1"
    assert len(ids1) == 5

    coll2, ids2 = cc.get_collection("key2")
    assert coll2 == "coll2"
    assert len(ids2) == 3

    assert count["coll1"] >= 2
    assert count["coll2"] >= 1


def test_concurrent_access():
    cc = CollectionCache(10, lambda coll, ids: coll)
    cc.new_collection("testKey", "testColl", None)

    threads = [
        threading.Thread(
            target=cc.add_id_to_collection, args=("testKey", "testColl", f"asset{n}")
        )
        for n in range(50)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    result = cc.get_collection("testKey")
    assert result is not None
    _, ids = result
    assert len(ids) == 50
    cc.close()


def test_add_id_returns_false_for_duplicate():
    cc = CollectionCache(10, lambda coll, ids: coll)
    assert cc.add_id_to_collection("k", "c", "a") is True
    assert cc.add_id_to_collection("k", "c", "a") is False
    assert cc.get_collection("k") == ("c", ["a"])


def test_new_collection_on_existing_adds_ids():
    cc = CollectionCache(10, lambda coll, ids: coll)
    cc.new_collection("k", "c", ["a"])
    cc.new_collection("k", "ignored", ["b", "a"])
    assert cc.get_collection("k") == ("c", ["a", "b"])
    assert cc.get_collections()["k"].new_items() == ["b"]


def test_save_updates_collection_object():
    cc = CollectionCache(2, mock_save_fn)
    cc.add_id_to_collection("k", "c", "a")
    cc.add_id_to_collection("k", "c", "b")
    coll, _ = cc.get_collection("k")
    assert coll == "c|a,b"
    assert cc.get_collections()["k"].new_items() == []


def test_failed_save_keeps_collection_and_close_flushes():
    saved = []

    def saver(coll, ids):
        saved.append(list(ids))
        return mock_save_fn(coll, ids)

    with CollectionCache(5, saver) as cc:
        cc.new_collection("k", "c", ["x"])
    assert saved == [[]]
    assert cc.get_collection("k") == ("c", ["x"])


def test_unknown_key():
    cc = CollectionCache(5, mock_save_fn)
    assert cc.get_collection("missing") is None


def test_closed_cache_rejects_changes():
    cc = CollectionCache(5, lambda coll, ids: coll)
    cc.close()
    with pytest.raises(RuntimeError):
        cc.add_id_to_collection("k", "c", "a")
    with pytest.raises(RuntimeError):
        cc.new_collection("k", "c", ["a"])