# tests/test_store.py
import threading

import pytest

from config import Settings
from errors import AlreadyExists, NotFound
from models import StringRecord, sha256_hex
from store import MemoryStore, SQLStore, StringStore, build_store


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryStore()
    return SQLStore("sqlite://")


def test_put_and_lookup(store):
    record = store.put(StringRecord.create("racecar"))
    assert store.get_by_value("racecar") == record
    assert store.get_by_id(sha256_hex("racecar")) == record
    assert store.get_by_value("missing") is None
    assert store.get_by_id("0" * 64) is None
    assert len(store) == 1


def test_put_duplicate_value(store):
    store.put(StringRecord.create("dup"))
    with pytest.raises(AlreadyExists):
        store.put(StringRecord.create("dup"))
    assert len(store) == 1


def test_delete_removes_both_indices(store):
    store.put(StringRecord.create("gone"))
    deleted = store.delete("gone")
    assert deleted.value == "gone"
    assert store.get_by_value("gone") is None
    assert store.get_by_id(sha256_hex("gone")) is None
    with pytest.raises(NotFound):
        store.delete("gone")
    # value can be stored again after deletion
    store.put(StringRecord.create("gone"))


def test_all_in_insertion_order(store):
    for value in ["b", "a", "c"]:
        store.put(StringRecord.create(value))
    assert [r.value for r in store.all()] == ["b", "a", "c"]


def test_concurrent_puts_of_same_value(store):
    errors = []

    def worker():
        try:
            store.put(StringRecord.create("race"))
        except AlreadyExists as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(store) == 1
    assert len(errors) == 7


def test_build_store():
    assert isinstance(build_store(Settings(store_backend="memory")), MemoryStore)
    assert isinstance(build_store(Settings(store_backend="sql", database_url="sqlite://")), SQLStore)
    with pytest.raises(ValueError):
        build_store(Settings(store_backend="redis"))


def test_reads_during_writes(store):
    errors = []
    done = threading.Event()

    def reader():
        while not done.is_set():
            try:
                store.get_by_value("value-0")
                store.all()
            except Exception as e:
                errors.append(e)

    def writer():
        for i in range(200):
            try:
                store.put(StringRecord.create(f"value-{i}"))
            except Exception as e:
                errors.append(e)
        done.set()

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    writer()
    for t in readers:
        t.join()
    assert errors == []
    assert len(store) == 200


def test_incomplete_backend_cannot_be_built():
    class ReadOnlyStore(StringStore):
        def get_by_id(self, record_id):
            return None

    with pytest.raises(TypeError):
        ReadOnlyStore()
