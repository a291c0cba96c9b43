import threading

import pytest

from kvtool_lib.errors import ConfigError, NoSuchContainerError, NotFoundError, StorageError
from kvtool_lib.storage import EmbeddedStore


@pytest.fixture
def store(db_path):
    s = EmbeddedStore()
    s.init([db_path])
    yield s
    s.close()


def test_init_requires_path():
    with pytest.raises(ConfigError):
        EmbeddedStore().init([])
    with pytest.raises(ConfigError):
        EmbeddedStore().init([""])


def test_init_creates_default_container(store):
    assert "default" in store.list_keys("")
    assert store.registry.exists("default")


def test_init_twice_fails(store, tmp_path):
    with pytest.raises(StorageError):
        store.init([str(tmp_path / "other.db")])


def test_put_get_roundtrip(store):
    store.put("users/42", b"\x00\x01binary\xff")
    assert store.get("users/42") == b"\x00\x01binary\xff"
    store.put("users/42", bytearray(b"replaced"))
    assert store.get("users/42") == b"replaced"


def test_empty_value(store):
    store.put("k", b"")
    assert store.get("k") == b""


def test_get_returns_fresh_copy(store):
    store.put("k", b"abc")
    v1 = store.get("k")
    v2 = store.get("k")
    assert v1 == v2
    assert isinstance(v1, bytes)


def test_put_rejects_non_bytes(store):
    with pytest.raises(TypeError):
        store.put("k", "text")


def test_key_without_separator_goes_to_default(store):
    store.put("plain", b"v")
    assert store.list_keys("default") == ["plain"]
    assert store.get("default/plain") == b"v"


def test_leading_separator_goes_to_default(store):
    store.put("/odd", b"v")
    assert "/odd" in store.list_keys("default")


def test_container_isolation(store):
    store.put("a/x", b"v1")
    store.put("b/x", b"v2")
    assert store.get("a/x") == b"v1"
    assert store.get("b/x") == b"v2"


def test_put_creates_container_lazily(store):
    assert "fresh" not in store.list_keys("")
    store.put("fresh/item", b"v")
    assert "fresh" in store.list_keys("")
    assert store.registry.exists("fresh")


def test_get_missing(store):
    with pytest.raises(NotFoundError):
        store.get("default/nothing")
    with pytest.raises(NotFoundError):
        store.get("nocontainer/item")
    # NotFoundError keeps the KeyError idiom
    with pytest.raises(KeyError):
        store.get("nothing")


def test_delete_is_idempotent(store):
    store.put("c/x", b"v")
    store.delete("c/x")
    store.delete("c/x")
    store.delete("nocontainer/x")
    with pytest.raises(NotFoundError):
        store.get("c/x")


def test_list_items_sorted(store):
    for name in ["b", "a", "c"]:
        store.put(f"letters/{name}", b"v")
    assert store.list_keys("letters") == ["a", "b", "c"]


def test_list_missing_container_fails(store):
    with pytest.raises(NoSuchContainerError):
        store.list_keys("missing")


def test_list_empty_container(store):
    store.create_container("empty")
    assert store.list_keys("empty") == []


def test_delete_tree_removes_descendants(store):
    store.put("c/x", b"v")
    store.put("c/y", b"v")
    store.put("d/x", b"keep")
    store.delete_tree("c")
    with pytest.raises(NotFoundError):
        store.get("c/x")
    with pytest.raises(NotFoundError):
        store.get("c/y")
    assert "c" not in store.list_keys("")
    assert store.registry.exists("c") is False
    assert store.get("d/x") == b"keep"


def test_delete_tree_missing_is_noop(store):
    store.delete_tree("never-created")


def test_put_after_delete_tree_recreates(store):
    store.put("c/x", b"v")
    store.delete_tree("c")
    store.put("c/y", b"w")
    assert store.list_keys("c") == ["y"]


def test_stale_registry_is_recovered(tmp_path):
    path = str(tmp_path / "shared.db")
    s1 = EmbeddedStore()
    s1.init([path])
    s2 = EmbeddedStore()
    s2.init([path])
    try:
        s1.put("c/x", b"v")
        # dropped through another handle, s1 still believes it exists
        s2.delete_tree("c")
        assert s1.registry.exists("c")
        s1.put("c/y", b"w")
        assert s1.list_keys("c") == ["y"]
        assert s2.get("c/y") == b"w"
    finally:
        s1.close()
        s2.close()


def test_data_persists_across_reopen(tmp_path):
    path = str(tmp_path / "kv.db")
    s = EmbeddedStore()
    s.init([path])
    s.put("users/1", b"alice")
    s.close()

    s = EmbeddedStore()
    s.init([path])
    try:
        assert s.get("users/1") == b"alice"
        # registry is populated from the file at open time
        assert s.registry.names() == ["default", "users"]
    finally:
        s.close()


def test_init_creates_parent_directories(tmp_path):
    s = EmbeddedStore()
    s.init([str(tmp_path / "nested" / "dir" / "kv.db")])
    s.close()
    assert (tmp_path / "nested" / "dir" / "kv.db").exists()


def test_corrupt_file_raises_storage_error(tmp_path):
    path = tmp_path / "corrupt.db"
    path.write_bytes(b"garbage!" * 512)
    s = EmbeddedStore()
    with pytest.raises(StorageError):
        s.init([str(path)])


def test_closed_store(tmp_path):
    s = EmbeddedStore()
    s.init([str(tmp_path / "kv.db")])
    s.close()
    s.close()
    with pytest.raises(StorageError):
        s.get("k")
    with pytest.raises(StorageError):
        s.put("k", b"v")


def test_uninitialised_store():
    with pytest.raises(StorageError):
        EmbeddedStore().list_keys("")


def test_context_manager_closes(tmp_path):
    with EmbeddedStore() as s:
        s.init([str(tmp_path / "kv.db")])
        s.put("k", b"v")
    with pytest.raises(StorageError):
        s.get("k")


def test_concurrent_writers(store):
    errors = []

    def worker(n):
        try:
            for i in range(25):
                store.put(f"t{n}/{i:02d}", str(i).encode())
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    for n in range(4):
        assert len(store.list_keys(f"t{n}")) == 25
    assert store.get("t3/07") == b"7"
