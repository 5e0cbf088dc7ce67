"""Tests for the metadata, blob and fragment stores across backends."""

import time

import pytest

from fragments.exceptions import ConfigurationError, InvalidArgumentError
from fragments.repositories.blob_store import FileBlobStore, MemoryBlobStore
from fragments.repositories.fragment_store import FragmentStore, create_fragment_store
from fragments.repositories.metadata_store import (
    FragmentRecord,
    MemoryMetadataStore,
    SqliteMetadataStore,
)
from fragments.utils import get_current_timestamp


def make_record(fragment_id, owner_id="u1", type="text/plain", size=0):
    now = get_current_timestamp()
    return FragmentRecord(
        id=fragment_id,
        owner_id=owner_id,
        type=type,
        size=size,
        created=now,
        updated=now,
    )


class TestMetadataStore:
    """Metadata store behaviour, run against every backend."""

    def test_read_missing_returns_none(self, store):
        assert store.metadata.read("missing") is None

    def test_write_then_read(self, store):
        record = make_record("f1")
        store.metadata.write("f1", record)

        got = store.metadata.read("f1")
        assert got is not None
        assert got.id == "f1"
        assert got.owner_id == "u1"
        assert got.type == "text/plain"
        assert got.size == 0
        assert got.created == record.created
        assert got.updated == record.updated

    def test_write_persists_timestamps_as_given(self, store):
        record = make_record("f1")
        record.created = "2020-01-01T00:00:00.000000+00:00"
        record.updated = "2021-01-01T00:00:00.000000+00:00"
        store.metadata.write("f1", record)

        got = store.metadata.read("f1")
        assert got.created == "2020-01-01T00:00:00.000000+00:00"
        assert got.updated == "2021-01-01T00:00:00.000000+00:00"

    def test_rewrite_keeps_latest_fields(self, store):
        first = make_record("f1", size=1)
        store.metadata.write("f1", first)

        time.sleep(0.001)
        second = make_record("f1", type="text/markdown", size=2)
        second.created = first.created
        store.metadata.write("f1", second)

        got = store.metadata.read("f1")
        assert got.type == "text/markdown"
        assert got.size == 2
        assert got.updated >= first.updated

    def test_write_requires_id(self, store):
        with pytest.raises(InvalidArgumentError):
            store.metadata.write("", make_record("f1"))
        with pytest.raises(InvalidArgumentError):
            store.metadata.write(None, make_record("f1"))

    def test_write_requires_record(self, store):
        with pytest.raises(InvalidArgumentError):
            store.metadata.write("some-id", None)

    def test_write_rejects_mismatched_record_id(self, store):
        with pytest.raises(InvalidArgumentError):
            store.metadata.write("f1", make_record("other-id"))

        assert store.metadata.read("f1") is None
        assert store.metadata.list_by_owner("u1") == []

    def test_read_requires_id(self, store):
        with pytest.raises(InvalidArgumentError):
            store.metadata.read("")

    def test_returned_record_is_a_copy(self, store):
        store.metadata.write("f1", make_record("f1"))

        got = store.metadata.read("f1")
        got.size = 999

        assert store.metadata.read("f1").size == 0

    def test_list_by_owner_unknown_owner_is_empty(self, store):
        assert store.metadata.list_by_owner("nobody") == []

    def test_list_by_owner_isolates_owners(self, store):
        store.metadata.write("a1", make_record("a1", owner_id="A"))
        store.metadata.write("a2", make_record("a2", owner_id="A"))
        store.metadata.write("b1", make_record("b1", owner_id="B"))

        assert sorted(store.metadata.list_by_owner("A")) == ["a1", "a2"]
        assert store.metadata.list_by_owner("B") == ["b1"]

    def test_rewrite_under_new_owner_moves_index_entry(self, store):
        store.metadata.write("f1", make_record("f1", owner_id="A"))
        store.metadata.write("f1", make_record("f1", owner_id="B"))

        assert store.metadata.list_by_owner("A") == []
        assert store.metadata.list_by_owner("B") == ["f1"]

    def test_delete_removes_record_and_index(self, store):
        store.metadata.write("f1", make_record("f1"))

        assert store.metadata.delete("f1") is True
        assert store.metadata.read("f1") is None
        assert store.metadata.list_by_owner("u1") == []

    def test_delete_missing_returns_false_repeatedly(self, store):
        assert store.metadata.delete("missing") is False
        assert store.metadata.delete("missing") is False

    def test_delete_twice(self, store):
        store.metadata.write("f1", make_record("f1"))

        assert store.metadata.delete("f1") is True
        assert store.metadata.delete("f1") is False


class TestBlobStore:
    """Blob store behaviour, run against every backend."""

    def test_read_missing_returns_none(self, store):
        assert store.blobs.read("no-data") is None

    def test_write_then_read_returns_equal_copy(self, store):
        payload = b"hello world"
        store.blobs.write("f1", payload)

        got = store.blobs.read("f1")
        assert got == payload
        assert got is not payload

    def test_write_copies_caller_buffer(self, store):
        payload = bytearray(b"hello")
        store.blobs.write("f1", payload)

        payload[0:5] = b"HELLO"

        assert store.blobs.read("f1") == b"hello"

    def test_reads_are_independent(self, store):
        store.blobs.write("f1", b"hello")

        first = bytearray(store.blobs.read("f1"))
        first[0:1] = b"J"

        assert store.blobs.read("f1") == b"hello"

    def test_accepts_memoryview(self, store):
        store.blobs.write("f1", memoryview(b"view"))
        assert store.blobs.read("f1") == b"view"

    def test_overwrites_previous_data(self, store):
        store.blobs.write("f1", b"first")
        store.blobs.write("f1", b"second")

        assert store.blobs.read("f1") == b"second"

    @pytest.mark.parametrize("payload", ["not-a-buffer", None, 42, [1, 2]])
    def test_write_rejects_non_buffers(self, store, payload):
        with pytest.raises(InvalidArgumentError):
            store.blobs.write("has-id", payload)

    def test_write_requires_id(self, store):
        with pytest.raises(InvalidArgumentError):
            store.blobs.write("", b"data")

    def test_read_requires_id(self, store):
        with pytest.raises(InvalidArgumentError):
            store.blobs.read("")

    def test_delete_is_idempotent(self, store):
        store.blobs.write("f1", b"data")

        assert store.blobs.delete("f1") is True
        assert store.blobs.delete("f1") is False
        assert store.blobs.read("f1") is None


class TestFragmentStore:
    """End-to-end scenarios through the combined store."""

    def test_write_and_read_data(self, store):
        store.write_fragment("f1", make_record("f1"))
        store.write_fragment_data("f1", b"hello world")

        assert store.read_fragment_data("f1") == b"hello world"

    def test_delete_fragment_removes_metadata_and_data(self, store):
        store.write_fragment("f1", make_record("f1"))
        store.write_fragment_data("f1", b"hello world")

        assert store.delete_fragment("f1") is True
        assert store.read_fragment("f1") is None
        assert store.read_fragment_data("f1") is None

    def test_delete_fragment_without_metadata_returns_false(self, store):
        store.write_fragment_data("orphan", b"payload")

        assert store.delete_fragment("orphan") is False
        assert store.read_fragment_data("orphan") is None

    def test_list_fragments_before_any_write(self, store):
        assert store.list_fragments("u1") == []

    def test_metadata_without_data_is_valid(self, store):
        store.write_fragment("f1", make_record("f1"))

        assert store.read_fragment("f1") is not None
        assert store.read_fragment_data("f1") is None


class TestMemoryMetadataStore:

    def test_clear(self):
        metadata = MemoryMetadataStore()
        metadata.write("f1", make_record("f1"))

        metadata.clear()

        assert metadata.read("f1") is None
        assert metadata.list_by_owner("u1") == []

    def test_blob_clear(self):
        blobs = MemoryBlobStore()
        blobs.write("f1", b"abc")

        blobs.clear()

        assert blobs.read("f1") is None


class TestSqliteMetadataStore:

    def test_survives_reopen(self, tmp_path):
        db_path = str(tmp_path / "fragments.db")
        SqliteMetadataStore(db_path).write("f1", make_record("f1"))

        reopened = SqliteMetadataStore(db_path)
        assert reopened.read("f1").owner_id == "u1"
        assert reopened.list_by_owner("u1") == ["f1"]

    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "fragments.db"
        SqliteMetadataStore(str(db_path))
        assert db_path.exists()


class TestFileBlobStore:

    def test_payload_file_layout(self, tmp_path):
        blobs = FileBlobStore(str(tmp_path))
        blobs.write("f1", b"abc")

        assert (tmp_path / "f1.data").read_bytes() == b"abc"

    @pytest.mark.parametrize("fragment_id", ["../escape", "nested/id", "../../etc/passwd"])
    def test_rejects_ids_outside_root(self, tmp_path, fragment_id):
        blobs = FileBlobStore(str(tmp_path / "payloads"))
        with pytest.raises(InvalidArgumentError):
            blobs.write(fragment_id, b"abc")


class TestCreateFragmentStore:

    def test_memory_backend(self):
        store = create_fragment_store("memory")
        assert isinstance(store, FragmentStore)
        assert isinstance(store.metadata, MemoryMetadataStore)

    def test_sqlite_backend(self, tmp_path):
        store = create_fragment_store(
            "sqlite",
            database_path=str(tmp_path / "fragments.db"),
            data_dir=str(tmp_path / "payloads"),
        )
        assert isinstance(store.metadata, SqliteMetadataStore)
        assert isinstance(store.blobs, FileBlobStore)

    def test_backend_from_config(self, monkeypatch):
        monkeypatch.setattr("fragments.config.STORAGE_BACKEND", "memory")
        store = create_fragment_store()
        assert isinstance(store.metadata, MemoryMetadataStore)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_fragment_store("redis")
